from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from app.core.config import settings

def create_session_token(client_id: str, email: str) -> str:
    # token de session: identifie le namespace de stockage du client
    payload = {
        "client_id": client_id,
        "email": email,
        "exp": datetime.utcnow() + timedelta(minutes=settings.SESSION_EXPIRE_MIN),
        "type": "session"
    }
    token = jwt.encode(payload, settings.SESSION_SECRET, algorithm="HS256")
    return token

def verify_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=["HS256"])
        return payload
    except JWTError:
        return None

def decode_session_token(token: str) -> Optional[str]:
    payload = verify_token(token)
    if payload is None or payload.get("type") != "session":
        return None
    return payload.get("client_id")

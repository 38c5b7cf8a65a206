import time
import uuid
from fastapi import APIRouter, Depends, Header, HTTPException, status
from typing import Optional

from app.core.deps import get_registry
from app.core.security import create_session_token, decode_session_token
from app.schemas.session import LoginRequest, SessionResponse
from app.schemas.task import MessageResponse
from app.services.session_registry import SessionRegistry

router = APIRouter(prefix="/session", tags=["session"])

@router.post("/login", response_model=SessionResponse)
def login(credentials: LoginRequest):
    """Placeholder login: builds a local user record, nothing is verified"""

    client_id = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
    user = {
        "id": client_id,
        "email": credentials.email,
        "name": credentials.name or "User"
    }

    return {
        "user": user,
        "access_token": create_session_token(client_id, credentials.email),
        "token_type": "bearer"
    }

@router.post("/logout", response_model=MessageResponse)
def logout(
    authorization: Optional[str] = Header(None),
    registry: SessionRegistry = Depends(get_registry)
):
    """Drops the in-memory tasks and chat transcript; stored tasks are kept"""

    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    client_id = decode_session_token(authorization.replace("Bearer ", ""))
    if not client_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    registry.discard(client_id)
    return {"message": "Logged out"}

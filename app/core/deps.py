from fastapi import Depends, Header, HTTPException, Request, status
from typing import Optional

from app.core.security import decode_session_token
from app.services.session_registry import DEFAULT_NAMESPACE, SessionRegistry
from app.services.task_service import TaskStore


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_client_namespace(authorization: Optional[str] = Header(None)) -> str:
    # Sans token: namespace partagé "default"
    if not authorization:
        return DEFAULT_NAMESPACE

    token = authorization.replace("Bearer ", "")
    client_id = decode_session_token(token)
    if not client_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    return client_id


def get_task_store(
    namespace: str = Depends(get_client_namespace),
    registry: SessionRegistry = Depends(get_registry)
) -> TaskStore:
    return registry.task_store(namespace)

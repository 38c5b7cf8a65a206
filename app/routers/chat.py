"""
Router du chat.

Endpoints:
- POST /chat - relaie un message au service de chat externe (réponse complète, pas de streaming)
- GET/POST/DELETE /chat/messages - transcript en mémoire du client
"""

from fastapi import APIRouter, Depends

from app.core.deps import get_client_namespace, get_registry
from app.core.errors import StorageError
from app.schemas.chat import ChatAnswer, ChatRequest, ChatSendRequest, ChatTranscript
from app.services.chat_service import ask
from app.services.session_registry import SessionRegistry

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatAnswer)
def chat(
    request: ChatRequest,
    namespace: str = Depends(get_client_namespace)
):
    """
    Stateless proxy call.

    exemple:
    POST /chat
    {"message": "What should I do first?", "tasks": [...]}
    →
    {"answer": "...", "metadata": {"model": "dify", "usage": {...}, "timestamp": "..."}}
    """
    return ask(request.message, request.tasks, user=namespace)


@router.get("/messages", response_model=ChatTranscript)
def get_messages(
    namespace: str = Depends(get_client_namespace),
    registry: SessionRegistry = Depends(get_registry)
):
    return registry.chat_session(namespace).transcript()


@router.post("/messages", response_model=ChatTranscript)
def send_message(
    request: ChatSendRequest,
    namespace: str = Depends(get_client_namespace),
    registry: SessionRegistry = Depends(get_registry)
):
    # la liste des tâches du client sert de contexte
    try:
        tasks = registry.task_store(namespace).tasks
    except StorageError:
        tasks = []
    return registry.chat_session(namespace).send(request.message, tasks)


@router.delete("/messages", response_model=ChatTranscript)
def clear_messages(
    namespace: str = Depends(get_client_namespace),
    registry: SessionRegistry = Depends(get_registry)
):
    chat_session = registry.chat_session(namespace)
    chat_session.clear()
    return chat_session.transcript()

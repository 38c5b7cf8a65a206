from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Literal, Any

from app.schemas.task import CamelModel, Task

# Schemas chat

class ChatRequest(BaseModel):
    message: str
    tasks: Optional[List[Task]] = None

class ChatMetadata(CamelModel):
    model: str
    usage: Optional[dict[str, Any]] = None
    timestamp: datetime
    conversation_id: Optional[str] = None

class ChatAnswer(BaseModel):
    answer: str
    metadata: ChatMetadata

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class ChatSendRequest(BaseModel):
    message: str

class ChatTranscript(BaseModel):
    state: Literal["idle", "loading", "loaded", "failed"]
    reason: Optional[str] = None
    messages: List[ChatMessage] = Field(default_factory=list)

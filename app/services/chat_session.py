"""In-memory chat transcript of one client, with an explicit view state."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from app.core.errors import AppError, ChatBusyError, ValidationError
from app.schemas.chat import ChatAnswer, ChatMessage, ChatTranscript
from app.schemas.task import Task
from app.services import chat_service

logger = logging.getLogger(__name__)

ERROR_PREFIX = "An error occurred: "


@dataclass(frozen=True)
class Idle:
    tag = "idle"


@dataclass(frozen=True)
class Loading:
    tag = "loading"


@dataclass(frozen=True)
class Loaded:
    tag = "loaded"


@dataclass(frozen=True)
class Failed:
    reason: str
    tag = "failed"


ChatState = Union[Idle, Loading, Loaded, Failed]

AskFn = Callable[..., ChatAnswer]


class ChatSession:
    """
    Ordered user/assistant messages, never persisted.

    Only one send may be in flight; a second one is rejected with
    ChatBusyError instead of interleaving with the first.
    """

    def __init__(self, user: str = "user"):
        self.user = user
        self._messages: List[ChatMessage] = []
        self._state: ChatState = Idle()
        self._lock = threading.Lock()
        self._in_flight = threading.Lock()

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def messages(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._messages)

    def transcript(self) -> ChatTranscript:
        with self._lock:
            state = self._state
            return ChatTranscript(
                state=state.tag,
                reason=state.reason if isinstance(state, Failed) else None,
                messages=list(self._messages),
            )

    def send(
        self,
        message: str,
        tasks: Optional[List[Task]] = None,
        ask: Optional[AskFn] = None,
    ) -> ChatTranscript:
        if not message or not message.strip():
            raise ValidationError("Message is required")
        if not self._in_flight.acquire(blocking=False):
            raise ChatBusyError("A message is already being answered")

        ask = ask or chat_service.ask
        try:
            with self._lock:
                self._messages.append(ChatMessage(role="user", content=message))
                self._state = Loading()

            try:
                answer = ask(message, tasks, user=self.user)
            except AppError as e:
                logger.warning(f"Chat send failed user={self.user}: {e.message}")
                with self._lock:
                    self._messages.append(ChatMessage(role="assistant", content=ERROR_PREFIX + e.message))
                    self._state = Failed(reason=e.message)
            except Exception:
                logger.exception(f"Unexpected chat failure user={self.user}")
                reason = "Unexpected error"
                with self._lock:
                    self._messages.append(ChatMessage(role="assistant", content=ERROR_PREFIX + reason))
                    self._state = Failed(reason=reason)
            else:
                with self._lock:
                    self._messages.append(ChatMessage(role="assistant", content=answer.answer))
                    self._state = Loaded()
        finally:
            self._in_flight.release()

        return self.transcript()

    def clear(self) -> None:
        with self._lock:
            self._messages = []
            self._state = Idle()

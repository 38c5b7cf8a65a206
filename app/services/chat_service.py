"""
Chat proxy - one buffered call to the external chat service (Dify-compatible API)
"""

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from typing import List, Optional

import pydantic
import requests
from pydantic import TypeAdapter

from app.core.config import settings
from app.core.errors import ChatTimeoutError, ConfigurationError, UpstreamError, ValidationError
from app.schemas.chat import ChatAnswer, ChatMetadata
from app.schemas.task import Task

logger = logging.getLogger(__name__)

DEFAULT_ANSWER = "No answer was returned."
CHUNK_SIZE = 8192

_task_list = TypeAdapter(List[Task])
_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="chat_proxy")


def _serialize_tasks(tasks: Optional[List[Task]]) -> str:
    return _task_list.dump_json(tasks or [], by_alias=True).decode()


def _read_body(response: requests.Response, deadline: float) -> bytes:
    # le timeout de requests ne borne que chaque lecture, pas la réponse entière
    chunks = []
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        if time.monotonic() > deadline:
            raise ChatTimeoutError("Chat service did not answer in time")
        chunks.append(chunk)
    return b"".join(chunks)


def _exchange(url: str, payload: dict, headers: dict, deadline: float) -> tuple[int, str, bytes]:
    """POST and read the whole body; runs in a proxy worker thread.

    Once headers are in, a timer closes the response at the deadline so a
    stalled body read cannot keep the worker past it.
    """
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise ChatTimeoutError("Chat service did not answer in time")
    response = requests.post(
        url,
        json=payload,
        headers=headers,
        timeout=(min(settings.CHAT_CONNECT_TIMEOUT_SECONDS, remaining), remaining),
        stream=True,
    )
    closer = threading.Timer(max(deadline - time.monotonic(), 0.0), response.close)
    closer.daemon = True
    closer.start()
    try:
        try:
            body = _read_body(response, deadline)
        except ChatTimeoutError:
            raise
        except Exception as e:
            if time.monotonic() >= deadline:
                raise ChatTimeoutError("Chat service did not answer in time") from e
            raise
        if time.monotonic() > deadline:
            # corps tronqué par la fermeture
            raise ChatTimeoutError("Chat service did not answer in time")
        return response.status_code, response.reason, body
    finally:
        closer.cancel()
        response.close()


def _upstream_message(status_code: int, reason: str, body: bytes) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return str(message)
    return reason or f"HTTP {status_code}"


def _build_answer(data: dict) -> ChatAnswer:
    answer = data.get("answer")
    if not isinstance(answer, str) or not answer.strip():
        answer = DEFAULT_ANSWER
    metadata = data.get("metadata")
    usage = metadata.get("usage") if isinstance(metadata, dict) else None
    model = data.get("model")
    conversation_id = data.get("conversation_id")

    try:
        return ChatAnswer(
            answer=answer,
            metadata=ChatMetadata(
                model=str(model) if model else settings.CHAT_MODEL,
                usage=usage if isinstance(usage, dict) else None,
                timestamp=datetime.now(timezone.utc),
                conversation_id=str(conversation_id) if conversation_id is not None else None,
            ),
        )
    except pydantic.ValidationError as e:
        logger.error(f"Unexpected chat response shape: {e}")
        raise UpstreamError("Chat service returned an invalid response") from e


def ask(message: str, tasks: Optional[List[Task]] = None, user: str = "user") -> ChatAnswer:
    if not message or not message.strip():
        raise ValidationError("Message is required")

    api_key = settings.CHAT_API_KEY
    if not api_key:
        raise ConfigurationError("Chat API key is not configured")

    timeout = settings.CHAT_TIMEOUT_SECONDS
    deadline = time.monotonic() + timeout
    payload = {
        "inputs": {"tasks": _serialize_tasks(tasks)},
        "query": message,
        "response_mode": "blocking",
        "user": user,
    }

    future = _executor.submit(
        _exchange,
        f"{settings.CHAT_API_URL}/chat-messages",
        payload,
        {"Authorization": f"Bearer {api_key}"},
        deadline,
    )
    try:
        status_code, reason, body = future.result(timeout=timeout)
    except FutureTimeoutError as e:
        future.cancel()
        logger.warning(f"Chat request exceeded {timeout}s")
        raise ChatTimeoutError("Chat service did not answer in time") from e
    except requests.Timeout as e:
        logger.warning(f"Chat request timed out: {e}")
        raise ChatTimeoutError("Chat service did not answer in time") from e
    except requests.RequestException as e:
        logger.error(f"Chat request failed: {e}")
        raise UpstreamError("Could not reach the chat service") from e

    if not 200 <= status_code < 400:
        detail = _upstream_message(status_code, reason, body)
        logger.error(f"Chat service error status={status_code}: {detail}")
        raise UpstreamError(detail)

    try:
        data = json.loads(body)
    except ValueError as e:
        raise UpstreamError("Chat service returned an invalid response") from e
    if not isinstance(data, dict):
        raise UpstreamError("Chat service returned an invalid response")

    return _build_answer(data)

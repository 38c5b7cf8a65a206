"""Per-client TaskStore and ChatSession instances, owned by the application."""

import logging
import threading

from app.core.config import settings
from app.services.chat_session import ChatSession
from app.services.local_storage import LocalStorage
from app.services.task_service import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"


class SessionRegistry:

    def __init__(self, tasks_key: str = settings.STORAGE_TASKS_KEY):
        self._tasks_key = tasks_key
        self._stores: dict[str, TaskStore] = {}
        self._chats: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def task_store(self, namespace: str) -> TaskStore:
        """Return the client's store, loading it from storage on first use.

        If that first load fails the empty store stays registered, so the
        StorageError is reported once and later mutations overwrite the bad data.
        """
        with self._lock:
            store = self._stores.get(namespace)
            if store is None:
                store = TaskStore(LocalStorage(namespace), key=self._tasks_key)
                self._stores[namespace] = store
        # chargement hors du verrou global, sous le verrou du store
        store.ensure_loaded()
        return store

    def chat_session(self, namespace: str) -> ChatSession:
        with self._lock:
            chat = self._chats.get(namespace)
            if chat is None:
                chat = self._chats[namespace] = ChatSession(user=namespace)
            return chat

    def discard(self, namespace: str) -> None:
        with self._lock:
            self._stores.pop(namespace, None)
            chat = self._chats.pop(namespace, None)
        if chat is not None:
            chat.clear()
        logger.info(f"Session discarded namespace={namespace}")

    def clear(self) -> None:
        with self._lock:
            self._stores.clear()
            self._chats.clear()

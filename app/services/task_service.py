"""Task store: the ordered task list of one client, mirrored to local storage."""

import logging
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

import pydantic
from pydantic import TypeAdapter

from app.core.errors import NotFoundError, StorageError, ValidationError
from app.schemas.task import Task
from app.services.local_storage import LocalStorage

logger = logging.getLogger(__name__)

_task_list = TypeAdapter(List[Task])

EDITABLE_FIELDS = ("title", "description", "completed", "is_priority", "due_date")


class TaskFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


def filter_tasks(tasks: List[Task], predicate: str = TaskFilter.ALL) -> List[Task]:
    """Derived view of `tasks`; the input list is never modified."""
    try:
        predicate = TaskFilter(predicate)
    except ValueError:
        raise ValidationError(f"Unknown filter: {predicate}")

    if predicate is TaskFilter.ACTIVE:
        return [task for task in tasks if not task.completed]
    if predicate is TaskFilter.COMPLETED:
        return [task for task in tasks if task.completed]
    return list(tasks)


def _aware(value: datetime) -> datetime:
    # les dates sans fuseau sont en heure locale
    return value if value.tzinfo is not None else value.astimezone()


def get_overdue_tasks(tasks: List[Task]) -> List[Task]:
    now = datetime.now(timezone.utc)
    return [
        task for task in tasks
        if task.due_date is not None and not task.completed and _aware(task.due_date) < now
    ]


def get_today_tasks(tasks: List[Task]) -> List[Task]:
    today = datetime.now().astimezone().date()
    return [
        task for task in tasks
        if task.due_date is not None and _aware(task.due_date).astimezone().date() == today
    ]


def get_priority_tasks(tasks: List[Task]) -> List[Task]:
    return [task for task in tasks if task.is_priority]


def _clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    return title


class TaskStore:
    """
    Owns the task list of one client.

    Every mutation saves the whole collection under `key`. All operations
    hold the store lock, so a save never overlaps another mutation.
    A task id that does not exist raises NotFoundError and changes nothing.
    """

    def __init__(self, storage: LocalStorage, key: str = "tasks"):
        self._storage = storage
        self._key = key
        self._tasks: List[Task] = []
        self._lock = threading.RLock()
        self._loaded = False

    @property
    def tasks(self) -> List[Task]:
        with self._lock:
            return list(self._tasks)

    def ensure_loaded(self) -> None:
        """Load once; concurrent first callers wait on the store lock."""
        with self._lock:
            if self._loaded:
                return
            self._loaded = True
            self.load()

    def load(self) -> List[Task]:
        with self._lock:
            self._tasks = []
            raw = self._storage.get_item(self._key)
            if raw is None:
                return []
            try:
                tasks = _task_list.validate_json(raw)
            except pydantic.ValidationError as e:
                logger.error(f"Malformed task data in namespace={self._storage.namespace}: {e}")
                raise StorageError("Stored tasks are malformed") from e
            if len({task.id for task in tasks}) != len(tasks):
                raise StorageError("Stored tasks contain duplicate ids")
            self._tasks = tasks
            logger.info(f"Loaded {len(tasks)} tasks namespace={self._storage.namespace}")
            return list(tasks)

    def save(self) -> None:
        with self._lock:
            payload = _task_list.dump_json(self._tasks, by_alias=True).decode()
            self._storage.set_item(self._key, payload)

    def get(self, task_id: int) -> Task:
        with self._lock:
            return self._tasks[self._index(task_id)]

    def add(
        self,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        is_priority: bool = False,
    ) -> Task:
        with self._lock:
            task = Task(
                id=self._next_id(),
                title=_clean_title(title),
                description=description or "",
                completed=False,
                created_at=datetime.now(timezone.utc),
                is_priority=is_priority,
                due_date=due_date,
            )
            self._tasks.append(task)
            self.save()
            return task

    def toggle_completed(self, task_id: int) -> Task:
        with self._lock:
            task = self.get(task_id)
            return self._replace(task_id, {"completed": not task.completed})

    def toggle_priority(self, task_id: int) -> Task:
        with self._lock:
            task = self.get(task_id)
            return self._replace(task_id, {"is_priority": not task.is_priority})

    def update(self, task_id: int, changes: dict[str, Any]) -> Task:
        changes = {field: value for field, value in changes.items() if field in EDITABLE_FIELDS}
        if "title" in changes:
            changes["title"] = _clean_title(changes["title"])
        if "description" in changes and changes["description"] is None:
            changes["description"] = ""
        for flag in ("completed", "is_priority"):
            if flag in changes and changes[flag] is None:
                del changes[flag]
        with self._lock:
            self.get(task_id)
            return self._replace(task_id, changes)

    def delete(self, task_id: int) -> Task:
        with self._lock:
            task = self._tasks.pop(self._index(task_id))
            self.save()
            return task

    def _index(self, task_id: int) -> int:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        raise NotFoundError(f"Task {task_id} not found")

    def _replace(self, task_id: int, changes: dict[str, Any]) -> Task:
        index = self._index(task_id)
        updated = self._tasks[index].model_copy(update=changes)
        self._tasks[index] = updated
        self.save()
        return updated

    def _next_id(self) -> int:
        # millisecond timestamp, bumped past the largest id already in use
        candidate = int(time.time() * 1000)
        if self._tasks:
            candidate = max(candidate, max(task.id for task in self._tasks) + 1)
        return candidate

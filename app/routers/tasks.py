from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional

from app.core.deps import get_task_store
from app.core.errors import ValidationError
from app.schemas.task import Task, TaskCreate, TaskUpdate, MessageResponse
from app.services.task_service import (
    TaskStore,
    filter_tasks,
    get_overdue_tasks,
    get_today_tasks,
    get_priority_tasks
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[Task])
def list_tasks(
    filter: str = Query("all"),
    store: TaskStore = Depends(get_task_store)
):
    return filter_tasks(store.tasks, filter)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    store: TaskStore = Depends(get_task_store)
):
    return store.add(
        task_data.title,
        description=task_data.description,
        due_date=task_data.due_date,
        is_priority=task_data.is_priority
    )


@router.put("", response_model=Task)
def update_task(
    task_data: TaskUpdate,
    store: TaskStore = Depends(get_task_store)
):
    changes = task_data.model_dump(exclude_unset=True, exclude={"id"})
    return store.update(task_data.id, changes)


@router.delete("", response_model=MessageResponse)
def delete_task(
    id: Optional[int] = Query(None),
    store: TaskStore = Depends(get_task_store)
):
    if id is None:
        raise ValidationError("Task id is required")

    store.delete(id)
    return {"message": "Task deleted"}


@router.get("/today", response_model=List[Task])
def today(store: TaskStore = Depends(get_task_store)):
    return get_today_tasks(store.tasks)


@router.get("/overdue", response_model=List[Task])
def overdue(store: TaskStore = Depends(get_task_store)):
    return get_overdue_tasks(store.tasks)


@router.get("/priority", response_model=List[Task])
def priority(store: TaskStore = Depends(get_task_store)):
    return get_priority_tasks(store.tasks)


@router.get("/{task_id}", response_model=Task)
def get_task(task_id: int, store: TaskStore = Depends(get_task_store)):
    return store.get(task_id)


@router.post("/{task_id}/toggle-completed", response_model=Task)
def toggle_completed(task_id: int, store: TaskStore = Depends(get_task_store)):
    return store.toggle_completed(task_id)


@router.post("/{task_id}/toggle-priority", response_model=Task)
def toggle_priority(task_id: int, store: TaskStore = Depends(get_task_store)):
    return store.toggle_priority(task_id)

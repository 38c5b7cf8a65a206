"""Pydantic schemas for tasks. The wire format uses camelCase field names."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(CamelModel):
    id: int
    title: str
    description: str = ""
    completed: bool = False
    created_at: datetime
    is_priority: bool = False
    due_date: Optional[datetime] = None


class TaskCreate(CamelModel):
    title: str
    description: Optional[str] = None
    is_priority: bool = False
    due_date: Optional[datetime] = None


class TaskUpdate(CamelModel):
    """Body of PUT /tasks: the id plus any editable fields."""

    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    is_priority: Optional[bool] = None
    due_date: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str

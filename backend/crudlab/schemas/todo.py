"""CrudLab Backend — Todo / SubTodo Schemas"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SubTodoResponse(BaseModel):
    id: uuid.UUID
    content: str
    completed: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TodoResponse(BaseModel):
    id: uuid.UUID
    content: str
    completed: bool
    created_by: Optional[uuid.UUID] = None
    sub_todos: List[SubTodoResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TodoCreate(BaseModel):
    content: str = Field(min_length=1)
    completed: bool = False


class TodoUpdate(BaseModel):
    """Partial update; fields left out are not touched."""
    content: Optional[str] = Field(default=None, min_length=1)
    completed: Optional[bool] = None


class SubTodoCreate(BaseModel):
    content: str = Field(min_length=1)
    completed: bool = False


class SubTodoUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    completed: Optional[bool] = None

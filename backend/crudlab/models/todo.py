"""
CrudLab Backend — Todo and SubTodo Models
==========================================

What:  `todos` and `sub_todos` tables plus the `todo_sub_todos` association.
How:   A todo keeps an ordered list of sub-todo references. The association
       table stores the list position so the order survives reloads.

Ownership:
    created_by references users.id. Deleting a user nulls the reference
    instead of deleting the user's todos.
"""

import uuid
from typing import List, Optional

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crudlab.database import Base, DocumentMixin


todo_sub_todos = Table(
    "todo_sub_todos",
    Base.metadata,
    Column("todo_id", Uuid, ForeignKey("todos.id", ondelete="CASCADE"), primary_key=True),
    Column("sub_todo_id", Uuid, ForeignKey("sub_todos.id", ondelete="CASCADE"), primary_key=True),
    Column("position", Integer, nullable=False, default=0),
)


class SubTodo(DocumentMixin, Base):
    __tablename__ = "sub_todos"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    def __repr__(self) -> str:
        return f"<SubTodo(id={self.id}, completed={self.completed})>"


class Todo(DocumentMixin, Base):
    __tablename__ = "todos"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # selectin: list endpoints load every page's sub-todos in one extra query
    sub_todos: Mapped[List[SubTodo]] = relationship(
        secondary=todo_sub_todos,
        order_by=todo_sub_todos.c.position,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Todo(id={self.id}, completed={self.completed}, sub_todos={len(self.sub_todos)})>"

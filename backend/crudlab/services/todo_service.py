"""
CrudLab Backend — Todo Service
===============================

What:  CRUD for todos and their sub-todos, scoped to the current user.
How:   A todo is visible only to the user in its created_by column; other
       users get NotFoundError, never a 403, so ids of foreign todos are
       not confirmed to exist.

Sub-todos are appended to the parent's ordered sub_todos list. Deleting a
todo deletes the sub-todos linked to it.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.exceptions import NotFoundError
from crudlab.models.todo import SubTodo, Todo, todo_sub_todos
from crudlab.schemas.common import Page
from crudlab.schemas.todo import (
    SubTodoCreate,
    SubTodoResponse,
    SubTodoUpdate,
    TodoCreate,
    TodoResponse,
    TodoUpdate,
)
from crudlab.services.pagination import paginate

logger = logging.getLogger(__name__)


class TodoService:

    async def _get_owned(self, db: AsyncSession, user_id: uuid.UUID, todo_id: uuid.UUID) -> Todo:
        result = await db.execute(
            select(Todo).where(Todo.id == todo_id, Todo.created_by == user_id)
        )
        todo = result.scalar_one_or_none()
        if todo is None:
            raise NotFoundError(resource="todo", resource_id=str(todo_id))
        return todo

    async def _reload(self, db: AsyncSession, todo: Todo) -> TodoResponse:
        await db.flush()
        await db.refresh(todo, attribute_names=["updated_at", "sub_todos"])
        return TodoResponse.model_validate(todo)

    async def create_todo(
        self, db: AsyncSession, user_id: uuid.UUID, data: TodoCreate
    ) -> TodoResponse:
        todo = Todo(content=data.content, completed=data.completed, created_by=user_id)
        todo.sub_todos = []
        db.add(todo)
        await db.flush()
        logger.info("Todo %s created by %s", todo.id, user_id)
        return TodoResponse.model_validate(todo)

    async def get_todo(
        self, db: AsyncSession, user_id: uuid.UUID, todo_id: uuid.UUID
    ) -> TodoResponse:
        todo = await self._get_owned(db, user_id, todo_id)
        return TodoResponse.model_validate(todo)

    async def list_todos(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        limit: int = 20,
        cursor: Optional[str] = None,
        sort: str = "created_at_desc",
        completed: Optional[bool] = None,
    ) -> Page[TodoResponse]:
        filters = [Todo.created_by == user_id]
        if completed is not None:
            filters.append(Todo.completed == completed)

        rows, total, next_cursor, has_more = await paginate(
            db, Todo, filters, limit=limit, cursor=cursor, sort=sort
        )
        return Page[TodoResponse](
            items=[TodoResponse.model_validate(row) for row in rows],
            total_count=total,
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def update_todo(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        todo_id: uuid.UUID,
        data: TodoUpdate,
    ) -> TodoResponse:
        todo = await self._get_owned(db, user_id, todo_id)
        if data.content is not None:
            todo.content = data.content
        if data.completed is not None:
            todo.completed = data.completed
        return await self._reload(db, todo)

    async def delete_todo(
        self, db: AsyncSession, user_id: uuid.UUID, todo_id: uuid.UUID
    ) -> None:
        todo = await self._get_owned(db, user_id, todo_id)
        sub_todo_ids = [sub.id for sub in todo.sub_todos]

        await db.delete(todo)
        await db.flush()
        if sub_todo_ids:
            await db.execute(delete(SubTodo).where(SubTodo.id.in_(sub_todo_ids)))
        logger.info("Todo %s deleted with %d sub-todos", todo_id, len(sub_todo_ids))

    async def add_sub_todo(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        todo_id: uuid.UUID,
        data: SubTodoCreate,
    ) -> SubTodoResponse:
        todo = await self._get_owned(db, user_id, todo_id)
        sub_todo = SubTodo(content=data.content, completed=data.completed, created_by=user_id)
        db.add(sub_todo)
        await db.flush()

        await db.execute(
            todo_sub_todos.insert().values(
                todo_id=todo.id,
                sub_todo_id=sub_todo.id,
                position=len(todo.sub_todos),
            )
        )
        db.expire(todo, ["sub_todos"])
        logger.info("Sub-todo %s added to todo %s", sub_todo.id, todo.id)
        return SubTodoResponse.model_validate(sub_todo)

    async def update_sub_todo(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        sub_todo_id: uuid.UUID,
        data: SubTodoUpdate,
    ) -> SubTodoResponse:
        result = await db.execute(
            select(SubTodo).where(SubTodo.id == sub_todo_id, SubTodo.created_by == user_id)
        )
        sub_todo = result.scalar_one_or_none()
        if sub_todo is None:
            raise NotFoundError(resource="sub-todo", resource_id=str(sub_todo_id))

        if data.content is not None:
            sub_todo.content = data.content
        if data.completed is not None:
            sub_todo.completed = data.completed
        await db.flush()
        await db.refresh(sub_todo, attribute_names=["updated_at"])
        return SubTodoResponse.model_validate(sub_todo)


todo_service = TodoService()

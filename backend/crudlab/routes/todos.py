"""
CrudLab Backend — Todo Routes
==============================

/api/v1/todos endpoints. All of them act on the current user's todos.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.database import get_db_session
from crudlab.dependencies import get_current_user, pagination_params
from crudlab.models.user import User
from crudlab.schemas.common import ApiResponse, ErrorResponse, Page, PaginationParams
from crudlab.schemas.todo import (
    SubTodoCreate,
    SubTodoResponse,
    SubTodoUpdate,
    TodoCreate,
    TodoResponse,
    TodoUpdate,
)
from crudlab.services.todo_service import todo_service

router = APIRouter(prefix="/api/v1/todos", tags=["Todos"])

_NOT_FOUND = {404: {"description": "Todo not found", "model": ErrorResponse}}


@router.post("", status_code=201, response_model=ApiResponse[TodoResponse])
async def create_todo(
    body: TodoCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TodoResponse]:
    todo = await todo_service.create_todo(db, user.id, body)
    return ApiResponse[TodoResponse](status_code=201, data=todo, message="Todo created successfully")


@router.get("", response_model=ApiResponse[Page[TodoResponse]])
async def list_todos(
    response: Response,
    completed: Optional[bool] = Query(default=None, description="Filter on completion"),
    page: PaginationParams = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Page[TodoResponse]]:
    result = await todo_service.list_todos(
        db,
        user.id,
        limit=page.limit,
        cursor=page.cursor,
        sort=page.sort,
        completed=completed,
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return ApiResponse[Page[TodoResponse]](
        status_code=200, data=result, message="Todos fetched successfully"
    )


@router.get("/{todo_id}", response_model=ApiResponse[TodoResponse], responses=_NOT_FOUND)
async def get_todo(
    todo_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TodoResponse]:
    todo = await todo_service.get_todo(db, user.id, todo_id)
    return ApiResponse[TodoResponse](status_code=200, data=todo, message="Todo fetched successfully")


@router.patch("/{todo_id}", response_model=ApiResponse[TodoResponse], responses=_NOT_FOUND)
async def update_todo(
    todo_id: uuid.UUID,
    body: TodoUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TodoResponse]:
    todo = await todo_service.update_todo(db, user.id, todo_id, body)
    return ApiResponse[TodoResponse](status_code=200, data=todo, message="Todo updated successfully")


@router.delete("/{todo_id}", response_model=ApiResponse[dict], responses=_NOT_FOUND)
async def delete_todo(
    todo_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[dict]:
    await todo_service.delete_todo(db, user.id, todo_id)
    return ApiResponse[dict](status_code=200, data={}, message="Todo deleted successfully")


@router.post(
    "/{todo_id}/sub-todos",
    status_code=201,
    response_model=ApiResponse[SubTodoResponse],
    responses=_NOT_FOUND,
)
async def add_sub_todo(
    todo_id: uuid.UUID,
    body: SubTodoCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SubTodoResponse]:
    sub_todo = await todo_service.add_sub_todo(db, user.id, todo_id, body)
    return ApiResponse[SubTodoResponse](
        status_code=201, data=sub_todo, message="Sub-todo created successfully"
    )


@router.patch(
    "/sub-todos/{sub_todo_id}",
    response_model=ApiResponse[SubTodoResponse],
    responses=_NOT_FOUND,
)
async def update_sub_todo(
    sub_todo_id: uuid.UUID,
    body: SubTodoUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SubTodoResponse]:
    sub_todo = await todo_service.update_sub_todo(db, user.id, sub_todo_id, body)
    return ApiResponse[SubTodoResponse](
        status_code=200, data=sub_todo, message="Sub-todo updated successfully"
    )

"""
CrudLab Backend — Order Routes
===============================

/api/v1/orders endpoints. The customer of every order is the current user.
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.database import get_db_session
from crudlab.dependencies import get_current_user, pagination_params
from crudlab.models.user import User
from crudlab.schemas.common import ApiResponse, ErrorResponse, Page, PaginationParams
from crudlab.schemas.order import OrderCreate, OrderItemStatusUpdate, OrderResponse
from crudlab.services.order_service import order_service

router = APIRouter(prefix="/api/v1/orders", tags=["Orders"])

_NOT_FOUND = {404: {"description": "Order or item not found", "model": ErrorResponse}}


@router.post("", status_code=201, response_model=ApiResponse[OrderResponse])
async def create_order(
    body: OrderCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[OrderResponse]:
    order = await order_service.create_order(db, user.id, body)
    return ApiResponse[OrderResponse](status_code=201, data=order, message="Order placed successfully")


@router.get("", response_model=ApiResponse[Page[OrderResponse]])
async def list_orders(
    response: Response,
    page: PaginationParams = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Page[OrderResponse]]:
    result = await order_service.list_orders(
        db, user.id, limit=page.limit, cursor=page.cursor, sort=page.sort
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return ApiResponse[Page[OrderResponse]](
        status_code=200, data=result, message="Orders fetched successfully"
    )


@router.get("/{order_id}", response_model=ApiResponse[OrderResponse], responses=_NOT_FOUND)
async def get_order(
    order_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[OrderResponse]:
    order = await order_service.get_order(db, user.id, order_id)
    return ApiResponse[OrderResponse](status_code=200, data=order, message="Order fetched successfully")


@router.patch(
    "/{order_id}/items/{item_id}/status",
    response_model=ApiResponse[OrderResponse],
    responses=_NOT_FOUND,
)
async def update_order_item_status(
    order_id: uuid.UUID,
    item_id: uuid.UUID,
    body: OrderItemStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[OrderResponse]:
    order = await order_service.update_item_status(db, user.id, order_id, item_id, body.status)
    return ApiResponse[OrderResponse](
        status_code=200, data=order, message="Order item status updated successfully"
    )

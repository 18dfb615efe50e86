"""
CrudLab Backend — Order Service
================================

What:  Create, read and list orders for the current customer, and change
       the status of a single order item.
How:   Items are created together with their order in one flush; the
       relationship cascade owns them afterwards.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.database import utcnow
from crudlab.exceptions import NotFoundError
from crudlab.models.order import Order, OrderItem, OrderStatus
from crudlab.schemas.common import Page
from crudlab.schemas.order import OrderCreate, OrderResponse
from crudlab.services.pagination import paginate

logger = logging.getLogger(__name__)


class OrderService:

    async def _get_owned(
        self, db: AsyncSession, customer_id: uuid.UUID, order_id: uuid.UUID
    ) -> Order:
        result = await db.execute(
            select(Order).where(Order.id == order_id, Order.customer == customer_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(resource="order", resource_id=str(order_id))
        return order

    async def create_order(
        self, db: AsyncSession, customer_id: uuid.UUID, data: OrderCreate
    ) -> OrderResponse:
        order = Order(
            order_price=data.order_price,
            customer=customer_id,
            order_items=[
                OrderItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    address=item.address,
                    status=item.status,
                    position=index,
                )
                for index, item in enumerate(data.order_items)
            ],
        )
        db.add(order)
        await db.flush()
        logger.info(
            "Order %s created for customer %s with %d items",
            order.id,
            customer_id,
            len(order.order_items),
        )
        return OrderResponse.model_validate(order)

    async def get_order(
        self, db: AsyncSession, customer_id: uuid.UUID, order_id: uuid.UUID
    ) -> OrderResponse:
        order = await self._get_owned(db, customer_id, order_id)
        return OrderResponse.model_validate(order)

    async def list_orders(
        self,
        db: AsyncSession,
        customer_id: uuid.UUID,
        limit: int = 20,
        cursor: Optional[str] = None,
        sort: str = "created_at_desc",
    ) -> Page[OrderResponse]:
        rows, total, next_cursor, has_more = await paginate(
            db, Order, [Order.customer == customer_id], limit=limit, cursor=cursor, sort=sort
        )
        return Page[OrderResponse](
            items=[OrderResponse.model_validate(row) for row in rows],
            total_count=total,
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def update_item_status(
        self,
        db: AsyncSession,
        customer_id: uuid.UUID,
        order_id: uuid.UUID,
        item_id: uuid.UUID,
        status: OrderStatus,
    ) -> OrderResponse:
        """
        Raises:
            NotFoundError: the order is not the caller's, or has no such item
        """
        order = await self._get_owned(db, customer_id, order_id)
        item = next((i for i in order.order_items if i.id == item_id), None)
        if item is None:
            raise NotFoundError(resource="order item", resource_id=str(item_id))

        previous = item.status
        item.status = status
        # the item lives in its own table, so the order row needs an explicit touch
        order.updated_at = utcnow()
        await db.flush()
        await db.refresh(order, attribute_names=["updated_at", "order_items"])
        logger.info(
            "Order %s item %s status %s -> %s",
            order_id,
            item_id,
            previous.value,
            status.value,
        )
        return OrderResponse.model_validate(order)


order_service = OrderService()

"""
CrudLab Backend — Order Schemas
================================

status is typed as OrderStatus, so values outside PENDING / CANCELLED /
DELIVERED are rejected by request validation (422) before any service
code runs.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from crudlab.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: Optional[uuid.UUID] = None
    quantity: float
    address: str = Field(min_length=1)
    status: OrderStatus = OrderStatus.PENDING


class OrderCreate(BaseModel):
    order_price: float
    order_items: List[OrderItemCreate] = Field(default_factory=list)


class OrderItemStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemResponse(BaseModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    quantity: float
    address: str
    status: OrderStatus

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: uuid.UUID
    order_price: float
    customer: uuid.UUID
    order_items: List[OrderItemResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

"""
CrudLab Backend — Order Models
===============================

What:  `orders` and `order_items` tables.
How:   Order items are sub-documents of an order: their own table, owned by
       the order through a cascading foreign key and loaded eagerly with it.

Table Design Rationale:
    - customer: required FK to users
    - product_id: reference into the product catalogue, which lives in
      another service, so it is an indexed UUID without a FK constraint
    - status: string enum with a CHECK constraint, default PENDING
"""

import enum
import uuid
from typing import List, Optional

from sqlalchemy import Enum, Float, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crudlab.database import Base, DocumentMixin


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"
    DELIVERED = "DELIVERED"


class OrderItem(DocumentMixin, Base):
    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str] = mapped_column(String(1024), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, native_enum=False, create_constraint=True, length=20, name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    # Keeps items in the order the client sent them
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, status='{self.status.value}')>"


class Order(DocumentMixin, Base):
    __tablename__ = "orders"

    order_price: Mapped[float] = mapped_column(Float, nullable=False)
    customer: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_items: Mapped[List[OrderItem]] = relationship(
        order_by=OrderItem.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, items={len(self.order_items)})>"

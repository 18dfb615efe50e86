"""Create core tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates users, todos, sub_todos, todo_sub_todos, orders, order_items,
       patients, medical_records and medications.
How:   Columns mirror crudlab/models; enums are VARCHAR with CHECK
       constraints so the same migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _document_columns():
    """id / created_at / updated_at, shared by every table."""
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_document_columns(),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("avatar", sa.String(1024), nullable=True),
        sa.Column("cover_image", sa.String(1024), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"])

    # ── Todos ─────────────────────────────────────────────────────────────
    for table in ("todos", "sub_todos"):
        op.create_table(
            table,
            *_document_columns(),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("completed", sa.Boolean(), nullable=False),
            sa.Column("created_by", sa.Uuid(), nullable=True),
            sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_created_by", table, ["created_by"])
        op.create_index(f"ix_{table}_created_at", table, ["created_at"])

    op.create_table(
        "todo_sub_todos",
        sa.Column("todo_id", sa.Uuid(), nullable=False),
        sa.Column("sub_todo_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["todo_id"], ["todos.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sub_todo_id"], ["sub_todos.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("todo_id", "sub_todo_id"),
    )

    # ── Orders ────────────────────────────────────────────────────────────
    op.create_table(
        "orders",
        *_document_columns(),
        sa.Column("order_price", sa.Float(), nullable=False),
        sa.Column("customer", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["customer"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_orders_customer", "orders", ["customer"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])

    op.create_table(
        "order_items",
        *_document_columns(),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("address", sa.String(1024), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING",
                "CANCELLED",
                "DELIVERED",
                name="order_status",
                native_enum=False,
                create_constraint=True,
                length=20,
            ),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])
    op.create_index("ix_order_items_created_at", "order_items", ["created_at"])

    # ── Hospital ──────────────────────────────────────────────────────────
    op.create_table(
        "patients",
        *_document_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("diagnosed_with", sa.Text(), nullable=False),
        sa.Column("address", sa.String(1024), nullable=False),
        sa.Column("age", sa.Float(), nullable=False),
        sa.Column("blood_group", sa.String(16), nullable=False),
        sa.Column(
            "gender",
            sa.Enum(
                "MALE",
                "FEMALE",
                "OTHERS",
                name="patient_gender",
                native_enum=False,
                create_constraint=True,
                length=10,
            ),
            nullable=False,
        ),
        sa.Column("admitted_in", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_patients_admitted_in", "patients", ["admitted_in"])
    op.create_index("ix_patients_created_at", "patients", ["created_at"])

    op.create_table(
        "medical_records",
        *_document_columns(),
        sa.Column("patient_name", sa.String(255), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column(
            "gender",
            sa.Enum(
                "Male",
                "Female",
                "Other",
                name="record_gender",
                native_enum=False,
                create_constraint=True,
                length=10,
            ),
            nullable=True,
        ),
        sa.Column("diagnosis", sa.Text(), nullable=True),
        sa.Column("doctor", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_medical_records_doctor", "medical_records", ["doctor"])
    op.create_index("ix_medical_records_created_at", "medical_records", ["created_at"])

    op.create_table(
        "medications",
        *_document_columns(),
        sa.Column("medical_record_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("dosage", sa.String(255), nullable=True),
        sa.Column("frequency", sa.String(255), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["medical_record_id"], ["medical_records.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_medications_medical_record_id", "medications", ["medical_record_id"])
    op.create_index("ix_medications_created_at", "medications", ["created_at"])


def downgrade() -> None:
    """Drop every table, children first. All data is lost."""
    for table in (
        "medications",
        "medical_records",
        "patients",
        "order_items",
        "orders",
        "todo_sub_todos",
        "sub_todos",
        "todos",
        "users",
    ):
        op.drop_table(table)

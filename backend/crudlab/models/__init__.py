"""
CrudLab Backend — ORM Models
=============================

Importing this package registers every table with Base.metadata, which
Alembic's env.py and the test fixtures rely on.
"""

from crudlab.models.user import User
from crudlab.models.todo import SubTodo, Todo, todo_sub_todos
from crudlab.models.order import Order, OrderItem, OrderStatus
from crudlab.models.patient import Patient, PatientGender
from crudlab.models.medical_record import Medication, MedicalRecord, RecordGender

__all__ = [
    "User",
    "Todo",
    "SubTodo",
    "todo_sub_todos",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Patient",
    "PatientGender",
    "MedicalRecord",
    "Medication",
    "RecordGender",
]

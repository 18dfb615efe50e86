"""
CrudLab Backend — Patient Model
================================

Every column is required. admitted_in references a hospital record owned
by another system, so it carries an index but no FK constraint.
"""

import enum
import uuid

from sqlalchemy import Enum, Float, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crudlab.database import Base, DocumentMixin


class PatientGender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHERS = "OTHERS"


class Patient(DocumentMixin, Base):
    __tablename__ = "patients"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    diagnosed_with: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(String(1024), nullable=False)
    age: Mapped[float] = mapped_column(Float, nullable=False)
    blood_group: Mapped[str] = mapped_column(String(16), nullable=False)
    gender: Mapped[PatientGender] = mapped_column(
        Enum(PatientGender, native_enum=False, create_constraint=True, length=10, name="patient_gender"),
        nullable=False,
    )
    admitted_in: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, name='{self.name}')>"

"""
CrudLab Backend — Medical Record Model
=======================================

What:  `medical_records` and their `medications` sub-documents.
How:   Medications are owned rows (cascade delete) loaded with the record.
       Their name/dosage/frequency fields are all optional strings.

Note the gender values differ from Patient's ('Male', not 'MALE'); both
sets are kept as the collections define them.
"""

import enum
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import Date, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crudlab.database import Base, DocumentMixin


class RecordGender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class Medication(DocumentMixin, Base):
    __tablename__ = "medications"

    medical_record_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("medical_records.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    dosage: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    frequency: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class MedicalRecord(DocumentMixin, Base):
    __tablename__ = "medical_records"

    patient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    # values_callable: store 'Male', not the member name 'MALE'
    gender: Mapped[Optional[RecordGender]] = mapped_column(
        Enum(
            RecordGender,
            native_enum=False,
            create_constraint=True,
            length=10,
            name="record_gender",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=True,
    )
    diagnosis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    doctor: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    medications: Mapped[List[Medication]] = relationship(
        order_by=Medication.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<MedicalRecord(id={self.id}, patient='{self.patient_name}')>"

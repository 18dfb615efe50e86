"""
CrudLab Backend — Patient and Medical Record Schemas
=====================================================

Every Patient field is required. A MedicalRecord only requires
patient_name, date_of_birth and doctor; gender, diagnosis and each
medication field may be omitted.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from crudlab.models.medical_record import RecordGender
from crudlab.models.patient import PatientGender


class PatientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    diagnosed_with: str = Field(min_length=1)
    address: str = Field(min_length=1, max_length=1024)
    age: float = Field(ge=0)
    blood_group: str = Field(min_length=1, max_length=16)
    gender: PatientGender
    admitted_in: uuid.UUID


class PatientResponse(PatientCreate):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MedicationSchema(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    dosage: Optional[str] = Field(default=None, max_length=255)
    frequency: Optional[str] = Field(default=None, max_length=255)

    model_config = {"from_attributes": True}


class MedicalRecordCreate(BaseModel):
    patient_name: str = Field(min_length=1, max_length=255)
    date_of_birth: date
    gender: Optional[RecordGender] = None
    diagnosis: Optional[str] = None
    medications: List[MedicationSchema] = Field(default_factory=list)
    doctor: uuid.UUID


class MedicalRecordResponse(MedicalRecordCreate):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

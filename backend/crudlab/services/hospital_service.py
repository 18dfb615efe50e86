"""
CrudLab Backend — Hospital Records Service
===========================================

What:  Create, read and list patients and medical records.
Who:   Called by the /api/v1/patients and /api/v1/medical-records routes.

Listings can be narrowed by reference: patients by the hospital they are
admitted in, medical records by doctor.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.exceptions import NotFoundError
from crudlab.models.medical_record import MedicalRecord, Medication
from crudlab.models.patient import Patient
from crudlab.schemas.common import Page
from crudlab.schemas.hospital import (
    MedicalRecordCreate,
    MedicalRecordResponse,
    PatientCreate,
    PatientResponse,
)
from crudlab.services.pagination import paginate

logger = logging.getLogger(__name__)


class HospitalService:

    # ── Patients ──────────────────────────────────────────────────────────

    async def create_patient(self, db: AsyncSession, data: PatientCreate) -> PatientResponse:
        patient = Patient(**data.model_dump())
        db.add(patient)
        await db.flush()
        logger.info("Patient %s admitted in %s", patient.id, patient.admitted_in)
        return PatientResponse.model_validate(patient)

    async def get_patient(self, db: AsyncSession, patient_id: uuid.UUID) -> PatientResponse:
        result = await db.execute(select(Patient).where(Patient.id == patient_id))
        patient = result.scalar_one_or_none()
        if patient is None:
            raise NotFoundError(resource="patient", resource_id=str(patient_id))
        return PatientResponse.model_validate(patient)

    async def list_patients(
        self,
        db: AsyncSession,
        admitted_in: Optional[uuid.UUID] = None,
        limit: int = 20,
        cursor: Optional[str] = None,
        sort: str = "created_at_desc",
    ) -> Page[PatientResponse]:
        filters = []
        if admitted_in is not None:
            filters.append(Patient.admitted_in == admitted_in)

        rows, total, next_cursor, has_more = await paginate(
            db, Patient, filters, limit=limit, cursor=cursor, sort=sort
        )
        return Page[PatientResponse](
            items=[PatientResponse.model_validate(row) for row in rows],
            total_count=total,
            next_cursor=next_cursor,
            has_more=has_more,
        )

    # ── Medical Records ───────────────────────────────────────────────────

    async def create_medical_record(
        self, db: AsyncSession, data: MedicalRecordCreate
    ) -> MedicalRecordResponse:
        record = MedicalRecord(
            patient_name=data.patient_name,
            date_of_birth=data.date_of_birth,
            gender=data.gender,
            diagnosis=data.diagnosis,
            doctor=data.doctor,
            medications=[
                Medication(
                    name=med.name,
                    dosage=med.dosage,
                    frequency=med.frequency,
                    position=index,
                )
                for index, med in enumerate(data.medications)
            ],
        )
        db.add(record)
        await db.flush()
        logger.info(
            "Medical record %s created by doctor %s (%d medications)",
            record.id,
            record.doctor,
            len(record.medications),
        )
        return MedicalRecordResponse.model_validate(record)

    async def get_medical_record(
        self, db: AsyncSession, record_id: uuid.UUID
    ) -> MedicalRecordResponse:
        result = await db.execute(select(MedicalRecord).where(MedicalRecord.id == record_id))
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(resource="medical record", resource_id=str(record_id))
        return MedicalRecordResponse.model_validate(record)

    async def list_medical_records(
        self,
        db: AsyncSession,
        doctor: Optional[uuid.UUID] = None,
        limit: int = 20,
        cursor: Optional[str] = None,
        sort: str = "created_at_desc",
    ) -> Page[MedicalRecordResponse]:
        filters = []
        if doctor is not None:
            filters.append(MedicalRecord.doctor == doctor)

        rows, total, next_cursor, has_more = await paginate(
            db, MedicalRecord, filters, limit=limit, cursor=cursor, sort=sort
        )
        return Page[MedicalRecordResponse](
            items=[MedicalRecordResponse.model_validate(row) for row in rows],
            total_count=total,
            next_cursor=next_cursor,
            has_more=has_more,
        )


hospital_service = HospitalService()

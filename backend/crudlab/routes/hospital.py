"""
CrudLab Backend — Hospital Records Routes
==========================================

/api/v1/patients and /api/v1/medical-records. These collections are not
tied to the current user; access control is left to the gateway.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.database import get_db_session
from crudlab.dependencies import pagination_params
from crudlab.schemas.common import ApiResponse, ErrorResponse, Page, PaginationParams
from crudlab.schemas.hospital import (
    MedicalRecordCreate,
    MedicalRecordResponse,
    PatientCreate,
    PatientResponse,
)
from crudlab.services.hospital_service import hospital_service

router = APIRouter(prefix="/api/v1", tags=["Hospital"])

_NOT_FOUND = {404: {"description": "Not found", "model": ErrorResponse}}


@router.post("/patients", status_code=201, response_model=ApiResponse[PatientResponse])
async def create_patient(
    body: PatientCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PatientResponse]:
    patient = await hospital_service.create_patient(db, body)
    return ApiResponse[PatientResponse](
        status_code=201, data=patient, message="Patient created successfully"
    )


@router.get("/patients", response_model=ApiResponse[Page[PatientResponse]])
async def list_patients(
    response: Response,
    admitted_in: Optional[uuid.UUID] = Query(default=None, description="Hospital id filter"),
    page: PaginationParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Page[PatientResponse]]:
    result = await hospital_service.list_patients(
        db, admitted_in=admitted_in, limit=page.limit, cursor=page.cursor, sort=page.sort
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return ApiResponse[Page[PatientResponse]](
        status_code=200, data=result, message="Patients fetched successfully"
    )


@router.get(
    "/patients/{patient_id}",
    response_model=ApiResponse[PatientResponse],
    responses=_NOT_FOUND,
)
async def get_patient(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PatientResponse]:
    patient = await hospital_service.get_patient(db, patient_id)
    return ApiResponse[PatientResponse](
        status_code=200, data=patient, message="Patient fetched successfully"
    )


@router.post(
    "/medical-records",
    status_code=201,
    response_model=ApiResponse[MedicalRecordResponse],
)
async def create_medical_record(
    body: MedicalRecordCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MedicalRecordResponse]:
    record = await hospital_service.create_medical_record(db, body)
    return ApiResponse[MedicalRecordResponse](
        status_code=201, data=record, message="Medical record created successfully"
    )


@router.get("/medical-records", response_model=ApiResponse[Page[MedicalRecordResponse]])
async def list_medical_records(
    response: Response,
    doctor: Optional[uuid.UUID] = Query(default=None, description="Doctor id filter"),
    page: PaginationParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Page[MedicalRecordResponse]]:
    result = await hospital_service.list_medical_records(
        db, doctor=doctor, limit=page.limit, cursor=page.cursor, sort=page.sort
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return ApiResponse[Page[MedicalRecordResponse]](
        status_code=200, data=result, message="Medical records fetched successfully"
    )


@router.get(
    "/medical-records/{record_id}",
    response_model=ApiResponse[MedicalRecordResponse],
    responses=_NOT_FOUND,
)
async def get_medical_record(
    record_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MedicalRecordResponse]:
    record = await hospital_service.get_medical_record(db, record_id)
    return ApiResponse[MedicalRecordResponse](
        status_code=200, data=record, message="Medical record fetched successfully"
    )

"""
CrudLab Backend — User Account Routes
======================================

What:  /api/v1/users endpoints for the current user's account.
Who:   Every route except /register needs the X-User-ID header
       (see crudlab.dependencies.get_current_user).

Image uploads are multipart/form-data with a single file field
(`avatar` or `cover_image`). The file field is optional at the HTTP
level so a missing file gets the service's 400 message instead of 422.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.database import get_db_session
from crudlab.dependencies import get_current_user
from crudlab.models.user import User
from crudlab.schemas.common import ApiResponse, ErrorResponse
from crudlab.schemas.user import (
    ChangePasswordRequest,
    RegisterRequest,
    UpdateAccountRequest,
    UserResponse,
)
from crudlab.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Unknown or missing user", "model": ErrorResponse},
}


async def _read_upload(file: Optional[UploadFile]):
    if file is None:
        return None, None, None
    try:
        content = await file.read()
        logger.info(
            "Received upload: filename=%s, size=%d bytes",
            file.filename or "unknown",
            len(content),
        )
        return file.filename, content, file.size
    finally:
        await file.close()


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse[UserResponse],
    responses={400: _ERRORS[400], 409: {"description": "Email taken", "model": ErrorResponse}},
    summary="Register a user",
)
async def register_user(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    user = await user_service.register(
        db=db,
        full_name=body.full_name,
        email=body.email,
        password=body.password,
    )
    return ApiResponse[UserResponse](
        status_code=201, data=user, message="User registered successfully"
    )


@router.post(
    "/change-password",
    response_model=ApiResponse[dict],
    responses=_ERRORS,
    summary="Change the current user's password",
)
async def change_current_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[dict]:
    await user_service.change_password(
        db=db,
        user=user,
        old_password=body.old_password,
        new_password=body.new_password,
    )
    return ApiResponse[dict](status_code=200, data={}, message="Password changed successfully")


@router.get(
    "/current-user",
    response_model=ApiResponse[UserResponse],
    responses={401: _ERRORS[401]},
    summary="Get the current user",
)
async def get_current_user_details(
    user: User = Depends(get_current_user),
) -> ApiResponse[UserResponse]:
    return ApiResponse[UserResponse](
        status_code=200,
        data=UserResponse.model_validate(user),
        message="Current User fetched successfully",
    )


@router.patch(
    "/update-account",
    response_model=ApiResponse[UserResponse],
    responses={**_ERRORS, 409: {"description": "Email taken", "model": ErrorResponse}},
    summary="Update full name and email",
)
async def update_account_details(
    body: UpdateAccountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    updated = await user_service.update_account(
        db=db, user=user, full_name=body.full_name, email=body.email
    )
    return ApiResponse[UserResponse](
        status_code=200, data=updated, message="Account details updated successfully"
    )


@router.patch(
    "/avatar",
    response_model=ApiResponse[UserResponse],
    responses={**_ERRORS, 503: {"description": "Uploads suspended", "model": ErrorResponse}},
    summary="Upload a new avatar",
)
async def update_user_avatar(
    avatar: Optional[UploadFile] = File(default=None, description="Avatar image"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    filename, content, size = await _read_upload(avatar)
    updated = await user_service.update_avatar(
        db=db, user=user, filename=filename, content=content, content_length=size
    )
    return ApiResponse[UserResponse](
        status_code=200, data=updated, message="Avatar image updated successfully"
    )


@router.patch(
    "/cover-image",
    response_model=ApiResponse[UserResponse],
    responses={**_ERRORS, 503: {"description": "Uploads suspended", "model": ErrorResponse}},
    summary="Upload a new cover image",
)
async def update_user_cover_image(
    cover_image: Optional[UploadFile] = File(default=None, description="Cover image"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    filename, content, size = await _read_upload(cover_image)
    updated = await user_service.update_cover_image(
        db=db, user=user, filename=filename, content=content, content_length=size
    )
    return ApiResponse[UserResponse](
        status_code=200, data=updated, message="Cover image updated successfully"
    )

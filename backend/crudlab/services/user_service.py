"""
CrudLab Backend — User Service (Account Controllers)
=====================================================

What:  Registration, password change, account update and profile image
       updates for the current user.
Who:   Called by the /api/v1/users routes.

Image update flow (avatar / cover image):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Upload  │───▶│  Validate   │───▶│  Cloudinary  │───▶│  Update  │
    │  (Route) │    │  & Store    │    │  (MediaServ) │    │  User    │
    └──────────┘    │  (FileServ) │    └──────────────┘    └──────────┘
                    └─────────────┘
    The temp file is removed after the Cloudinary step whatever its outcome.

Stateless: the session and the current user are passed into every call.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.exceptions import (
    ConflictError,
    DatabaseError,
    MediaUploadError,
    ValidationError,
)
from crudlab.models.user import User
from crudlab.schemas.user import UserResponse
from crudlab.services.file_service import file_service
from crudlab.services.media_service import media_service
from crudlab.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class UserService:
    """
    Responsibilities:
        - register(): create an account with a hashed password
        - change_password(): verify the old password, store the new one
        - update_account(): replace full name and email
        - update_avatar() / update_cover_image(): upload and store image URLs
    """

    async def _email_taken(
        self, db: AsyncSession, email: str, exclude_id=None
    ) -> bool:
        query = select(func.count(User.id)).where(User.email == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await db.execute(query)
        return (result.scalar() or 0) > 0

    async def register(
        self,
        db: AsyncSession,
        full_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> UserResponse:
        """
        Raises:
            ValidationError: a field is missing or blank (→ 400)
            ConflictError: the email is already registered (→ 409)
        """
        if _blank(full_name) or _blank(email) or _blank(password):
            raise ValidationError(
                message="All fields are required",
                context={"fields": ["full_name", "email", "password"]},
            )

        email = _normalize_email(email)
        if await self._email_taken(db, email):
            raise ConflictError(message="User with this email already exists", field="email")

        user = User(
            full_name=full_name.strip(),
            email=email,
            password=await hash_password(password),
        )
        db.add(user)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e))
            raise DatabaseError(
                message="Something went wrong while registering the user",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return UserResponse.model_validate(user)

    async def change_password(
        self,
        db: AsyncSession,
        user: User,
        old_password: str,
        new_password: str,
    ) -> None:
        """
        Stores `new_password` after checking `old_password`.

        The new password is not validated beyond being present; only the
        old one is checked.

        Raises:
            ValidationError: old password does not match (→ 400)
        """
        if not await verify_password(old_password, user.password):
            raise ValidationError(message="Old invalid password", field="old_password")

        user.password = await hash_password(new_password)
        await db.flush()
        logger.info("Password changed for user %s", user.id)

    async def update_account(
        self,
        db: AsyncSession,
        user: User,
        full_name: Optional[str],
        email: Optional[str],
    ) -> UserResponse:
        """
        Replace the user's full name and email. Both must be present.

        Raises:
            ValidationError: either field missing or blank (→ 400)
            ConflictError: email belongs to another user (→ 409)
        """
        if _blank(full_name) or _blank(email):
            raise ValidationError(
                message="All fields are required",
                context={"fields": ["full_name", "email"]},
            )

        email = _normalize_email(email)
        if email != user.email and await self._email_taken(db, email, exclude_id=user.id):
            raise ConflictError(message="User with this email already exists", field="email")

        user.full_name = full_name.strip()
        user.email = email
        await db.flush()
        # flush leaves onupdate columns expired; reload before serializing
        await db.refresh(user)
        logger.info("Account details updated for user %s", user.id)
        return UserResponse.model_validate(user)

    async def _upload_image(
        self,
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int],
        missing_message: str,
    ) -> str:
        """Validate → temp store → Cloudinary → cleanup. Returns the image URL."""
        if not filename or content is None:
            raise ValidationError(message=missing_message, field="file")

        local_path = await file_service.validate_and_store(
            filename=filename,
            content=content,
            content_length=content_length,
        )
        try:
            uploaded = await media_service.upload(local_path)
        finally:
            await file_service.cleanup_file(local_path)

        if uploaded is None or not uploaded.url:
            raise MediaUploadError(message="Error while uploading on Cloudinary")
        return uploaded.url

    async def update_avatar(
        self,
        db: AsyncSession,
        user: User,
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int] = None,
    ) -> UserResponse:
        """
        Raises:
            ValidationError: no file, or an unsupported / oversized file (→ 400)
            MediaUploadError: Cloudinary returned no URL (→ 400)
            CircuitBreakerOpenError: uploads are suspended (→ 503)
        """
        user.avatar = await self._upload_image(
            filename, content, content_length, "Avatar file is missing"
        )
        await db.flush()
        await db.refresh(user)
        logger.info("Avatar updated for user %s", user.id)
        return UserResponse.model_validate(user)

    async def update_cover_image(
        self,
        db: AsyncSession,
        user: User,
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int] = None,
    ) -> UserResponse:
        """Same contract as update_avatar, for the cover image."""
        user.cover_image = await self._upload_image(
            filename, content, content_length, "Cover image file is missing"
        )
        await db.flush()
        await db.refresh(user)
        logger.info("Cover image updated for user %s", user.id)
        return UserResponse.model_validate(user)


user_service = UserService()

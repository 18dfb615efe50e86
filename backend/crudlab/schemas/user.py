"""
CrudLab Backend — User Schemas
===============================

Request bodies keep their fields Optional on purpose: a missing or blank
field must produce the service's 400 "All fields are required" answer, not
FastAPI's generic 422.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """A user as the API exposes it. The password hash is never included."""
    id: uuid.UUID
    full_name: str
    email: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RegisterRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = Field(default=None, max_length=128)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(description="The user's current password")
    new_password: str = Field(min_length=1, max_length=128, description="The replacement password")


class UpdateAccountRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)

"""
CrudLab Backend — Shared Response Schemas
==========================================

What:  The response envelope, the error body, pagination and health models.
Why:   Every endpoint except the plain joke routes answers with the same
       envelope, so clients parse one shape:

        {"status_code": 200, "data": {...}, "message": "...", "success": true}

       Errors use ErrorResponse with success=false.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, computed_field, field_validator

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Success envelope returned by the resource endpoints.

    success is derived from status_code, so a handler can never send a 4xx
    code flagged as successful.
    """
    status_code: int = Field(description="HTTP status code mirrored in the body")
    data: T = Field(description="Response payload")
    message: str = Field(default="Success", description="Human-readable outcome")

    @computed_field
    @property
    def success(self) -> bool:
        return self.status_code < 400


class Page(BaseModel, Generic[T]):
    """
    One page of a cursor-paginated listing.

    next_cursor is "<created_at ISO 8601>|<id>" of the last item; pass it
    back as ?cursor= to get the following page. It is null on the last page.
    """
    items: List[T] = Field(description="Items on this page")
    total_count: int = Field(description="Total number of items matching the filters")
    next_cursor: Optional[str] = Field(default=None, description="Cursor for the next page")
    has_more: bool = Field(description="Whether more pages are available")


class PaginationParams(BaseModel):
    """Validated list query parameters shared by every list endpoint."""
    limit: int = Field(default=20, ge=1, le=100, description="Items per page (max 100)")
    cursor: Optional[str] = Field(default=None, description="Pagination cursor (ISO datetime)")
    sort: str = Field(
        default="created_at_desc",
        description="Sort order: created_at_desc (newest first) or created_at_asc",
    )

    @field_validator("sort")
    @classmethod
    def validate_sort(cls, v: str) -> str:
        valid = {"created_at_desc", "created_at_asc"}
        if v not in valid:
            raise ValueError(f"Invalid sort '{v}'. Must be one of: {sorted(valid)}")
        return v


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "status_code": 400,
            "error": "validation_error",
            "message": "All fields are required",
            "details": {"fields": ["full_name", "email"]},
            "success": false,
            "request_id": "1a2b3c4d"
        }
    """
    status_code: int = Field(description="HTTP status code")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    success: bool = Field(default=False)
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    media: str = Field(description="Media upload status: available, unconfigured, circuit_open")
    uptime_seconds: float = Field(description="Seconds since service started")
    checked_at: datetime = Field(description="When this check ran (UTC)")

"""
CrudLab Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions, each bound to an HTTP status.
Why:   Services raise these instead of building error responses by hand;
       the global handlers registered in main.py turn them into the
       standard error envelope.
How:   Each exception carries a user-facing message and an optional context
       dict. The context is logged, and only returned to the client for the
       4xx classes where it helps the caller fix the request.

Exception Hierarchy:
    CrudLabError (base)
    ├── ValidationError          → 400 Bad Request
    ├── MediaUploadError         → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── CircuitBreakerOpenError  → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class CrudLabError(Exception):
    """
    Base exception for all CrudLab application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
        status_code / error_code: How the global handler renders it
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CrudLabError):
    """
    Raised when client input fails a business rule.

    Pydantic schema violations never reach this class; FastAPI answers
    those with 422 on its own. This one covers rules the services enforce,
    e.g. "All fields are required" on account updates.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class MediaUploadError(CrudLabError):
    """Cloudinary rejected the file or returned no URL for it."""

    status_code = 400
    error_code = "media_upload_error"

    def __init__(
        self,
        message: str = "Error while uploading on Cloudinary",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(CrudLabError):
    """The request does not identify a known user."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(CrudLabError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; the service layer converts
    that None into this exception so routes stay free of status handling.
    Rows owned by another user are reported the same way.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(CrudLabError):
    """A unique value (e.g. an email address) is already taken."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(CrudLabError):
    """Client sent more than rate_limit_requests in the current window."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class FileStorageError(CrudLabError):
    """
    Raised when the temp upload directory cannot be written.

    The client gets the generic message; the path and OS error stay in the
    server log.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(CrudLabError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic. Constraint names,
    SQL and driver errors are logged server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CircuitBreakerOpenError(CrudLabError):
    """
    Raised while the media circuit breaker is OPEN.

    CLOSED → OPEN after cb_failure_threshold consecutive upload failures;
    OPEN → HALF_OPEN once cb_recovery_timeout seconds pass; HALF_OPEN lets a
    single upload through and closes again on success.
    """

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Media upload service is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time

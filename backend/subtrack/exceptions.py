"""
SubTrack Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the error scenarios the API exposes.
How:   Each exception carries a client-safe message and an optional context
       dict. Global exception handlers (registered in main.py) catch these
       and return the `{success: false, ...}` envelope with the right status.
Who:   Raised by services, models, dependencies and middleware.

Exception Hierarchy:
    SubTrackError (base)
    ├── ValidationError          → 400 Bad Request (field-level errors)
    ├── ConflictError            → 400 Bad Request (duplicate resource)
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, List, Optional


class SubTrackError(Exception):
    """
    Base exception for all SubTrack application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SubTrackError):
    """
    Raised when client input fails validation.

    HTTP:    400 Bad Request

    Carries a list of field-level errors shaped like the ones produced from
    pydantic's RequestValidationError, so clients see a single format:

        {"field": "cost", "message": "Cost must be a positive number", "location": "body"}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        if errors is None:
            errors = [{"field": field, "message": message, "location": "body"}] if field else []
        self.errors = errors


class ConflictError(SubTrackError):
    """
    Raised when a write would duplicate a unique resource.

    When:    Registering with an e-mail that already has an account.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(SubTrackError):
    """
    Raised when the caller cannot be identified.

    When:    Missing bearer token, malformed/expired token, wrong credentials.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Not authenticated",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SubTrackError):
    """
    Raised when a requested resource does not exist for the caller.

    HTTP:    404 Not Found

    The message never includes the requested id, and the same exception is
    raised whether the row is missing, soft-deleted, or owned by another
    user. Only the server-side context records the id.
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(SubTrackError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Driver errors,
    statement text and constraint names go to the server log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(SubTrackError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after

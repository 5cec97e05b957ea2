"""
Solo Parent Backend: Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, one per error category.
How:   Each exception carries a user-facing message and an optional context
       dict. Handlers registered in main.py turn them into structured JSON
       responses with the matching HTTP status code.
Who:   Raised by services and middleware; caught by the global handlers.

Exception Hierarchy:
    SoloParentError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (conflicting entity attached)
    ├── InvalidTransitionError   → 409 Conflict (workflow state machine)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── BlobStorageError         → 502 Bad Gateway
    └── DatabaseError            → 500 Internal Server Error
        └── LockContentionError  → 500, "please try again" after lock retries
"""

from typing import Any, Dict, Optional


class SoloParentError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only some handlers return it)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SoloParentError):
    """
    Raised when client input fails a business rule.

    Missing required fields, unknown document types, an end time that is not
    after the start time. FastAPI keeps answering schema-level problems with 422.
    """

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


class AuthenticationError(SoloParentError):
    """Credentials did not match (wrong password, unknown login)."""

    def __init__(
        self,
        message: str = "Invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(SoloParentError):
    """The caller is known but not allowed to perform the operation."""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SoloParentError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    NotFoundError so routes never branch on None.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(SoloParentError):
    """
    Raised when a write collides with existing state.

    Example: a scheduled event inside the one-hour buffer of another event.
    `conflict` holds a serializable description of the colliding entity and is
    returned to the client under `details.conflict`.
    """

    def __init__(
        self,
        message: str = "The request conflicts with existing data",
        conflict: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if conflict is not None:
            ctx["conflict"] = conflict
        super().__init__(message=message, context=ctx)
        self.conflict = conflict


class InvalidTransitionError(SoloParentError):
    """A workflow event is not allowed from the case's current status."""

    def __init__(
        self,
        current: str,
        event: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Cannot apply '{event}' to a case in status '{current}'"
        ctx = context or {}
        ctx.update({"current_status": current, "event": event})
        super().__init__(message=message, context=ctx)
        self.current = current
        self.event = event


class RateLimitExceededError(SoloParentError):
    """
    Raised when a client exceeds the credential endpoint rate limit.

    Response includes a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many attempts. Please wait {retry_after} seconds before trying again."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class BlobStorageError(SoloParentError):
    """The image storage service rejected or failed an upload."""

    def __init__(
        self,
        message: str = "Image upload failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SoloParentError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; the driver error is
    kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LockContentionError(DatabaseError):
    """
    Raised when a transactional unit kept hitting lock-wait timeouts or
    deadlocks until the retry budget ran out.
    """

    def __init__(
        self,
        operation: str,
        attempts: int = 0,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"operation": operation, "attempts": attempts})
        super().__init__(
            message=f"Database error while {operation}. Please try again.",
            context=ctx,
        )
        self.operation = operation

"""
Book Hub Backend - Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions, one per failure class of the API.
How:   Each exception carries a user-facing message, an optional context dict
       (logged, never returned verbatim), the HTTP status it maps to and a
       machine-readable error code. Global handlers in main.py turn them into
       the JSON envelope.
Who:   Raised by services and request dependencies; caught by global handlers.

Exception Hierarchy:
    BookHubError (base)
    ├── ValidationError        → 400 Bad Request (missing/malformed input)
    ├── UnauthorizedError      → 401 Unauthorized (bad credentials or token)
    ├── ForbiddenError         → 403 Forbidden (authenticated, not permitted)
    ├── NotFoundError          → 404 Not Found
    ├── ConflictError          → 409 Conflict (duplicate unique field)
    ├── PayloadTooLargeError   → 413 Payload Too Large
    └── DatabaseError          → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class BookHubError(Exception):
    """
    Base exception for all Book Hub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
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


class ValidationError(BookHubError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, unknown listing type, email outside the
             allowed domain, negative price.
    HTTP:    400 Bad Request
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


class UnauthorizedError(BookHubError):
    """
    Raised when credentials or a bearer token are missing or invalid.

    Login failures use one message for "unknown email" and "wrong password"
    so responses never reveal whether an account exists.
    HTTP:    401 Unauthorized
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(BookHubError):
    """
    Raised when an authenticated caller acts on a resource it does not own.

    When:    DELETE /api/books/{id} by someone other than the listing owner.
    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to modify this resource.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BookHubError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    NotFoundError so the route layer stays free of lookups.
    HTTP:    404 Not Found
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


class ConflictError(BookHubError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Signing up with an email that already has an account.
    HTTP:    409 Conflict
    """

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PayloadTooLargeError(BookHubError):
    """
    Raised when a request body exceeds the configured ceiling.

    HTTP:    413 Payload Too Large
    """

    status_code = 413
    error_code = "payload_too_large"

    def __init__(
        self,
        max_size: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Request body is too large. Maximum allowed size is "
            f"{max_size // (1024 * 1024)}MB."
        )
        ctx = context or {}
        ctx["max_size"] = max_size
        super().__init__(message=message, context=ctx)
        self.max_size = max_size


class DatabaseError(BookHubError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, pool timeout, unexpected constraint error.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        exception type is kept in `context` and logged server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

"""
Book Hub Backend - Shared Pydantic Schemas
============================================

What:  The response envelope, error payload, health document and the camelCase
       base model every API schema derives from.

Envelope contract:
    Every /api response, success or failure, has the shape

        {"success": true,  "message": "Listing published.", "data": {...}}
        {"success": false, "message": "Invalid credentials.",
         "data": {"error": "unauthorized", "requestId": "a1b2c3d4"}}

    Some historical clients received bare arrays from GET /api/books; those
    responses are now wrapped too.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(CamelModel, Generic[T]):
    """Uniform `{success, message, data}` wrapper."""

    success: bool = Field(default=True)
    message: str = Field(default="Success")
    data: Optional[T] = Field(default=None)


def ok(data=None, message: str = "Success") -> Envelope:
    """Build a success envelope."""
    return Envelope(success=True, message=message, data=data)


class ErrorData(CamelModel):
    """
    Payload carried in `data` of a failed response.

    Fields:
        error: Machine-readable error code (e.g. "validation_error", "not_found")
        request_id: Correlation ID for tracing this error in server logs
        details: Optional extra context (e.g. which field failed validation)
    """

    error: str = Field(description="Machine-readable error code")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    details: Optional[dict] = Field(default=None, description="Additional error context")


class ErrorResponse(CamelModel):
    """Error envelope, documented in OpenAPI for every route."""

    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    data: ErrorData


def error_body(message: str, error: str, request_id: Optional[str], details: Optional[dict] = None) -> dict:
    """Serialize an error envelope for a JSONResponse."""
    return ErrorResponse(
        message=message,
        data=ErrorData(error=error, request_id=request_id or None, details=details or None),
    ).model_dump(by_alias=True, exclude_none=True)


class HealthResponse(BaseModel):
    """
    Health check document returned by GET /health.

    A backend that cannot reach its database cannot serve any listing,
    so the database probe decides the overall status.
    """

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")

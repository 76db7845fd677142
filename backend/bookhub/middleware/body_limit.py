"""
Book Hub Backend - Request Body Size Middleware
=================================================

What:  Rejects requests whose declared Content-Length exceeds MAX_BODY_SIZE.
       Listing bodies embed base64 images inline; MAX_BODY_SIZE caps what a
       single request may ask the JSON parser to buffer.
How:   Checks the Content-Length header before the body is read and answers
       413 with the standard error envelope.

Limitation:
    Chunked uploads without Content-Length are not counted here.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bookhub.config import settings
from bookhub.exceptions import PayloadTooLargeError, ValidationError
from bookhub.schemas.common import error_body

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Enforces settings.max_body_size on every request that declares a length."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        declared = request.headers.get("content-length")
        if declared is None:
            return await call_next(request)

        try:
            size = int(declared)
        except ValueError:
            exc = ValidationError(message="Invalid Content-Length header.")
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc.message, exc.error_code, request.headers.get("X-Request-ID")),
            )

        if size > settings.max_body_size:
            exc = PayloadTooLargeError(max_size=settings.max_body_size)
            logger.warning(
                "Rejected %s %s: body of %d bytes exceeds %d",
                request.method,
                request.url.path,
                size,
                settings.max_body_size,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(
                    exc.message,
                    exc.error_code,
                    request.headers.get("X-Request-ID"),
                    details={"maxSize": settings.max_body_size},
                ),
            )

        return await call_next(request)

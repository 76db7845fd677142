"""
Book Hub Backend - Request Logging Middleware
===============================================

What:  One access-log line per HTTP request with status and duration.
Who:   Applied to every request; runs inside RequestIDMiddleware so the
       request ID is available.

Log line:
    POST /api/books 201 35.2ms [a1b2c3d4] from 192.168.1.100 user=3f0e0a3e-...

    `user` is the verified token subject, or "-" for anonymous requests.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, IP, request ID, user ID
    ❌ Don't log: request body (passwords, inline images), Authorization header
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from bookhub.middleware.request_id import request_id_var

logger = logging.getLogger("bookhub.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status code, duration and request ID.

    Level follows the status: 5xx → ERROR, 4xx → WARNING, else INFO.
    Health checks are not logged.
    """

    SKIPPED_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path in self.SKIPPED_PATHS:
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        # Set by get_optional_identity when a valid token was presented
        identity = getattr(request.state, "identity", None)
        user_id = identity.user_id if identity is not None else "-"

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s user=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_id,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )

        return response

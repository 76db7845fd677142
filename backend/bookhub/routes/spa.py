"""
Book Hub Backend - Static Files & Single-Page Fallback
========================================================

What:  Last-resort routes.
       - Any method on /api/<unknown>  → 404 error envelope
       - GET on any other path         → the file under STATIC_ROOT if it exists,
                                         else STATIC_ROOT/index.html

Security:
    Resolved paths must stay inside STATIC_ROOT; anything escaping it
    (../../etc/passwd) falls through to the entry document instead.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse

from bookhub.config import settings
from bookhub.exceptions import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)

ENTRY_DOCUMENT = "index.html"
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@router.api_route("/api", methods=ALL_METHODS)
@router.api_route("/api/{rest:path}", methods=ALL_METHODS)
async def api_not_found(request: Request) -> None:
    raise NotFoundError(resource="endpoint", resource_id=request.url.path)


@router.get("/{full_path:path}")
async def serve_client(full_path: str) -> FileResponse:
    """Serve a static asset, or the SPA entry document for client-side routes."""
    static_root = Path(settings.static_root).resolve()

    if full_path:
        try:
            candidate = (static_root / full_path).resolve()
            is_asset = candidate.is_relative_to(static_root) and candidate.is_file()
        except (ValueError, OSError):
            # Null bytes or over-long names cannot be a file on disk
            logger.info("Unresolvable client path: %r", full_path)
            is_asset = False
        if is_asset:
            return FileResponse(path=str(candidate))

    entry = static_root / ENTRY_DOCUMENT
    if not entry.is_file():
        logger.error("SPA entry document missing: %s", entry)
        raise NotFoundError(resource="page", resource_id=f"/{full_path}")

    return FileResponse(path=str(entry), media_type="text/html")

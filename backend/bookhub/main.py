"""
Book Hub Backend - FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan handler owns configuration checks and the database engine.
Who:   uvicorn (`uvicorn bookhub.main:app`) or `python -m bookhub.main`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌─────────┐ ┌────────────┐  │
    │  │ Body Limit │→│  Req ID  │→│ Logging │→│ GZip/CORS  │  │
    │  └────────────┘ └──────────┘ └─────────┘ └────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌────────────┐ ┌────────────┐ ┌─────────┐ ┌──────────┐  │
    │  │ /api/auth  │ │ /api/books │ │ /health │ │ SPA / 404│  │
    │  └────────────┘ └────────────┘ └─────────┘ └──────────┘  │
    │                                                          │
    │  Exception Handlers → {success: false, message, data}    │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration; abort startup if DATABASE_URL/JWT_SECRET missing
    3. Create the engine and any missing tables

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookhub import __version__
from bookhub.config import settings
from bookhub.database import create_tables, dispose_engine, init_engine
from bookhub.exceptions import BookHubError, DatabaseError
from bookhub.middleware.body_limit import BodySizeLimitMiddleware
from bookhub.middleware.logging import RequestLoggingMiddleware
from bookhub.middleware.request_id import RequestIDMiddleware, request_id_var
from bookhub.routes import auth, books, health, spa
from bookhub.schemas.common import error_body

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party loggers that log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging → configuration check → engine → tables.
    Shutdown: dispose the engine.

    A missing DATABASE_URL or JWT_SECRET is fatal: the ValueError propagates
    and the server exits instead of accepting traffic it cannot serve.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Book Hub Backend %s starting up...", __version__)

    try:
        settings.validate_required()
    except ValueError as e:
        logger.critical("FATAL: %s", str(e))
        raise

    init_engine()
    await create_tables()

    logger.info(
        "Auth policy: %s",
        "token required for writes" if settings.auth_required else "anonymous writes allowed",
    )
    if settings.allowed_email_domain:
        logger.info("Signup restricted to %s addresses", settings.allowed_email_domain)
    logger.info("Serving client from %s", settings.static_root)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Book Hub Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to status codes and the error envelope.

    Handler hierarchy:
        DatabaseError           → 500, generic message, context logged
        BookHubError (base)     → exc.status_code (400/401/403/404/409/413)
        RequestValidationError  → 400 (malformed JSON or field types)
        StarletteHTTPException  → its own status (405 and friends)
        Exception (fallback)    → 500, stack trace logged only

    Internal details (SQL, stack traces, file paths) never reach the response.
    """

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.error_code, rid),
        )

    @app.exception_handler(BookHubError)
    async def handle_app_error(request: Request, exc: BookHubError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        details = None
        if isinstance(exc.context.get("field"), str):
            details = {"field": exc.context["field"]}
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.error_code, rid, details=details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        logger.info("[%s] Request validation failed: %s", rid, errors)
        return JSONResponse(
            status_code=400,
            content=error_body("Invalid request.", "validation_error", rid, details={"errors": errors}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), "http_error", rid),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "An unexpected error occurred. Please try again.",
                "internal_server_error",
                rid,
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers into an app."""
    app = FastAPI(
        title="Book Hub API",
        description=(
            "Marketplace for second-hand books: sell, buy or exchange listings "
            "with a per-listing message thread."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added runs first).

    # CORS: browsers may call the API from any configured origin.
    # Credentials cannot be combined with a wildcard origin.
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )

    # Listing payloads with inline images compress well
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)

    # First to execute: reject oversize bodies before anything else runs
    app.add_middleware(BodySizeLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(books.router)
    app.include_router(health.router)
    # Catch-all routes, must stay last
    app.include_router(spa.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookhub.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
    )

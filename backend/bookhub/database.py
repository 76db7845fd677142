"""
Book Hub Backend - Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   `init_engine()` builds the engine and session factory once per process
       (called from the lifespan handler, or from test fixtures). Each request
       gets its own session which commits on success and rolls back on error.
Who:   Route handlers via `Depends(get_db_session)`; main.py for lifecycle.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour
    pool_timeout:      Seconds a request waits for a free connection

    SQLite URLs (tests) use SQLAlchemy's default pool without these options.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from bookhub.config import settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models share this metadata; `create_tables()` issues CREATE TABLE
    IF NOT EXISTS for every table registered on it.
    """
    pass


# ── Engine & Session Factory ──────────────────────────────────────────────
# Process-wide; populated by init_engine().
engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def init_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine and session factory.

    Args:
        database_url: Override for settings.database_url (used in tests).

    Returns:
        The newly created engine, also stored in the module globals.
    """
    global engine, async_session_factory

    url = database_url or settings.database_url
    options = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        # SQL logging is only useful while debugging queries
        "echo": settings.log_level == "DEBUG",
    }
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
            pool_timeout=settings.db_timeout,
        )

    engine = create_async_engine(url, **options)

    # expire_on_commit=False: ORM objects stay readable after the request's
    # commit, when response models are built from them.
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info("Database engine initialized (%s)", engine.url.render_as_string(hide_password=True))
    return engine


async def create_tables() -> None:
    """
    Create all tables that do not exist yet.

    Idempotent; there is no migration history, the models are the schema.
    """
    # Register models on Base.metadata
    from bookhub.models import listing, user  # noqa: F401

    if engine is None:
        raise RuntimeError("init_engine() must be called before create_tables()")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/books")
        async def list_books(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    if async_session_factory is None:
        raise RuntimeError("Database engine is not initialized")

    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close all pooled connections. Called during application shutdown."""
    global engine, async_session_factory

    if engine is not None:
        await engine.dispose()
    engine = None
    async_session_factory = None

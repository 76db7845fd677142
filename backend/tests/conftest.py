"""
Book Hub Backend - Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Tests run against a throwaway SQLite database (aiosqlite) created fresh
       for every test; HTTP tests drive the ASGI app in-process with HTTPX.

Fixture Hierarchy:
    Function-scoped:
    ├── db_engine: engine + tables, dropped after the test
    ├── db_session: AsyncSession on db_engine
    ├── mock_db_session: AsyncMock session (no DB) for failure-path tests
    ├── identity / other_identity: registered users as verified Identities
    ├── demo_mode: AUTH_REQUIRED=false for one test
    ├── static_root: temp SPA root with index.html and an asset
    ├── sample_image_b64: small base64 data URL
    └── test_client: HTTPX AsyncClient bound to the app
"""

import base64
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Environment must be in place before bookhub.config is imported
_TEST_DIR = tempfile.mkdtemp(prefix="bookhub_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-0123456789abcdef"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTH_REQUIRED"] = "true"
os.environ["ALLOWED_EMAIL_DOMAIN"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bookhub import database
from bookhub.config import settings
from bookhub.schemas.auth import Identity
from bookhub.services.credential_service import credential_service


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """Fresh schema per test; tables are dropped on teardown."""
    engine = database.init_engine(settings.database_url)
    await database.create_tables()
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(database.Base.metadata.drop_all)
    await database.dispose_engine()


@pytest_asyncio.fixture
async def db_session(db_engine):
    async with database.async_session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Identity Fixtures
# ══════════════════════════════════════════════════════════════════════════

async def _register(email: str, name: str, password: str = "s3cret-pass") -> Identity:
    async with database.async_session_factory() as session:
        result = await credential_service.register(session, email, password, name)
        await session.commit()
    return credential_service.verify(result.token)


@pytest_asyncio.fixture
async def identity(db_engine) -> Identity:
    return await _register("alice@example.com", "Alice")


@pytest_asyncio.fixture
async def other_identity(db_engine) -> Identity:
    return await _register("bob@example.com", "Bob")


# ══════════════════════════════════════════════════════════════════════════
# Settings Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def demo_mode(monkeypatch):
    """Anonymous listing writes allowed, as in AUTH_REQUIRED=false deployments."""
    monkeypatch.setattr(settings, "auth_required", False)


@pytest.fixture
def static_root(tmp_path, monkeypatch):
    root = tmp_path / "static"
    root.mkdir()
    (root / "index.html").write_text("<!doctype html><title>Book Hub</title>")
    (root / "app.css").write_text("body { margin: 0; }")
    monkeypatch.setattr(settings, "static_root", str(root))
    return root


# ══════════════════════════════════════════════════════════════════════════
# Payload Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_image_b64():
    """Smallest valid JPEG (SOI + JFIF header + EOI) as a data URL."""
    jpeg = (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )
    return "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    ASGITransport does not run the lifespan; db_engine has already
    initialized the engine and tables.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from bookhub.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

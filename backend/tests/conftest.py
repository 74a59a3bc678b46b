"""
Wishlist Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the test suite.
How:   Integration fixtures run against a throwaway SQLite database
       (aiosqlite) and a LocalObjectStore, both under pytest's tmp_path, so
       every test gets real transactions and real files with no external
       services.

Fixture Hierarchy (all function-scoped):
    engine ──▶ session_factory ──┐
    object_store ────────────────┼──▶ location_service ──┐
    auth_service ────────────────┴───────────────────────┼──▶ test_client
    sample_image_bytes, sample_png_bytes, staff_headers  │
"""

import base64
import os
import tempfile

# Settings are read at import time; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="wishlist_test_")
os.environ["STAFF_PASSWORD"] = "test-password"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from wishlist.database import Base, create_session_factory
from wishlist.services.auth_service import AuthService
from wishlist.services.location_service import LocationService
from wishlist.services.object_store import LocalObjectStore
from wishlist.services.photo_service import PhotoService

import wishlist.models  # noqa: F401

TEST_BUCKET = "wishlist-images"
TEST_PUBLIC_BASE_URL = "http://test/api/files"
STAFF_LOGIN = "staff"
STAFF_PASSWORD = "test-password"


# ══════════════════════════════════════════════════════════════════════════
# Database & Storage
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions use separate connections."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'wishlist.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def object_store(tmp_path):
    """Local store with instant retries."""
    return LocalObjectStore(
        root=str(tmp_path / "storage"),
        bucket=TEST_BUCKET,
        public_base_url=TEST_PUBLIC_BASE_URL,
        max_attempts=2,
        min_wait=0,
        max_wait=0,
    )


@pytest.fixture
def location_service(session_factory, object_store):
    return LocationService(
        session_factory=session_factory,
        object_store=object_store,
        photo_service=PhotoService(max_file_size=1_048_576),
        pending_timeout=900,
    )


@pytest.fixture
def auth_service():
    return AuthService(
        login=STAFF_LOGIN,
        password=STAFF_PASSWORD,
        secret_key="test-secret-key",
        expiry_minutes=5,
    )


# ══════════════════════════════════════════════════════════════════════════
# Sample Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI + JFIF header + EOI. libmagic reads it as image/jpeg."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def sample_png_bytes():
    """A real 1x1 PNG."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(engine, object_store, location_service, auth_service):
    """
    HTTPX client bound to the app with test services on app.state.

    ASGITransport does not run the lifespan, so the state it would build is
    installed here instead.
    """
    from wishlist.main import app

    app.state.engine = engine
    app.state.object_store = object_store
    app.state.location_service = location_service
    app.state.auth_service = auth_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def staff_headers(auth_service):
    token = auth_service.sign_in(STAFF_LOGIN, STAFF_PASSWORD)
    return {"Authorization": f"Bearer {token}"}

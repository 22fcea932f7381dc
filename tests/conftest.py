"""
Sample API - Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set before any sample_api import so the
       settings singleton and the engine pick up the test database.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── sample_row:      transient Sample ORM object
    ├── database:        fresh SQLite schema per test (real engine, aiosqlite)
    ├── test_client:     httpx AsyncClient wired to a new app via ASGITransport
    ├── make_context:    RequestContext factory for chain/validator tests
    ├── admin_token / user_token: signed bearer tokens
    └── bearer:          token → Authorization header
"""

import os
import tempfile

# Before any sample_api import
_TEST_DB = os.path.join(tempfile.mkdtemp(prefix="sample_api_test_"), "test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256-signing"
os.environ["SECURE_ACTION_ROLES"] = "admin"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession; no database needed.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = sample
        result = await sample_service.get_sample(mock_db_session, sample_id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_row():
    """A transient Sample ORM object, as a query would return it."""
    from sample_api.models.sample import Sample

    now = datetime.now(timezone.utc)
    return Sample(
        id=uuid4(),
        name="Alpha",
        description="first sample",
        is_active=True,
        deleted_at=None,
        created_at=now,
        updated_at=now,
    )


@pytest_asyncio.fixture
async def database():
    """Create the schema on the test SQLite file, drop it afterwards."""
    from sample_api.database import Base, engine
    from sample_api.models.sample import Sample  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient talking to a freshly built app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from sample_api.main import create_app

    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_context():
    """Build a RequestContext without going through HTTP."""
    from sample_api.routing.context import RequestContext

    def _make(method="GET", path="/", **kwargs):
        return RequestContext(method=method, path=path, **kwargs)

    return _make


@pytest.fixture
def admin_token():
    from sample_api.services.auth import create_access_token
    return create_access_token("alice", roles=["admin"])


@pytest.fixture
def user_token():
    from sample_api.services.auth import create_access_token
    return create_access_token("bob", roles=["viewer"])


@pytest.fixture
def bearer():
    """bearer(token) -> Authorization header dict."""
    return lambda token: {"Authorization": f"Bearer {token}"}

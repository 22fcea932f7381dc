"""
Sample API - Database Session Management
=========================================

What:  Async SQLAlchemy engine, session factory, and a per-request session helper.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling; the dispatch endpoint
       opens one session per request and closes it when the response is built.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite (used by the test suite) ignores pool sizing, so those options are
    only passed for server databases.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from sample_api.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: services return attributes after committing
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


# ── Per-request Session ───────────────────────────────────────────────────
@asynccontextmanager
async def request_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide one database session for a single dispatched request.

    What:    Opens a session, yields it, and always closes it.
    Who:     The dispatch endpoint (routing/endpoint.py), once per request.

    Transaction rules:
        - Services commit their own mutations.
        - Anything left uncommitted (a failed chain, a cancelled chain after
          client disconnect) is rolled back here.
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close every pooled connection; called during application shutdown."""
    await engine.dispose()

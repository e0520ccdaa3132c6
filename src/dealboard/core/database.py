"""Async SQLAlchemy engine and session factory.

Provides:
- Base: Declarative base for the organizations, accounts and deals tables
- get_engine(): Lazily created engine singleton built from DATABASE_URL
- get_session(): Session factory used by repositories and request dependencies
- session_scope(): Async context manager over a session factory
- init_db() / close_db(): Table creation on startup, engine disposal on shutdown
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from src.dealboard.config import get_settings

logger = structlog.get_logger(__name__)

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: AsyncEngine | None = None


def _engine_kwargs(database_url: str) -> dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_size": 20, "max_overflow": 10}

    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live and die with their connection, so every
    # checkout must hand back the same one.
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


def get_engine() -> AsyncEngine:
    """Get or create the async engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            **_engine_kwargs(settings.DATABASE_URL),
        )

        logger.info("database.engine_created", dialect=_engine.dialect.name)

    return _engine


# ── Declarative Base ────────────────────────────────────────────────────────


class Base(DeclarativeBase):
    """Base class for all dealboard models."""


# ── Session Factory ─────────────────────────────────────────────────────────


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession bound to the engine singleton."""
    engine = get_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@asynccontextmanager
async def session_scope(
    session_factory: Callable[..., AsyncGenerator[AsyncSession, None]] = get_session,
) -> AsyncIterator[AsyncSession]:
    """Open one session from a generator factory and close it on exit."""
    sessions = session_factory()
    try:
        yield await anext(sessions)
    finally:
        await sessions.aclose()


# ── Database Initialization ─────────────────────────────────────────────────


async def init_db() -> None:
    """Create all tables if they don't exist."""
    # Register the models on Base.metadata before create_all.
    from src.dealboard.deals import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None

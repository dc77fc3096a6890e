# app/db/session.py
from __future__ import annotations

"""
ALPHA — Database Engine & Session Dependencies

- One async engine/session factory for FastAPI, background resumes and tests.
- Postgres (asyncpg) gets a tuned pool; SQLite (aiosqlite) gets foreign keys
  switched on so `ON DELETE CASCADE` behaves like it does on Postgres.
"""

from typing import Any, AsyncGenerator, Dict
import logging

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger("alpha.db")

ASYNC_DATABASE_URL: str = settings.async_database_url

# Pool knobs (ignored for SQLite)
_POOL_PRE_PING = True
_POOL_RECYCLE = 1800
_POOL_TIMEOUT = 30
_POOL_SIZE = 10
_MAX_OVERFLOW = 20


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every new SQLite connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _record) -> None:  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, **overrides: Any) -> AsyncEngine:
    """Create an async engine with sensible per-backend defaults."""
    kwargs: Dict[str, Any] = {"echo": False, "future": True}
    is_sqlite = url.startswith("sqlite")
    if not is_sqlite:
        kwargs.update(
            pool_pre_ping=_POOL_PRE_PING,
            pool_recycle=_POOL_RECYCLE,
            pool_size=_POOL_SIZE,
            max_overflow=_MAX_OVERFLOW,
            pool_timeout=_POOL_TIMEOUT,
        )
    kwargs.update(overrides)
    engine = create_async_engine(url, **kwargs)
    if is_sqlite:
        enable_sqlite_foreign_keys(engine)
    return engine


# ─────────────────────────────────────────────────────────────
# ⚡ ASYNC ENGINE
# ─────────────────────────────────────────────────────────────
async_engine: AsyncEngine = build_engine(ASYNC_DATABASE_URL)

async_session_maker = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async SQLAlchemy session."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def db_healthcheck() -> bool:
    """Quick SELECT 1 (used by /readyz)."""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("DB healthcheck failed")
        return False


__all__ = [
    "async_engine",
    "async_session_maker",
    "build_engine",
    "enable_sqlite_foreign_keys",
    "get_async_db",
    "db_healthcheck",
]

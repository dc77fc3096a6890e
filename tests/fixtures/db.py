# tests/fixtures/db.py
"""
DB fixtures for tests (async, SQLite in memory):
- One private in-memory database per test (StaticPool keeps it on one connection)
- Foreign keys switched on so ON DELETE CASCADE / SET NULL behave like Postgres
- Function-scoped sessions with `expire_on_commit=False` (same as the app)
"""

from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import base
from app.db.session import build_engine

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
async def db_engine():
    engine = build_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(base.Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Fresh, isolated DB session per test."""
    async with session_maker() as session:
        yield session


def get_override_get_db(session: AsyncSession):
    """FastAPI dependency override using the provided session."""
    async def _override() -> AsyncGenerator[AsyncSession, None]:
        yield session
    return _override


__all__ = ["anyio_backend", "db_engine", "session_maker", "db_session", "get_override_get_db"]

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Tuple

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token
from app.db.models.user import User
from tests.utils.factory import create_user

# ──────────────────────────────────────────────────────────────
# 🧪 Factory: Create a user (verified by default)
# ──────────────────────────────────────────────────────────────
@pytest.fixture
def create_test_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """
    Create a user and commit it; keyword arguments go to `create_user`.
    """
    async def _create(**kwargs) -> User:
        user = await create_user(session=db_session, **kwargs)
        await db_session.commit()
        return user

    return _create


# ──────────────────────────────────────────────────────────────
# 🔐 Token + Auth Fixtures
# ──────────────────────────────────────────────────────────────
@pytest.fixture
def user_with_token(create_test_user) -> Callable[..., Awaitable[Tuple[User, str]]]:
    """
    Creates a test user and returns (user, token) tuple.
    """
    async def _create(**kwargs):
        user = await create_test_user(**kwargs)
        return user, create_access_token(user.id)

    return _create


@pytest.fixture
def user_with_headers(user_with_token) -> Callable[..., Awaitable[Tuple[User, Dict[str, str]]]]:
    """
    Same as user_with_token but returns (user, headers) instead of (user, token).
    """
    async def _create(**kwargs):
        user, token = await user_with_token(**kwargs)
        return user, {"Authorization": f"Bearer {token}"}

    return _create


__all__ = ["create_test_user", "user_with_token", "user_with_headers"]

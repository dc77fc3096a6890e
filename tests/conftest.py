# tests/conftest.py
"""
Global test bootstrap
- Pins a test environment (secret, in-memory DB URL) BEFORE the app is imported
- Mounts a mock Redis client into app.core.redis_client
- Exposes a redis_client fixture that starts every test with empty counters
"""

from __future__ import annotations

import os

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set BEFORE importing the app/fixtures so settings pick it up)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("DB_CREATE_ALL", "false")
os.environ.setdefault("RESUME_DELETION_JOBS", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")

# ──────────────────────────────────────────────────────────────────────────────
# 🧪 Install mock Redis globally before any tests run
# ──────────────────────────────────────────────────────────────────────────────
from app.core.redis_client import redis_wrapper
from tests.fixtures.mocks.redis import MockRedisClient

redis_wrapper._client = MockRedisClient()   # make the app use the mock client

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Pull in the rest of the fixtures (db, app, users, content, email)
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *           # noqa: F401,F403,E402
from tests.fixtures.app import *          # noqa: F401,F403,E402
from tests.fixtures.users import *        # noqa: F401,F403,E402
from tests.fixtures.content import *      # noqa: F401,F403,E402
from tests.fixtures.mocks.email import *  # noqa: F401,F403,E402


# ──────────────────────────────────────────────────────────────────────────────
# 🔌 Redis fixture (function-scoped), cleared between tests
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def redis_client():
    """
    The mock client shared by the app; keys are wiped before and after each
    test so rate-limit counters never leak.
    """
    client = redis_wrapper.client
    client.reset()
    yield client
    client.reset()

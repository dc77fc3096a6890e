# app/core/redis_client.py
from __future__ import annotations

"""
ALPHA — Redis Client (async)
============================
Single source of truth for Redis access. Redis backs the OTP issuance
throttles only, so the wrapper is intentionally small:

- `await redis_wrapper.connect()` / `await redis_wrapper.close()`
- `await redis_wrapper.is_connected()`
- `redis_wrapper.client` (None until connected)

Connecting retries with exponential backoff. Callers treat a missing client
as "Redis unavailable" and fail open.
"""

import asyncio
import logging
import os
import random
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger("alpha.redis")

MAX_RETRIES = int(os.getenv("REDIS_CONNECT_MAX_RETRIES", "3"))
BASE_DELAY = float(os.getenv("REDIS_CONNECT_BASE_DELAY", "0.3"))
SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "3"))


class RedisClient:
    """Lazy, retrying connection manager around `redis.asyncio.Redis`."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client: Optional[Any] = None

    @property
    def client(self) -> Optional[Any]:
        return self._client

    async def connect(self) -> None:
        """Connect (or reuse a healthy client) with backoff and jitter."""
        if self._client is not None:
            try:
                await self._client.ping()
                return
            except (RedisError, OSError):
                self._client = None

        last_exc: Optional[BaseException] = None
        for attempt in range(1, MAX_RETRIES + 1):
            candidate = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_timeout=SOCKET_TIMEOUT,
                socket_connect_timeout=SOCKET_TIMEOUT,
            )
            try:
                await candidate.ping()
                self._client = candidate
                logger.info("Redis connected (attempt %s)", attempt)
                return
            except (RedisError, OSError) as exc:
                last_exc = exc
                await candidate.aclose()
                delay = BASE_DELAY * (2 ** (attempt - 1)) + random.uniform(0, BASE_DELAY)
                logger.warning("Redis connect attempt %s failed: %s (retry in %.2fs)", attempt, exc, delay)
                await asyncio.sleep(delay)
        raise ConnectionError(f"Could not connect to Redis at {self.redis_url}") from last_exc

    async def is_connected(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        finally:
            self._client = None


redis_wrapper = RedisClient(settings.REDIS_URL)

__all__ = ["RedisClient", "redis_wrapper"]

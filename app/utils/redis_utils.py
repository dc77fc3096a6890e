# app/utils/redis_utils.py
from __future__ import annotations

"""
ALPHA — Redis utilities
=======================

Per-key fixed-window rate limiting for OTP issuance (INCR + first-hit EXPIRE).
If Redis is unavailable or disabled we **fail open**: OTP mail must not break
because a cache is down.
"""

import logging

from fastapi import status

from app.core.config import settings
from app.core.exceptions import AppException, ErrorKind
from app.core.redis_client import redis_wrapper

logger = logging.getLogger("alpha.ratelimit")

RATE_LIMIT_PREFIX = "rate-limit"


class RateLimited(AppException):
    def __init__(self, message: str) -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            message=message,
            kind=ErrorKind.VALIDATION,
            code="rate_limited",
        )


async def enforce_rate_limit(
    *,
    key_suffix: str,
    seconds: int,
    max_calls: int = 1,
    error_message: str = "Too many requests. Please try again later.",
) -> None:
    """Count a hit for `key_suffix`; raise 429 once `max_calls` is exceeded in the window."""
    if not settings.RATE_LIMIT_ENABLED:
        return
    rc = redis_wrapper.client
    if rc is None:
        return

    key = f"{RATE_LIMIT_PREFIX}:{key_suffix}"
    try:
        count = int(await rc.incr(key))
        if count == 1:
            await rc.expire(key, int(seconds))
    except Exception:
        logger.debug("enforce_rate_limit: redis error (fail-open).", exc_info=True)
        return

    if count > int(max_calls):
        raise RateLimited(error_message)


__all__ = ["RateLimited", "enforce_rate_limit"]

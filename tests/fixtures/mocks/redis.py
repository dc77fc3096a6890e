from __future__ import annotations

"""
MockRedisClient (async) — test-grade, wrapper-compatible
========================================================
Covers the subset of Redis the app uses:

KV      : get/set/incr/expire/ttl/delete
Health  : ping/aclose/close/flushall

Design notes
------------
- TTLs have second precision and are enforced lazily on access.
- Deterministic, minimal behavior for tests; not a byte-for-byte Redis emulation.
"""

from typing import Any, Dict, Optional
import time


def _now() -> float:
    return time.time()


class MockRedisClient:
    def __init__(self) -> None:
        self.store: Dict[str, Any] = {}
        self.expirations: Dict[str, Optional[float]] = {}
        self.fail_with: Optional[BaseException] = None  # set to simulate an outage

    # ── internals ─────────────────────────────────────────────
    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _purge_if_expired(self, key: str) -> None:
        exp = self.expirations.get(key)
        if exp is not None and exp <= _now():
            self.store.pop(key, None)
            self.expirations.pop(key, None)

    # ── KV ────────────────────────────────────────────────────
    async def get(self, key: str) -> Any:
        self._check()
        self._purge_if_expired(key)
        return self.store.get(key)

    async def set(self, key: str, value: Any, ex: Optional[int] = None) -> bool:
        self._check()
        self.store[key] = value
        self.expirations[key] = _now() + ex if ex else None
        return True

    async def incr(self, key: str) -> int:
        self._check()
        self._purge_if_expired(key)
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = value
        self.expirations.setdefault(key, None)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        self._check()
        if key not in self.store:
            return False
        self.expirations[key] = _now() + int(seconds)
        return True

    async def ttl(self, key: str) -> int:
        self._purge_if_expired(key)
        if key not in self.store:
            return -2
        exp = self.expirations.get(key)
        return -1 if exp is None else max(0, int(exp - _now()))

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if key in self.store:
                removed += 1
            self.store.pop(key, None)
            self.expirations.pop(key, None)
        return removed

    # ── Health ────────────────────────────────────────────────
    async def ping(self) -> bool:
        self._check()
        return True

    def reset(self) -> None:
        self.store.clear()
        self.expirations.clear()
        self.fail_with = None

    async def flushall(self) -> bool:
        self.reset()
        return True

    async def aclose(self) -> None:
        return None

    close = aclose

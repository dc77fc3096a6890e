from __future__ import annotations

"""
ALPHA · HTTP Utilities
======================

Shared helpers for API routers:

- Client IP resolution (proxy-aware, opt-in) for per-IP throttles
- `no-store` marking for responses that carry tokens or OTP outcomes
"""

import ipaddress
import os
from typing import Optional

from fastapi import Request, Response

__all__ = ["get_client_ip", "set_sensitive_cache"]


# ─────────────────────────────────────────────────────────────────────────────
# 🌐 Client IP Resolution (proxy aware, opt-in)
# ─────────────────────────────────────────────────────────────────────────────

def _parse_ip(value: Optional[str]) -> Optional[str]:
    """Parse an IP (v4/v6) possibly carrying a port; None if invalid."""
    if not value:
        return None
    try:
        value = value.split("%", 1)[0].strip()
        if value.startswith("["):
            host = value.split("]", 1)[0].lstrip("[")
        else:
            host = value.split(":")[0] if value.count(":") == 1 else value
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def get_client_ip(request: Request) -> str:
    """Best-guess client IP.

    Uses the socket peer unless ``TRUST_FORWARD_HEADERS=1``, in which case the
    first ``X-Forwarded-For`` hop (or ``X-Real-Ip``) wins.
    """
    peer = _parse_ip(request.client.host if request.client else None)
    if os.environ.get("TRUST_FORWARD_HEADERS") in {"1", "true", "True"}:
        fwd = request.headers.get("x-forwarded-for", "").split(",")[0]
        forwarded = _parse_ip(fwd) or _parse_ip(request.headers.get("x-real-ip"))
        if forwarded:
            return forwarded
    return peer or "unknown"


# ─────────────────────────────────────────────────────────────────────────────
# 🧊 Cache policy
# ─────────────────────────────────────────────────────────────────────────────

def set_sensitive_cache(response: Response) -> None:
    """Mark a response as never cacheable (idempotent)."""
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("Pragma", "no-cache")
    response.headers.setdefault("Expires", "0")

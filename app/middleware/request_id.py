# app/middleware/request_id.py
from __future__ import annotations

"""
# ALPHA — Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` when it is a valid UUIDv4.
- Generates a UUIDv4 otherwise.
- Stores it on `request.state.request_id` and echoes it in the response header.
- Binds it into the **loguru** context so every log line of the request carries it.

## Env
- `REQUEST_ID_HEADER_NAME` (default: `X-Request-ID`)
- `REQUEST_ID_TRUST_CLIENT_IDS` ("true"/"false"; default: "true")
"""

import os
import uuid

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID")
TRUST_CLIENT_IDS = os.getenv("REQUEST_ID_TRUST_CLIENT_IDS", "true").lower() == "true"


class RequestIDMiddleware:
    """Attach a per-request correlation id to state, logs and response headers."""

    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        req_id = self._choose_request_id(Headers(scope=scope))
        scope.setdefault("state", {})["request_id"] = req_id
        name_bytes = self.header_name.lower().encode("latin-1")

        async def _send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers = [(k, v) for (k, v) in message.get("headers", []) if k.lower() != name_bytes]
                headers.append((name_bytes, req_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        with logger.contextualize(request_id=req_id):
            await self.app(scope, receive, _send_wrapper)

    def _choose_request_id(self, headers: Headers) -> str:
        if TRUST_CLIENT_IDS:
            incoming = (headers.get(self.header_name) or "").strip()
            if incoming and len(incoming) <= 64:
                try:
                    val = uuid.UUID(incoming)
                    if val.version == 4:
                        return str(val)
                except ValueError:
                    pass
        return str(uuid.uuid4())


def get_request_id(request) -> str:
    """Current request id from `request.state` ("" when the middleware is not mounted)."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "get_request_id"]

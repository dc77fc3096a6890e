from __future__ import annotations

"""
JSON exception handlers.

Every error leaves the API as `{"message", "kind", "code"?, "request_id"}`.
`app/main.py` installs these; tests mount them on throwaway apps too.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException, ErrorKind, kind_for_status
from app.middleware.request_id import get_request_id

logger = logging.getLogger("alpha.errors")


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(request_id=get_request_id(request) or None),
        headers=getattr(exc, "headers", None),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    if isinstance(exc, AppException):
        return await app_exception_handler(request, exc)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "message": message,
            "kind": kind_for_status(exc.status_code).value,
            "request_id": get_request_id(request) or "N/A",
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    errors = exc.errors()
    message = "Validation error"
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": message,
            "kind": ErrorKind.VALIDATION.value,
            "details": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors],
            "request_id": get_request_id(request) or "N/A",
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals; the stack trace goes to the log only.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "Server error",
            "kind": ErrorKind.INTERNAL.value,
            "request_id": get_request_id(request) or "N/A",
        },
    )


def install_exception_handlers(app: FastAPI) -> None:
    """Register all handlers on `app` (order-independent)."""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
    "install_exception_handlers",
]

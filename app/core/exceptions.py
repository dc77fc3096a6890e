# app/core/exceptions.py
from __future__ import annotations

"""
ALPHA — Application Exceptions
==============================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
attaches a **stable error kind** (and optionally a finer machine `code`) to
every failure, so clients can branch on something sturdier than message text.

Key ideas
---------
- One base `AppException` carrying `kind`, `code`, `details`.
- Domain exceptions inherit from it and set sane defaults (status + kind).
- `to_body()` renders the canonical JSON body used by the handlers.
- Callers that already catch `HTTPException` keep working.

Usage
-----
    raise NotFound("Podcast not found")
    raise OtpRejected(code="otp_expired")
    raise Conflict("You have already subscribed before", status_code=409)
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "ErrorKind",
    "AppException",
    "ValidationFailed",
    "NotFound",
    "AuthFailed",
    "OtpRejected",
    "Conflict",
    "InternalFailure",
    "kind_for_status",
]


class ErrorKind(str, Enum):
    """Stable, client-facing error categories."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    AUTH = "auth_error"
    CONFLICT = "conflict"
    INTERNAL = "internal_error"


def kind_for_status(status_code: int) -> ErrorKind:
    """Best-guess kind for errors raised as plain `HTTPException`s."""
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 409:
        return ErrorKind.CONFLICT
    if status_code >= 500:
        return ErrorKind.INTERNAL
    return ErrorKind.VALIDATION


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with a typed kind.

    Attributes
    ----------
    status_code : int
        HTTP status code (400/401/404/409/500...).
    message : str
        Human-readable error message (also serialized as `detail`).
    kind : ErrorKind
        Stable category for programmatic handling.
    code : str | None
        Optional finer-grained identifier (e.g. ``otp_expired``).
    details : Any
        Machine-readable extras (ids, constraint names...).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        kind: Optional[ErrorKind] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message: str = message
        self.kind: ErrorKind = kind or kind_for_status(status_code)
        self.code: Optional[str] = code
        self.details: Optional[Any] = details

    def to_body(self, *, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the canonical JSON error body."""
        body: Dict[str, Any] = {"message": self.message, "kind": self.kind.value}
        if self.code:
            body["code"] = self.code
        if self.details is not None:
            body["details"] = self.details
        body["request_id"] = request_id or "N/A"
        return body


# ──────────────────────────────────────────────────────────────
# 🧾 Domain exceptions
# ──────────────────────────────────────────────────────────────
class ValidationFailed(AppException):
    """Missing/invalid input (400)."""

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Any] = None) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            kind=ErrorKind.VALIDATION,
            code=code,
            details=details,
        )


class NotFound(AppException):
    """Referenced user/content does not exist (404)."""

    def __init__(self, message: str = "Not found", *, code: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=message,
            kind=ErrorKind.NOT_FOUND,
            code=code,
        )


class AuthFailed(AppException):
    """Bad bearer token or credentials (401 unless told otherwise)."""

    def __init__(
        self,
        message: str = "Not authorized",
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        code: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if status_code == status.HTTP_401_UNAUTHORIZED and headers is None:
            headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(
            status_code=status_code,
            message=message,
            kind=ErrorKind.AUTH,
            code=code,
            headers=headers,
        )


class OtpRejected(AuthFailed):
    """
    Wrong or expired one-time code.

    Every OTP-consuming endpoint answers the same way: 400 with
    "Invalid or expired OTP"; `code` tells the two cases apart.
    """

    MESSAGE = "Invalid or expired OTP"

    def __init__(self, *, code: str = "otp_invalid") -> None:
        super().__init__(self.MESSAGE, status_code=status.HTTP_400_BAD_REQUEST, code=code)


class Conflict(AppException):
    """State conflict: self-subscription, duplicate records (400/409)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = status.HTTP_409_CONFLICT,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(
            status_code=status_code,
            message=message,
            kind=ErrorKind.CONFLICT,
            code=code,
        )


class InternalFailure(AppException):
    """Unexpected failure with a caller-safe message (500)."""

    def __init__(self, message: str = "Server error", *, code: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            kind=ErrorKind.INTERNAL,
            code=code,
        )

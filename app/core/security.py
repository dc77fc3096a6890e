# app/core/security.py
from __future__ import annotations

"""
ALPHA — Authentication & Security Helpers
=========================================
- Password hashing (Passlib bcrypt)
- Signed bearer tokens (python-jose, HS*), 30-day default lifetime
- FastAPI dependency resolving the **current user** from `Authorization: Bearer`

Error contract: every failure here is a 401 JSON `{message, kind: "auth_error"}`.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthFailed
from app.db.models.user import User
from app.db.session import get_async_db

# ───────────────────────────────────────────────
# 🔐 Security Constants and Setup
# ───────────────────────────────────────────────
ALGORITHM: str = settings.JWT_ALGORITHM
TOKEN_TYPE_ACCESS = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)
logger = logging.getLogger("alpha.security")


# ───────────────────────────────────────────────
# 🔐 Password Hashing Utilities
# ───────────────────────────────────────────────
def get_password_hash(password: str) -> str:
    """Return a salted bcrypt hash."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time verify of a plaintext password against a stored hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


# ───────────────────────────────────────────────
# 🪪 Access tokens
# ───────────────────────────────────────────────
def create_access_token(user_id: UUID | str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token carrying the user id in `sub`."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "jti": str(uuid4()),
        "token_type": TOKEN_TYPE_ACCESS,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify signature/expiry and return the claims; 401 on any failure."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY.get_secret_value(), algorithms=[ALGORITHM])
    except JWTError:
        raise AuthFailed("Not authorized, token failed", code="token_invalid")
    if claims.get("token_type", TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS:
        raise AuthFailed("Not authorized, token failed", code="token_invalid")
    return claims


def get_user_id_from_payload(payload: Dict[str, Any]) -> UUID:
    """Extract `sub` as a UUID; 401 if malformed/missing."""
    raw = payload.get("sub")
    if not raw:
        raise AuthFailed("Not authorized, token failed", code="token_invalid")
    try:
        return UUID(str(raw))
    except ValueError:
        raise AuthFailed("Not authorized, token failed", code="token_invalid")


# ───────────────────────────────────────────────
# 👤 Dependency — Get Current User
# ───────────────────────────────────────────────
async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_db),
) -> User:
    """Authenticate the caller from the presented bearer token.

    Steps:
    1) Require a bearer credential.
    2) Decode & validate it.
    3) Load the user (the account may have been deleted since issuance).
    """
    if credentials is None or not credentials.credentials:
        raise AuthFailed("Not authorized, no token", code="token_missing")

    payload = decode_access_token(credentials.credentials)
    user_id = get_user_id_from_payload(payload)

    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None:
        raise AuthFailed("Not authorized, user not found", code="token_user_missing")

    request.state.user_id = user.id
    logger.debug("Authenticated user %s", user.id)
    return user


__all__ = [
    "pwd_context",
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "decode_access_token",
    "get_user_id_from_payload",
    "get_current_user",
]

from __future__ import annotations

"""
OTP issuer — purpose-scoped one-time codes
==========================================

Features
--------
- **CSPRNG numeric OTPs** (`secrets`) with **peppered HMAC** digests at rest.
- **One live code per (user, purpose)**: issuing clears unused rows first, so
  the previous code dies the moment a new one is minted.
- **Loud dispatch**: if the mail cannot be sent the freshly stored row is
  removed and the error propagates; callers never report "sent" falsely.
- **One error contract**: every rejection surfaces as `OtpRejected`
  (400 "Invalid or expired OTP"); `code` is `otp_invalid` / `otp_expired`.
"""

from datetime import timedelta
from typing import Awaitable, Callable, Optional
import hashlib
import hmac
import logging
import secrets

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import OtpRejected
from app.db.base_class import as_utc, utcnow
from app.db.models.otp import OTP
from app.db.models.user import User
from app.schemas.enums import OtpPurpose

logger = logging.getLogger("alpha.otp")

Sender = Callable[[str, str], Awaitable[None]]


# ─────────────────────────────────────────────────────────────
# ❗ Rejections
# ─────────────────────────────────────────────────────────────

class InvalidOtpCode(OtpRejected):
    """No active code for the purpose, or the supplied code does not match."""

    def __init__(self) -> None:
        super().__init__(code="otp_invalid")


class ExpiredOtpCode(OtpRejected):
    """The code matches but its lifetime is over."""

    def __init__(self) -> None:
        super().__init__(code="otp_expired")


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────

def generate_otp(length: Optional[int] = None) -> str:
    """Generate a CSPRNG numeric OTP of given length (keeps leading zeros)."""
    length = settings.OTP_LENGTH if length is None else length
    if length <= 0:
        raise ValueError("OTP length must be positive")
    digits = "0123456789"
    return "".join(secrets.choice(digits) for _ in range(length))


def _hash_otp(otp: str, *, user_id: str, purpose: str) -> str:
    """Return hex HMAC-SHA256 of the OTP bound to (user_id, purpose)."""
    if not otp or not user_id or not purpose:
        raise ValueError("otp, user_id and purpose are required")
    key = settings.JWT_SECRET_KEY.get_secret_value().encode("utf-8")  # pepper
    msg = f"{purpose}:{user_id}:{otp}".encode("utf-8")
    return hmac.new(key, msg, hashlib.sha256).hexdigest()


def _purpose_value(purpose: OtpPurpose | str) -> str:
    return purpose.value if isinstance(purpose, OtpPurpose) else OtpPurpose(purpose).value


# ─────────────────────────────────────────────────────────────
# 🔁 Issue
# ─────────────────────────────────────────────────────────────

async def issue(
    db: AsyncSession,
    user: User,
    purpose: OtpPurpose | str,
    *,
    send: Sender,
) -> str:
    """Mint a code for `(user, purpose)`, persist its digest and mail it.

    Steps
    -----
    1) Delete unused rows for the same purpose (old code invalid immediately).
    2) Store the HMAC digest with `expires_at = now + OTP_TTL_MINUTES`.
    3) Commit, then await `send(email, code)`.
    4) On dispatch failure remove the row again and re-raise.
    """
    purpose_value = _purpose_value(purpose)

    # [Step 1] Clear any unused prior codes for this purpose
    await db.execute(
        delete(OTP).where(
            OTP.user_id == user.id,
            OTP.purpose == purpose_value,
            OTP.used == False,  # noqa: E712
        )
    )

    # [Step 2] Persist only a **digest** (no plaintext at rest)
    otp_plain = generate_otp()
    row = OTP(
        user_id=user.id,
        code=_hash_otp(otp_plain, user_id=str(user.id), purpose=purpose_value),
        purpose=purpose_value,
        expires_at=utcnow() + timedelta(minutes=settings.OTP_TTL_MINUTES),
        used=False,
    )
    db.add(row)
    await db.commit()

    # [Step 3] Dispatch; a code nobody received must not stay valid
    try:
        await send(user.email, otp_plain)
    except Exception:
        logger.warning("OTP dispatch failed for user=%s purpose=%s; revoking", user.id, purpose_value)
        await db.execute(delete(OTP).where(OTP.id == row.id))
        await db.commit()
        raise

    logger.info("Issued %s OTP for user=%s", purpose_value, user.id)
    return otp_plain


# ─────────────────────────────────────────────────────────────
# ✅ Verify
# ─────────────────────────────────────────────────────────────

async def verify(
    db: AsyncSession,
    user: User,
    supplied: Optional[str],
    purpose: OtpPurpose | str,
    *,
    consume: bool = True,
) -> None:
    """Check `supplied` against the live code for `(user, purpose)`.

    Raises `InvalidOtpCode` or `ExpiredOtpCode`. With `consume=True` the
    purpose's rows are deleted and flushed; the caller commits them together
    with whatever state change the code guards.
    """
    purpose_value = _purpose_value(purpose)
    candidate = (supplied or "").strip()

    row = (
        await db.execute(
            select(OTP)
            .where(
                OTP.user_id == user.id,
                OTP.purpose == purpose_value,
                OTP.used == False,  # noqa: E712
            )
            .order_by(OTP.created_at.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    if row is None or not candidate:
        raise InvalidOtpCode()

    expected = _hash_otp(candidate, user_id=str(user.id), purpose=purpose_value)
    if not hmac.compare_digest(expected, row.code):
        raise InvalidOtpCode()

    if utcnow() > as_utc(row.expires_at):
        raise ExpiredOtpCode()

    if consume:
        await db.execute(
            delete(OTP).where(OTP.user_id == user.id, OTP.purpose == purpose_value)
        )
        await db.flush()


__all__ = [
    "InvalidOtpCode",
    "ExpiredOtpCode",
    "generate_otp",
    "issue",
    "verify",
]

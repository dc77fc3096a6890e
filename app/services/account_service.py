from __future__ import annotations

"""
Account service — registration, login, passwords, profile, library, history
===========================================================================

Registration is OTP-gated: an account exists from the first `register` call
but cannot log in until the emailed code is confirmed. Re-registering an
unverified email refreshes its details and re-sends a code; a verified email
is a conflict.

All one-time codes go through `otp_service` (purpose-scoped, hashed at rest,
uniform `OtpRejected` error contract).
"""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthFailed, Conflict, NotFound
from app.core.security import create_access_token, get_password_hash, verify_password
from app.db.base_class import utcnow
from app.db.models.library import HISTORY_LIMIT, HistoryEntry, LibraryItem
from app.db.models.podcast import Podcast
from app.db.models.reaction import PodcastLike
from app.db.models.subscription import Subscription
from app.db.models.user import User
from app.schemas.enums import OtpPurpose
from app.schemas.user import PodcastOut, PublicUserOut
from app.services import otp_service
from app.services.interaction_service import count_subscribers, resolve_podcast
from app.utils import email_utils
from app.utils.redis_utils import enforce_rate_limit

logger = logging.getLogger("alpha.accounts")

OTP_SENT_MESSAGE = "OTP sent to email"


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────

def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


async def _get_by_email(db: AsyncSession, email: str) -> Optional[User]:
    return (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()


async def _require_by_email(db: AsyncSession, email: Optional[str]) -> User:
    user = await _get_by_email(db, _normalize_email(email))
    if user is None:
        raise NotFound("User not found")
    return user


def _auth_payload(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "profilePicture": user.profile_picture,
        "isVerified": bool(user.is_verified),
        "token": create_access_token(user.id),
    }


def serialize_podcast(podcast: Podcast) -> Dict[str, Any]:
    return PodcastOut.model_validate(podcast).model_dump(mode="json", by_alias=True)


# ─────────────────────────────────────────────────────────────
# 📝 Register / verify
# ─────────────────────────────────────────────────────────────

async def register(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    password: str,
    phone: Optional[str] = None,
) -> Tuple[Dict[str, Any], bool]:
    """Create (or refresh) an unverified account and mail a registration code.

    Returns `(body, created)`; `created` is False when an unverified account
    was refreshed.
    """
    email = _normalize_email(email)
    existing = await _get_by_email(db, email)
    if existing is not None and existing.is_verified:
        raise Conflict("User already exists", status_code=400, code="user_exists")

    await enforce_rate_limit(
        key_suffix=f"register-otp:{email}",
        seconds=60,
        max_calls=3,
        error_message="Please wait before requesting another OTP.",
    )

    if existing is not None:
        existing.username = username
        existing.hashed_password = get_password_hash(password)
        existing.phone = phone
        user, created = existing, False
    else:
        user = User(
            username=username,
            email=email,
            phone=phone,
            hashed_password=get_password_hash(password),
            is_verified=False,
        )
        db.add(user)
        created = True

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("User already exists", status_code=400, code="user_exists")

    await otp_service.issue(db, user, OtpPurpose.REGISTRATION, send=email_utils.send_otp_email)
    logger.info("Registration OTP sent (user=%s, new=%s)", user.id, created)
    return {"message": OTP_SENT_MESSAGE, "email": email}, created


async def verify_registration(db: AsyncSession, email: str, otp: Optional[str]) -> Dict[str, Any]:
    user = await _require_by_email(db, email)
    await otp_service.verify(db, user, otp, OtpPurpose.REGISTRATION)
    user.is_verified = True
    await db.commit()
    logger.info("User %s verified", user.id)
    return _auth_payload(user)


# ─────────────────────────────────────────────────────────────
# 🔐 Login / passwords
# ─────────────────────────────────────────────────────────────

async def login(db: AsyncSession, email: str, password: str) -> Dict[str, Any]:
    user = await _get_by_email(db, _normalize_email(email))
    if user is None or not verify_password(password or "", user.hashed_password):
        raise AuthFailed("Invalid email or password", code="invalid_credentials")
    if not user.is_verified:
        raise AuthFailed("Email not verified. Please register again to verify.", code="email_unverified")
    return _auth_payload(user)


async def change_password(db: AsyncSession, user: User, current: str, new: str) -> Dict[str, str]:
    if not verify_password(current or "", user.hashed_password):
        raise AuthFailed("Invalid current password", code="invalid_password")
    user.hashed_password = get_password_hash(new)
    await db.commit()
    return {"message": "Password updated successfully"}


async def request_password_reset(db: AsyncSession, email: str) -> Dict[str, str]:
    user = await _require_by_email(db, email)
    await enforce_rate_limit(
        key_suffix=f"forgot-password-otp:{user.id}",
        seconds=60,
        max_calls=3,
        error_message="Please wait before requesting another OTP.",
    )
    await otp_service.issue(db, user, OtpPurpose.PASSWORD_RESET, send=email_utils.send_otp_email)
    return {"message": OTP_SENT_MESSAGE, "email": user.email}


async def reset_password(db: AsyncSession, email: str, otp: Optional[str], new_password: str) -> Dict[str, str]:
    user = await _require_by_email(db, email)
    await otp_service.verify(db, user, otp, OtpPurpose.PASSWORD_RESET)
    user.hashed_password = get_password_hash(new_password)
    await db.commit()
    logger.info("Password reset for user %s", user.id)
    return {"message": "Password updated successfully. Please login with your new password."}


# ─────────────────────────────────────────────────────────────
# 👤 Profiles
# ─────────────────────────────────────────────────────────────

async def get_profile(db: AsyncSession, user: User) -> Dict[str, Any]:
    """Own profile with liked podcasts, library and listening history."""
    liked = (
        await db.execute(
            select(Podcast)
            .join(PodcastLike, PodcastLike.podcast_id == Podcast.id)
            .where(PodcastLike.user_id == user.id)
            .order_by(PodcastLike.created_at.desc())
        )
    ).scalars().all()
    library = (
        await db.execute(
            select(Podcast)
            .join(LibraryItem, LibraryItem.podcast_id == Podcast.id)
            .where(LibraryItem.user_id == user.id)
            .order_by(LibraryItem.added_at)
        )
    ).scalars().all()
    subscribed_to = (
        await db.execute(select(Subscription.channel_id).where(Subscription.subscriber_id == user.id))
    ).scalars().all()

    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "phone": user.phone,
        "profilePicture": user.profile_picture,
        "isVerified": bool(user.is_verified),
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "subscribersCount": await count_subscribers(db, user.id),
        "subscribedTo": [str(cid) for cid in subscribed_to],
        "likedPodcasts": [serialize_podcast(p) for p in liked],
        "library": [serialize_podcast(p) for p in library],
        "history": await _history(db, user.id, expand=True),
    }


async def get_public_profile(db: AsyncSession, user_id: str | UUID) -> Dict[str, Any]:
    try:
        pk = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
    except ValueError:
        raise NotFound("User not found")
    user = await db.get(User, pk)
    if user is None:
        raise NotFound("User not found")

    podcasts = (
        await db.execute(select(Podcast).where(Podcast.user_id == user.id).order_by(Podcast.created_at.desc()))
    ).scalars().all()
    public = PublicUserOut.model_validate(user).model_dump(mode="json", by_alias=True)
    public["subscribersCount"] = await count_subscribers(db, user.id)
    return {"user": public, "podcasts": [serialize_podcast(p) for p in podcasts]}


# ─────────────────────────────────────────────────────────────
# 📚 Library & history
# ─────────────────────────────────────────────────────────────

async def toggle_library(db: AsyncSession, user: User, podcast_id: str) -> List[str]:
    """Add/remove a podcast from the library; returns the library's public ids."""
    podcast = await resolve_podcast(db, podcast_id)
    pid = podcast.id
    removed = await db.execute(
        delete(LibraryItem).where(LibraryItem.user_id == user.id, LibraryItem.podcast_id == pid)
    )
    if not removed.rowcount:
        db.add(LibraryItem(user_id=user.id, podcast_id=pid))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()

    rows = (
        await db.execute(
            select(Podcast.legacy_id, Podcast.id)
            .join(LibraryItem, LibraryItem.podcast_id == Podcast.id)
            .where(LibraryItem.user_id == user.id)
            .order_by(LibraryItem.added_at)
        )
    ).all()
    return [legacy or str(pk) for legacy, pk in rows]


async def _history(db: AsyncSession, user_id: UUID, *, expand: bool = False) -> List[Dict[str, Any]]:
    rows = (
        await db.execute(
            select(HistoryEntry, Podcast)
            .join(Podcast, HistoryEntry.podcast_id == Podcast.id)
            .where(HistoryEntry.user_id == user_id)
            .order_by(HistoryEntry.played_at.desc())
        )
    ).all()
    out: List[Dict[str, Any]] = []
    for entry, podcast in rows:
        item: Dict[str, Any] = {
            "podcastId": podcast.public_id,
            "progress": entry.progress,
            "playedAt": entry.played_at.isoformat() if entry.played_at else None,
        }
        if expand:
            item["podcast"] = serialize_podcast(podcast)
        out.append(item)
    return out


async def record_history(db: AsyncSession, user: User, podcast_id: str, progress: Optional[int] = 0) -> List[Dict[str, Any]]:
    """Move (or add) a podcast to the top of the history; keep the newest 50."""
    podcast = await resolve_podcast(db, podcast_id)
    user_id, pid = user.id, podcast.id
    try:
        await db.execute(
            delete(HistoryEntry).where(HistoryEntry.user_id == user_id, HistoryEntry.podcast_id == pid)
        )
        db.add(HistoryEntry(user_id=user_id, podcast_id=pid, progress=int(progress or 0), played_at=utcnow()))
        await db.flush()

        overflow = (
            await db.execute(
                select(HistoryEntry.id)
                .where(HistoryEntry.user_id == user_id)
                .order_by(HistoryEntry.played_at.desc())
                .offset(HISTORY_LIMIT)
            )
        ).scalars().all()
        if overflow:
            await db.execute(delete(HistoryEntry).where(HistoryEntry.id.in_(overflow)))
        await db.commit()
    except IntegrityError:
        # A concurrent play of the same podcast won; its entry stands.
        await db.rollback()
    return await _history(db, user_id)


__all__ = [
    "register",
    "verify_registration",
    "login",
    "change_password",
    "request_password_reset",
    "reset_password",
    "get_profile",
    "get_public_profile",
    "toggle_library",
    "record_history",
    "serialize_podcast",
]

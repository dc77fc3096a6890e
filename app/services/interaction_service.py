from __future__ import annotations

"""
Interactions — likes, dislikes, subscriptions, views, comments
==============================================================

Every toggle is a single edge row guarded by a composite key/unique
constraint, flipped with **delete-first** semantics:

1) ``DELETE`` the `(user, target)` edge.
2) A row came back → the edge existed → the toggle turns it *off*.
3) Nothing deleted → ``INSERT``; a concurrent insert that wins the race
   surfaces as ``IntegrityError`` and simply means the edge is already *on*.

Counts are computed from the edge tables after the write, so responses never
rely on read-modify-write of denormalized arrays.
"""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from uuid import UUID
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, NotFound, ValidationFailed
from app.db.models.comment import Comment
from app.db.models.podcast import Podcast
from app.db.models.reaction import PodcastDislike, PodcastLike
from app.db.models.subscription import Subscription
from app.db.models.user import User
from app.schemas.enums import MediaType
from app.utils import email_utils

logger = logging.getLogger("alpha.interactions")

SubscriberNotifier = Callable[[str, str], Awaitable[None]]

# Metadata keys accepted when a static podcast is first liked
_STATIC_FIELDS = ("title", "author", "description", "image", "category", "rating", "language")


# ─────────────────────────────────────────────────────────────
# 🔎 Lookups
# ─────────────────────────────────────────────────────────────

def _as_uuid(value: Any) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


async def find_podcast(db: AsyncSession, podcast_id: str) -> Optional[Podcast]:
    """Match on `legacy_id` first, then on the UUID primary key."""
    podcast = (
        await db.execute(select(Podcast).where(Podcast.legacy_id == str(podcast_id)))
    ).scalar_one_or_none()
    if podcast is not None:
        return podcast
    pk = _as_uuid(podcast_id)
    if pk is None:
        return None
    return await db.get(Podcast, pk)


async def resolve_podcast(db: AsyncSession, podcast_id: str) -> Podcast:
    podcast = await find_podcast(db, podcast_id)
    if podcast is None:
        raise NotFound("Podcast not found")
    return podcast


async def _upsert_static_podcast(db: AsyncSession, podcast_id: str, metadata: Mapping[str, Any]) -> Podcast:
    """Create a row for catalogue content that lives only in the frontend."""
    values = {key: metadata.get(key) for key in _STATIC_FIELDS if metadata.get(key) is not None}
    values.setdefault("media_type", MediaType.AUDIO.value)
    if values.get("rating") is not None:
        try:
            values["rating"] = float(values["rating"])
        except (TypeError, ValueError):
            values.pop("rating")
    podcast = Podcast(legacy_id=str(podcast_id), episodes=[], **values)
    db.add(podcast)
    try:
        await db.flush()
    except IntegrityError:
        # Someone else created it first.
        await db.rollback()
        return await resolve_podcast(db, podcast_id)
    logger.info("Created static podcast entry for legacy id %s", podcast_id)
    return podcast


async def _count(db: AsyncSession, model: Any, *criteria: Any) -> int:
    return int((await db.execute(select(func.count()).select_from(model).where(*criteria))).scalar_one())


# ─────────────────────────────────────────────────────────────
# 👍 Like / 👎 Dislike
# ─────────────────────────────────────────────────────────────

async def toggle_like(
    db: AsyncSession,
    podcast_id: str,
    user_id: UUID,
    *,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Flip the caller's like; liking also withdraws an existing dislike. Returns `{isLiked, likesCount}`."""
    podcast = await find_podcast(db, podcast_id)
    if podcast is None:
        if metadata and metadata.get("title"):
            podcast = await _upsert_static_podcast(db, podcast_id, metadata)
        else:
            raise NotFound("Podcast not found")
    pid = podcast.id

    removed = await db.execute(
        delete(PodcastLike).where(PodcastLike.user_id == user_id, PodcastLike.podcast_id == pid)
    )
    if removed.rowcount:
        is_liked = False
        await db.commit()
    else:
        is_liked = True
        dislike_filter = (PodcastDislike.user_id == user_id, PodcastDislike.podcast_id == pid)
        await db.execute(delete(PodcastDislike).where(*dislike_filter))
        db.add(PodcastLike(user_id=user_id, podcast_id=pid))
        try:
            await db.commit()
        except IntegrityError:
            # Concurrent like landed first; the edge exists either way.
            await db.rollback()
            await db.execute(delete(PodcastDislike).where(*dislike_filter))
            await db.commit()

    likes = await _count(db, PodcastLike, PodcastLike.podcast_id == pid)
    return {"isLiked": is_liked, "likesCount": likes}


async def toggle_dislike(db: AsyncSession, podcast_id: str, user_id: UUID) -> Dict[str, Any]:
    """Flip the caller's dislike; disliking also withdraws an existing like."""
    podcast = await resolve_podcast(db, podcast_id)
    pid = podcast.id

    removed = await db.execute(
        delete(PodcastDislike).where(PodcastDislike.user_id == user_id, PodcastDislike.podcast_id == pid)
    )
    if removed.rowcount:
        is_disliked = False
        await db.commit()
    else:
        is_disliked = True
        like_filter = (PodcastLike.user_id == user_id, PodcastLike.podcast_id == pid)
        await db.execute(delete(PodcastLike).where(*like_filter))
        db.add(PodcastDislike(user_id=user_id, podcast_id=pid))
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            await db.execute(delete(PodcastLike).where(*like_filter))
            await db.commit()

    dislikes = await _count(db, PodcastDislike, PodcastDislike.podcast_id == pid)
    likes = await _count(db, PodcastLike, PodcastLike.podcast_id == pid)
    return {"isDisliked": is_disliked, "dislikesCount": dislikes, "likesCount": likes}


# ─────────────────────────────────────────────────────────────
# 🔔 Subscribe
# ─────────────────────────────────────────────────────────────

async def toggle_subscribe(
    db: AsyncSession,
    subscriber_id: UUID,
    channel_id: str | UUID,
    *,
    notify: Optional[SubscriberNotifier] = None,
) -> Dict[str, Any]:
    """Flip a subscription from `subscriber_id` to the creator `channel_id`.

    Self-subscription is rejected before anything is read or written.
    """
    channel_pk = _as_uuid(channel_id)
    if str(channel_id) == str(subscriber_id) or channel_pk == _as_uuid(subscriber_id):
        raise Conflict("Cannot subscribe to yourself", status_code=400, code="self_subscription")

    channel = await db.get(User, channel_pk) if channel_pk is not None else None
    subscriber = await db.get(User, subscriber_id)
    if channel is None or subscriber is None:
        raise NotFound("User not found")

    channel_key, channel_email = channel.id, channel.email
    edge = (Subscription.subscriber_id == subscriber.id, Subscription.channel_id == channel_key)
    removed = await db.execute(delete(Subscription).where(*edge))
    if removed.rowcount:
        is_subscribed = False
        await db.commit()
    else:
        is_subscribed = True
        db.add(
            Subscription(
                subscriber_id=subscriber.id,
                subscriber_email=subscriber.email,
                channel_id=channel.id,
                channel_name=channel.username,
            )
        )
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            is_subscribed = True
        else:
            sender = notify or email_utils.send_new_subscriber_email
            try:
                await sender(channel_email, subscriber.username)
            except Exception:
                logger.exception("New-subscriber notice to %s failed [non-fatal]", channel_key)

    subscribers = await _count(db, Subscription, Subscription.channel_id == channel_key)
    return {
        "message": "Subscribed" if is_subscribed else "Unsubscribed",
        "isSubscribed": is_subscribed,
        "subscribersCount": subscribers,
    }


async def count_subscribers(db: AsyncSession, channel_id: UUID) -> int:
    return await _count(db, Subscription, Subscription.channel_id == channel_id)


# ─────────────────────────────────────────────────────────────
# 👁 Views
# ─────────────────────────────────────────────────────────────

async def increment_views(db: AsyncSession, podcast_id: str) -> Dict[str, int]:
    podcast = await resolve_podcast(db, podcast_id)
    await db.execute(
        update(Podcast)
        .where(Podcast.id == podcast.id)
        .values(views=Podcast.views + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    views = (await db.execute(select(Podcast.views).where(Podcast.id == podcast.id))).scalar_one()
    return {"views": int(views)}


# ─────────────────────────────────────────────────────────────
# 💬 Comments
# ─────────────────────────────────────────────────────────────

def serialize_comment(comment: Comment, author: Optional[User] = None) -> Dict[str, Any]:
    author = author if author is not None else comment.author
    return {
        "id": str(comment.id),
        "podcastId": comment.podcast_id,
        "text": comment.text,
        "createdAt": comment.created_at.isoformat() if comment.created_at else None,
        "user": (
            {"id": str(author.id), "username": author.username, "profilePicture": author.profile_picture}
            if author is not None
            else None
        ),
    }


async def add_comment(db: AsyncSession, podcast_id: str, user: User, text: Optional[str]) -> Dict[str, Any]:
    if not (text or "").strip():
        raise ValidationFailed("Comment text required")
    comment = Comment(user_id=user.id, podcast_id=str(podcast_id), text=text.strip())
    db.add(comment)
    await db.commit()
    return serialize_comment(comment, author=user)


async def list_comments(db: AsyncSession, podcast_id: str) -> List[Dict[str, Any]]:
    """Comments for a podcast, newest first."""
    rows = (
        await db.execute(
            select(Comment)
            .where(Comment.podcast_id == str(podcast_id))
            .order_by(Comment.created_at.desc())
        )
    ).scalars().all()
    return [serialize_comment(c) for c in rows]


__all__ = [
    "find_podcast",
    "resolve_podcast",
    "toggle_like",
    "toggle_dislike",
    "toggle_subscribe",
    "count_subscribers",
    "increment_views",
    "serialize_comment",
    "add_comment",
    "list_comments",
]

from __future__ import annotations

"""
👍👎 ALPHA — Podcast reactions (like / dislike edges)
====================================================

One row per `(user, podcast)` in each table. The composite primary key makes
"add to set" a plain INSERT (a duplicate is an IntegrityError, never a second
row) and "remove from set" a DELETE whose rowcount says whether the member was
there. The like table doubles as the user's *liked podcasts* list, so the two
sides of the relationship cannot drift apart.

Like/dislike exclusivity is maintained by the interaction service inside a
single transaction.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Uuid, func

from app.db.base_class import Base, utcnow


class PodcastLike(Base):
    __tablename__ = "podcast_likes"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    podcast_id = Column(Uuid(as_uuid=True), ForeignKey("podcasts.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (Index("ix_podcast_likes_podcast", "podcast_id"),)


class PodcastDislike(Base):
    __tablename__ = "podcast_dislikes"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    podcast_id = Column(Uuid(as_uuid=True), ForeignKey("podcasts.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (Index("ix_podcast_dislikes_podcast", "podcast_id"),)

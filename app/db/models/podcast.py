from __future__ import annotations

"""
🎧 ALPHA — Podcast (content item)
================================

A show owned by a user, with optional media attachments stored under the
managed upload tree (`/uploads/...`) or pointing to external URLs.

Design highlights
-----------------
• **Two identifiers**: a UUID primary key and an optional `legacy_id` for
  manually assigned ids (static catalog entries such as "1", "2").
• **Owner optional**: static catalog content has no owner; owned content is
  removed with its owner (`ON DELETE CASCADE`).
• Likes/dislikes are **edge tables** (`podcast_likes`, `podcast_dislikes`), not
  arrays, so membership is a primary-key fact and counts are `COUNT(*)`.
"""

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid, func, text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, utcnow
from app.schemas.enums import MediaType


class Podcast(Base):
    __tablename__ = "podcasts"

    # ── Identity ────────────────────────────────────────────────────────────
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    legacy_id = Column(String(64), nullable=True, unique=True, doc="Manually assigned id (static content)")

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        doc="Owner; NULL for static catalog entries.",
    )

    # ── Descriptive ─────────────────────────────────────────────────────────
    title = Column(String(300), nullable=False)
    author = Column(String(100), nullable=True, doc="Denormalized owner username")
    description = Column(Text, nullable=True)
    category = Column(String(64), nullable=True)
    language = Column(String(32), nullable=False, default="Hindi", server_default=text("'Hindi'"))
    media_type = Column(String(8), nullable=False, default=MediaType.AUDIO.value, server_default=text("'audio'"))
    rating = Column(Float, nullable=True)
    youtube_channel = Column(String, nullable=True)

    # ── Media paths ─────────────────────────────────────────────────────────
    image = Column(String, nullable=True, doc="Thumbnail path or URL")
    audio_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)

    # ── Engagement ──────────────────────────────────────────────────────────
    views = Column(Integer, nullable=False, default=0, server_default=text("0"))

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("media_type IN ('audio', 'video')", name="media_type_valid"),
        CheckConstraint("views >= 0", name="views_non_negative"),
        Index("ix_podcasts_created_at", "created_at"),
    )

    # ── Relationships ───────────────────────────────────────────────────────
    owner = relationship("User", back_populates="podcasts", lazy="noload")
    episodes = relationship(
        "Episode",
        back_populates="podcast",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Episode.episode_number",
        lazy="selectin",
    )

    @property
    def public_id(self) -> str:
        """Identifier clients use in URLs (legacy id wins when present)."""
        return self.legacy_id or str(self.id)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Podcast id={self.id} legacy_id={self.legacy_id} title={self.title!r}>"

from __future__ import annotations

"""
📚 ALPHA — Library & listening history
=====================================

`LibraryItem` — user ↔ podcast bookmark (composite PK, no duplicates).

`HistoryEntry` — most-recent-first listening history with a progress marker in
seconds. One row per `(user, podcast)`; replaying moves the row to the top by
bumping `played_at`. The service trims each user to the newest 50 rows.
"""

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, UniqueConstraint, Uuid, func, text

from app.db.base_class import Base, utcnow

HISTORY_LIMIT = 50


class LibraryItem(Base):
    __tablename__ = "library_items"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    podcast_id = Column(Uuid(as_uuid=True), ForeignKey("podcasts.id", ondelete="CASCADE"), primary_key=True)
    added_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class HistoryEntry(Base):
    __tablename__ = "history_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    podcast_id = Column(Uuid(as_uuid=True), ForeignKey("podcasts.id", ondelete="CASCADE"), nullable=False)
    progress = Column(Integer, nullable=False, default=0, server_default=text("0"), doc="Seconds")
    played_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "podcast_id", name="uq_history_entries_user_podcast"),
        CheckConstraint("progress >= 0", name="progress_non_negative"),
        Index("ix_history_entries_user_played", "user_id", "played_at"),
    )

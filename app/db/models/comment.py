from __future__ import annotations

"""
💬 ALPHA — Comment
=================

Free-text comment on a podcast. `podcast_id` is a loosely-typed string so both
UUIDs and legacy ids work. Comments are immutable; when the author's account
is deleted the comment stays and `user_id` becomes NULL (shown as a deleted
user).
"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import relationship

from app.db.base_class import Base, utcnow


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    podcast_id = Column(String(64), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (Index("ix_comments_podcast_created", "podcast_id", "created_at"),)

    author = relationship("User", lazy="selectin")

from __future__ import annotations

"""
🎙️ ALPHA — Episode
=================

Sub-record of a podcast with its own optional audio/video attachment.
Episodes disappear with their podcast (`ON DELETE CASCADE`).
"""

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class Episode(Base):
    __tablename__ = "episodes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    podcast_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("podcasts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    legacy_id = Column(String(64), nullable=True)

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(String(32), nullable=True, doc='Display duration, e.g. "45:12"')
    date = Column(String(32), nullable=True)
    episode_number = Column(Integer, nullable=True)
    video_id = Column(String(64), nullable=True, doc="External (YouTube) video id")

    audio_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)

    podcast = relationship("Podcast", back_populates="episodes", lazy="noload")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Episode id={self.id} podcast_id={self.podcast_id} no={self.episode_number}>"

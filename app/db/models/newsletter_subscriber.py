from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Uuid, func

from app.db.base_class import Base, utcnow


class NewsletterSubscriber(Base):
    """Email address signed up for the newsletter (unique)."""

    __tablename__ = "newsletter_subscribers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(320), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

from __future__ import annotations

"""
👤 ALPHA — User (accounts & auth)
================================

Canonical account entity: login credentials, contact fields, verification
state and the profile picture path. Everything a user *owns or points at*
(likes, library, history, subscriptions, OTPs) lives in its own table keyed by
`user_id` with `ON DELETE CASCADE`, so removing the row removes the edges.

Design highlights
-----------------
• **Email uniqueness** (stored lower-cased by the service layer).
• **tz-aware timestamps** with Python + server defaults (Postgres and SQLite).
• **No OTP columns**: one-time codes are purpose-scoped rows in `otps`.
"""

from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, String, Uuid, func, text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, utcnow


class User(Base):
    """Account record with credentials, verification flag and media path."""

    __tablename__ = "users"

    # ── Identity & Authentication ─────────────────────────────────────────────
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    username = Column(String(100), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    phone = Column(String(32), nullable=True)
    hashed_password = Column(String, nullable=False, doc="BCrypt hash of the password")

    # ── Profile / Verification ────────────────────────────────────────────────
    profile_picture = Column(String, nullable=True, doc="e.g. /uploads/pp.png or an external URL")
    is_verified = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    # ── Timestamps ────────────────────────────────────────────────────────────
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("length(trim(email)) > 0", name="email_not_blank"),
        Index("ix_users_created_at", "created_at"),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    otps = relationship(
        "OTP",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )
    podcasts = relationship(
        "Podcast",
        back_populates="owner",
        passive_deletes=True,
        lazy="noload",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} email={self.email} verified={self.is_verified}>"

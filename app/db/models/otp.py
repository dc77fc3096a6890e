from __future__ import annotations

"""
🔑 ALPHA — OTP (One-Time Password)
=================================

Short-lived confirmation codes for registration, password reset and account
deletion.

Design highlights
-----------------
• **Purpose scoping**: a code is bound to `(user, purpose)`; a pending reset code
  can never confirm a deletion.
• **No plaintext at rest**: `code` holds a peppered HMAC digest.
• One *active* row per `(user, purpose)`, enforced by the issuer (it clears
  unused rows before inserting).
• Timestamps are UTC; `expired`/`is_active` tolerate naive values from SQLite.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, as_utc, utcnow


class OTP(Base):
    """One-time password row."""

    __tablename__ = "otps"

    # ─────────────── Identity ───────────────
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User this OTP belongs to",
    )

    # ─────────────── OTP Details ───────────────
    code = Column(String(128), nullable=False, doc="HMAC-SHA256 hex digest of the code")
    purpose = Column(String(32), nullable=False, doc="registration | password_reset | delete_account")

    expires_at = Column(DateTime(timezone=True), nullable=False, doc="Expiration timestamp (UTC)")
    used = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_otps_user_purpose_used", "user_id", "purpose", "used"),
        Index("ix_otps_expires_at", "expires_at"),
    )

    # ─────────────── Relationships ───────────────
    user = relationship("User", back_populates="otps", lazy="noload")

    # ─────────────── Helpers ───────────────
    @property
    def expired(self) -> bool:
        """True when the OTP is past its `expires_at`."""
        exp = as_utc(self.expires_at)
        return exp is None or utcnow() > exp

    @property
    def is_active(self) -> bool:
        return (not self.used) and (not self.expired)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<OTP id={self.id} user_id={self.user_id} purpose={self.purpose} used={self.used}>"

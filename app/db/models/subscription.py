from __future__ import annotations

"""
🔔 ALPHA — Subscription (subscriber → channel edge)
==================================================

Directed edge between two users with denormalized email/name for
notifications. The `(subscriber_id, channel_id)` pair is unique and a user can
never subscribe to itself (CHECK). Both "subscribers of X" and "X subscribed
to" are read from this one table.
"""

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid, func

from app.db.base_class import Base, utcnow


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    subscriber_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subscriber_email = Column(String(320), nullable=True)
    channel_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    channel_name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_subscriber_channel"),
        CheckConstraint("subscriber_id <> channel_id", name="no_self_subscription"),
        Index("ix_subscriptions_channel", "channel_id"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Subscription {self.subscriber_id} -> {self.channel_id}>"

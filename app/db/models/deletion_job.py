from __future__ import annotations

"""
🧨 ALPHA — AccountDeletionJob (durable cascade record)
=====================================================

Persists an account deletion as an ordered list of idempotent steps so a crash
mid-cascade can be resumed instead of leaving orphaned files or rows.

Design highlights
-----------------
• **No FK to users**: the job must outlive the user row it deletes.
• **Snapshot** of username/email/phone/reason for the admin notice.
• `files` is filled by the enumeration step and reused on resume, so a retry
  deletes exactly the same set.
• `completed_steps` is append-only; a step listed there is never re-run.
"""

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, Uuid, func, text

from app.db.base_class import Base, utcnow
from app.schemas.enums import DeletionJobStatus


class AccountDeletionJob(Base):
    __tablename__ = "account_deletion_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    # ── Snapshot ────────────────────────────────────────────────────────────
    username = Column(String(100), nullable=True)
    email = Column(String(320), nullable=True)
    phone = Column(String(32), nullable=True)
    reason = Column(Text, nullable=False)

    # ── Progress ────────────────────────────────────────────────────────────
    status = Column(
        String(16),
        nullable=False,
        default=DeletionJobStatus.PENDING.value,
        server_default=text("'pending'"),
    )
    files = Column(JSON, nullable=True)
    completed_steps = Column(JSON, nullable=False, default=list)
    file_errors = Column(JSON, nullable=False, default=list)
    attempts = Column(Integer, nullable=False, default=0, server_default=text("0"))
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_account_deletion_jobs_status", "status"),)

    def has_completed(self, step) -> bool:
        name = getattr(step, "value", step)
        return name in (self.completed_steps or [])

    def mark_completed(self, step) -> None:
        name = getattr(step, "value", step)
        # Reassign so the JSON column is flagged dirty.
        self.completed_steps = [*(self.completed_steps or []), name]

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AccountDeletionJob id={self.id} user_id={self.user_id} status={self.status}>"

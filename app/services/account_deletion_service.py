from __future__ import annotations

"""
Account deletion — durable cascade executor
===========================================

Deleting an account touches three worlds: uploaded files on disk, content
rows, and the user row with everything hanging off it. A crash halfway must
not leave a user half-deleted, so the cascade is written down first as an
`AccountDeletionJob` and then executed as ordered, idempotent steps:

    enumerate_files → delete_files → delete_content → notify_admin → delete_user

Each step is committed on its own and recorded in `completed_steps`; a job
found `pending`/`running`/`failed` at startup is resumed from the first step
it has not finished.

Guarantees
----------
- Missing OTP or reason fails **before** any side effect.
- A rejected OTP leaves user, content and codes intact.
- The success message is returned only after the user row is gone.
- File and notification failures are recorded/logged, never fatal.
"""

from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
from uuid import UUID
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import NotFound, ValidationFailed
from app.db.base_class import utcnow
from app.db.models.deletion_job import AccountDeletionJob
from app.db.models.podcast import Podcast
from app.db.models.user import User
from app.schemas.enums import DELETION_STEPS, DeletionJobStatus, DeletionStep, OtpPurpose
from app.services import media_files, otp_service
from app.utils import email_utils

logger = logging.getLogger("alpha.account_deletion")

Notifier = Callable[[Mapping[str, Any], str], Awaitable[None]]

SUCCESS_MESSAGE = "Account, uploaded content, and data deleted successfully"
MAX_RESUME_ATTEMPTS = 5


# ─────────────────────────────────────────────────────────────
# 🧩 Steps
# ─────────────────────────────────────────────────────────────

async def _enumerate_files(db: AsyncSession, job: AccountDeletionJob, **_: Any) -> None:
    user = await db.get(User, job.user_id)
    if user is None:
        job.files = []
        return
    podcasts = (
        await db.execute(select(Podcast).where(Podcast.user_id == job.user_id).order_by(Podcast.created_at))
    ).scalars().all()
    job.files = media_files.collect_user_upload_paths(user, podcasts)


async def _delete_files(
    db: AsyncSession, job: AccountDeletionJob, *, base_dir: Optional[Path | str] = None, **_: Any
) -> None:
    if not job.files:
        job.file_errors = []
        return
    result = media_files.delete_upload_files(job.files, base_dir)
    job.file_errors = result["errors"]
    logger.info(
        "Deletion job %s: files deleted=%d missing=%d errors=%d",
        job.id, len(result["deleted"]), len(result["missing"]), len(result["errors"]),
    )


async def _delete_content(db: AsyncSession, job: AccountDeletionJob, **_: Any) -> None:
    # Episodes, reactions, library and history rows go with the podcasts (FK cascade).
    await db.execute(delete(Podcast).where(Podcast.user_id == job.user_id))


async def _notify_admin(
    db: AsyncSession, job: AccountDeletionJob, *, notify: Optional[Notifier] = None, **_: Any
) -> None:
    sender = notify or email_utils.send_account_deleted_notification
    snapshot = {"username": job.username, "email": job.email, "phone": job.phone}
    try:
        await sender(snapshot, job.reason)
    except Exception:
        logger.exception("Deletion job %s: admin notification failed [non-fatal]", job.id)


async def _delete_user(db: AsyncSession, job: AccountDeletionJob, **_: Any) -> None:
    # OTPs, reactions, library, history and subscriptions cascade; comments are anonymized.
    await db.execute(delete(User).where(User.id == job.user_id))


_STEP_HANDLERS: Dict[DeletionStep, Callable[..., Awaitable[None]]] = {
    DeletionStep.ENUMERATE_FILES: _enumerate_files,
    DeletionStep.DELETE_FILES: _delete_files,
    DeletionStep.DELETE_CONTENT: _delete_content,
    DeletionStep.NOTIFY_ADMIN: _notify_admin,
    DeletionStep.DELETE_USER: _delete_user,
}


# ─────────────────────────────────────────────────────────────
# ▶️ Run / resume
# ─────────────────────────────────────────────────────────────

async def run_job(
    db: AsyncSession,
    job: AccountDeletionJob,
    *,
    notify: Optional[Notifier] = None,
    base_dir: Optional[Path | str] = None,
) -> AccountDeletionJob:
    """Execute every step `job` has not completed yet, committing after each.

    On failure the job is marked `failed` with `last_error` and the exception
    propagates.
    """
    job_id = job.id
    job.status = DeletionJobStatus.RUNNING.value
    job.attempts = (job.attempts or 0) + 1
    await db.commit()

    current: Optional[DeletionStep] = None
    try:
        for step in DELETION_STEPS:
            if job.has_completed(step):
                continue
            current = step
            await _STEP_HANDLERS[step](db, job, notify=notify, base_dir=base_dir)
            job.mark_completed(step)
            await db.commit()
            logger.debug("Deletion job %s: step %s done", job_id, step.value)
    except Exception as exc:
        await db.rollback()
        failed = await db.get(AccountDeletionJob, job_id)
        if failed is not None:
            failed.status = DeletionJobStatus.FAILED.value
            failed.last_error = f"{current.value if current else '?'}: {exc}"[:2000]
            await db.commit()
        logger.exception("Deletion job %s failed at step %s", job_id, current.value if current else "?")
        raise

    job.status = DeletionJobStatus.COMPLETED.value
    job.completed_at = utcnow()
    job.last_error = None
    await db.commit()
    logger.info("Deletion job %s completed (user=%s)", job_id, job.user_id)
    return job


async def execute(
    db: AsyncSession,
    user_id: UUID,
    otp: Optional[str],
    reason: Optional[str],
    *,
    notify: Optional[Notifier] = None,
    base_dir: Optional[Path | str] = None,
) -> Dict[str, Any]:
    """Verify the deletion OTP and run the full cascade for `user_id`.

    Steps
    -----
    1) Require both OTP and reason (no side effects otherwise).
    2) Load the user (404 if gone).
    3) Verify the `delete_account` code (400 on rejection, nothing mutated).
    4) Persist the job together with the OTP consumption.
    5) Run the steps; return only once the user row is deleted.
    """
    # [Step 1] Input
    if not (otp or "").strip() or not (reason or "").strip():
        raise ValidationFailed("Please provide OTP and reason", code="missing_fields")

    # [Step 2] User
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    # [Step 3] OTP (consumed in the same commit as the job insert)
    await otp_service.verify(db, user, otp, OtpPurpose.DELETE_ACCOUNT)

    # [Step 4] Durable job record
    job = AccountDeletionJob(
        user_id=user.id,
        username=user.username,
        email=user.email,
        phone=user.phone,
        reason=reason.strip(),
        status=DeletionJobStatus.PENDING.value,
        completed_steps=[],
        file_errors=[],
    )
    db.add(job)
    await db.commit()
    logger.info("Account deletion job %s created for user=%s", job.id, user.id)

    # [Step 5] Cascade
    await run_job(db, job, notify=notify, base_dir=base_dir)
    return {"message": SUCCESS_MESSAGE, "job_id": str(job.id)}


async def resume_pending_jobs(
    session_maker: async_sessionmaker[AsyncSession],
    *,
    notify: Optional[Notifier] = None,
    base_dir: Optional[Path | str] = None,
) -> int:
    """Re-run unfinished jobs (startup hook). Returns how many completed."""
    unfinished = (
        DeletionJobStatus.PENDING.value,
        DeletionJobStatus.RUNNING.value,
        DeletionJobStatus.FAILED.value,
    )
    async with session_maker() as db:
        job_ids = (
            await db.execute(
                select(AccountDeletionJob.id)
                .where(
                    AccountDeletionJob.status.in_(unfinished),
                    AccountDeletionJob.attempts < MAX_RESUME_ATTEMPTS,
                )
                .order_by(AccountDeletionJob.created_at)
            )
        ).scalars().all()

    completed = 0
    for job_id in job_ids:
        async with session_maker() as db:
            job = await db.get(AccountDeletionJob, job_id)
            if job is None:
                continue
            try:
                await run_job(db, job, notify=notify, base_dir=base_dir)
                completed += 1
            except Exception:
                logger.warning("Resume of deletion job %s failed; will retry on next start", job_id)
    if job_ids:
        logger.info("Resumed %d/%d pending deletion job(s)", completed, len(job_ids))
    return completed


__all__ = ["SUCCESS_MESSAGE", "execute", "run_job", "resume_pending_jobs"]

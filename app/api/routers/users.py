# app/api/routers/users.py

"""
Users API
=========

Mounted under `/api/users`.

Endpoints
---------
GET    /profile                 Own profile with liked podcasts, library, history
GET    /{id}/public-profile     Public profile + that user's podcasts
POST   /library/{podcast_id}    Toggle a podcast in the caller's library
POST   /history                 Record playback (most recent first, capped at 50)
POST   /delete-otp              Check the reason, mail a code that authorizes deletion
DELETE /delete                  Verify the code and run the deletion cascade

Account deletion
----------------
- The OTP is purpose-scoped (`delete_account`): a password-reset code cannot
  authorize deletion and vice versa.
- Issuance is throttled per user (Redis, fail-open) and the response is
  marked `no-store`.
- Deletion is a durable job (files → content → admin notice → user row).
  Unexpected failures surface as 500 "Failed to delete account"; the job is
  left `failed` and retried at the next startup.

Example Responses
-----------------
- 200 OK `{ "message": "OTP sent to your email" }`
- 200 OK `{ "message": "Account, uploaded content, and data deleted successfully", "job_id": "..." }`
- 400 `{ "message": "Invalid or expired OTP", "kind": "auth_error", "code": "otp_expired" }`
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.http_utils import set_sensitive_cache
from app.core.exceptions import AppException, InternalFailure, ValidationFailed
from app.core.security import get_current_user
from app.db.models.user import User
from app.db.session import get_async_db
from app.schemas.enums import OtpPurpose
from app.schemas.user import (
    DeleteAccountRequest,
    DeleteAccountResponse,
    DeleteOtpRequest,
    HistoryRequest,
    MessageResponse,
)
from app.services import account_deletion_service, account_service, otp_service
from app.utils import email_utils
from app.utils.redis_utils import RateLimited, enforce_rate_limit

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger("alpha.users")


# ─────────────────────────────────────────────────────────────
# 👤 Profiles
# ─────────────────────────────────────────────────────────────

@router.get("/profile", summary="Own profile with liked podcasts, library and history")
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    return await account_service.get_profile(db, current_user)


@router.get("/{user_id}/public-profile", summary="Public profile and podcasts of a creator")
async def get_public_profile(user_id: str, db: AsyncSession = Depends(get_async_db)) -> Dict[str, Any]:
    return await account_service.get_public_profile(db, user_id)


# ─────────────────────────────────────────────────────────────
# 📚 Library & history
# ─────────────────────────────────────────────────────────────

@router.post("/library/{podcast_id}", response_model=List[str], summary="Toggle a podcast in the library")
async def toggle_library(
    podcast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> List[str]:
    return await account_service.toggle_library(db, current_user, podcast_id)


@router.post("/history", summary="Record playback progress")
async def record_history(
    payload: HistoryRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> List[Dict[str, Any]]:
    return await account_service.record_history(db, current_user, payload.podcast_id, payload.progress)


# ─────────────────────────────────────────────────────────────
# 📩 Request deletion OTP
# ─────────────────────────────────────────────────────────────

@router.post("/delete-otp", response_model=MessageResponse, summary="Send OTP for account deletion")
async def request_delete_otp(
    response: Response,
    payload: Optional[DeleteOtpRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> MessageResponse:
    """
    Steps
    -----
    0) Mark response `no-store`.
    1) Require a non-blank `reason` (400, nothing is issued or mailed).
    2) Enforce **3/min** per-user issuance rate limit (Redis).
    3) Mint a fresh `delete_account` code (previous one dies) and **await** the
       email, so a failed send is reported instead of a false success.
    """
    # [Step 0] Sensitive cache headers
    set_sensitive_cache(response)
    user_id = current_user.id

    # [Step 1] Reason first
    if not (payload and (payload.reason or "").strip()):
        raise ValidationFailed("Please provide a reason", code="missing_reason")

    try:
        # [Step 2] Per-user throttle (3/min)
        await enforce_rate_limit(
            key_suffix=f"delete-otp:{user_id}",
            seconds=60,
            max_calls=3,
            error_message="Please wait before requesting another OTP.",
        )
        # [Step 3] Issue + dispatch
        await otp_service.issue(
            db, current_user, OtpPurpose.DELETE_ACCOUNT, send=email_utils.send_delete_otp_email
        )
    except RateLimited:
        raise
    except Exception as exc:
        await db.rollback()
        logger.exception("Failed to send deletion OTP for user %s", user_id)
        raise InternalFailure("Failed to send OTP", code="otp_dispatch_failed") from exc

    return MessageResponse(message="OTP sent to your email")


# ─────────────────────────────────────────────────────────────
# 🧨 Delete current user
# ─────────────────────────────────────────────────────────────

@router.delete("/delete", response_model=DeleteAccountResponse, summary="Delete the authenticated account")
async def delete_account(
    response: Response,
    payload: Optional[DeleteAccountRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    """Verify `{otp, reason}` and delete the account with all owned content."""
    set_sensitive_cache(response)
    payload = payload or DeleteAccountRequest()
    user_id = current_user.id

    try:
        return await account_deletion_service.execute(db, user_id, payload.otp, payload.reason)
    except AppException as exc:
        if exc.status_code < 500:
            raise
        logger.error("Account deletion for %s failed: %s", user_id, exc.message)
        raise InternalFailure("Failed to delete account", code="deletion_failed") from exc
    except Exception as exc:
        logger.exception("Account deletion for %s failed", user_id)
        raise InternalFailure("Failed to delete account", code="deletion_failed") from exc


__all__ = ["router"]

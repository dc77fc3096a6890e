# app/api/routers/auth.py

"""
Auth API
========

Mounted under `/api/auth`.

POST /register              create/refresh an unverified account, mail a code (201/200)
POST /verify-otp            confirm the registration code → bearer token
POST /login                 email + password → bearer token
POST /change-password       (Bearer) rotate the password
POST /forgot-password-otp   mail a password-reset code
POST /reset-password        confirm the reset code and set a new password

All OTP failures answer 400 `{"message": "Invalid or expired OTP",
"kind": "auth_error", "code": "otp_invalid" | "otp_expired"}`.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.http_utils import set_sensitive_cache
from app.core.security import get_current_user
from app.db.models.user import User
from app.db.session import get_async_db
from app.schemas.auth import (
    AuthUserResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    OtpSentResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyOtpRequest,
)
from app.schemas.user import MessageResponse
from app.services import account_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=OtpSentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register and receive an email OTP",
)
async def register(
    payload: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    body, created = await account_service.register(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return body


@router.post("/verify-otp", response_model=AuthUserResponse, summary="Verify registration OTP")
async def verify_otp(
    payload: VerifyOtpRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    set_sensitive_cache(response)
    return await account_service.verify_registration(db, payload.email, payload.otp)


@router.post("/login", response_model=AuthUserResponse, summary="Log in with email and password")
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    set_sensitive_cache(response)
    return await account_service.login(db, payload.email, payload.password)


@router.post("/change-password", response_model=MessageResponse, summary="Change password")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, str]:
    return await account_service.change_password(db, current_user, payload.current_password, payload.new_password)


@router.post("/forgot-password-otp", response_model=OtpSentResponse, summary="Send password reset OTP")
async def forgot_password_otp(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, str]:
    return await account_service.request_password_reset(db, payload.email)


@router.post("/reset-password", response_model=MessageResponse, summary="Reset password with OTP")
async def reset_password(
    payload: ResetPasswordRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, str]:
    set_sensitive_cache(response)
    return await account_service.reset_password(db, payload.email, payload.otp, payload.new_password)


__all__ = ["router"]

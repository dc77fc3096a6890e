# app/schemas/auth.py

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts/returns camelCase keys (the web client's convention)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ──────────────── Register / Verify ────────────────
class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    phone: Optional[str] = Field(default=None, max_length=32)


class VerifyOtpRequest(BaseModel):
    email: str
    otp: Optional[str] = None


class OtpSentResponse(BaseModel):
    message: str
    email: str


# ──────────────── Login ────────────────
class LoginRequest(BaseModel):
    email: str
    password: str


class AuthUserResponse(CamelModel):
    id: UUID
    username: str
    email: str
    profile_picture: Optional[str] = None
    is_verified: bool
    token: str


# ──────────────── Passwords ────────────────
class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(CamelModel):
    email: str
    otp: Optional[str] = None
    new_password: str = Field(min_length=6, max_length=128)

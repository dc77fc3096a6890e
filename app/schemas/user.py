# app/schemas/user.py

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.auth import CamelModel


class MessageResponse(BaseModel):
    message: str


# ──────────────── Content views ────────────────
class EpisodeOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    legacy_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None
    date: Optional[str] = None
    episode_number: Optional[int] = None
    video_id: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None


class PodcastOut(CamelModel):
    """Podcast as clients see it: `id` is the public (legacy-or-uuid) id."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(validation_alias="public_id")
    uuid: UUID = Field(validation_alias="id")
    user_id: Optional[UUID] = None
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    language: Optional[str] = None
    media_type: str
    rating: Optional[float] = None
    youtube_channel: Optional[str] = None
    image: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    views: int = 0
    created_at: Optional[datetime] = None
    episodes: List[EpisodeOut] = []


class PublicUserOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    profile_picture: Optional[str] = None
    is_verified: bool
    subscribers_count: int = 0


# ──────────────── Requests ────────────────
class HistoryRequest(CamelModel):
    podcast_id: str
    progress: int = Field(default=0, ge=0)


class DeleteOtpRequest(BaseModel):
    """Why the user is leaving; required before a deletion code is mailed."""

    reason: Optional[str] = None


class DeleteAccountRequest(BaseModel):
    """OTP + reason; both are checked by the service so the message stays stable."""

    otp: Optional[str] = None
    reason: Optional[str] = None


class DeleteAccountResponse(BaseModel):
    message: str
    job_id: UUID

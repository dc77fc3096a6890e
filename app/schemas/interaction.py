# app/schemas/interaction.py

from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.auth import CamelModel


class LikeRequest(BaseModel):
    """Optional catalogue metadata; lets the first like create a static podcast."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[float] = None
    language: Optional[str] = None


class LikeResponse(CamelModel):
    is_liked: bool
    likes_count: int


class DislikeResponse(CamelModel):
    is_disliked: bool
    dislikes_count: int
    likes_count: int


class SubscribeResponse(CamelModel):
    message: str
    is_subscribed: bool
    subscribers_count: int


class ViewsResponse(BaseModel):
    views: int


class CommentRequest(BaseModel):
    text: Optional[str] = None


# ──────────────── Newsletter / Contact ────────────────
class NewsletterRequest(BaseModel):
    email: Optional[str] = None


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None

"""
🧭 ALPHA • API Router Aggregator
================================

Exports the **combined `router`** and each sub-router so callers can mount
them as needed.

Quick usage
-----------
    from app.api.routers import router as api_router
    app.include_router(api_router, prefix="/api")

Security notes
--------------
- 🔐 This layer is a pure aggregator; **auth & rate limits live in child routers**.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .contact import router as contact_router
from .interactions import router as interactions_router
from .subscribers import router as subscribers_router
from .users import router as users_router


def build_api_router() -> APIRouter:
    """
    Compose the public API surface into a single `APIRouter`.

    Layout (relative to the mount prefix)
    -------------------------------------
      • /auth/...          registration, login, passwords
      • /users/...         profiles, library, history, account deletion
      • /interactions/...  likes, dislikes, subscriptions, views, comments
      • /subscribers/...   newsletter
      • /contact           contact form
    """
    api = APIRouter()
    api.include_router(auth_router)
    api.include_router(users_router)
    api.include_router(interactions_router)
    api.include_router(subscribers_router)
    api.include_router(contact_router)
    return api


router = build_api_router()

__all__ = [
    "router",
    "build_api_router",
    "auth_router",
    "users_router",
    "interactions_router",
    "subscribers_router",
    "contact_router",
]

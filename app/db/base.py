# app/db/base.py
"""
ALPHA — SQLAlchemy Base registry
================================

Import all ORM models so their tables are registered on `Base.metadata`
(`create_all`, migrations, and relationship resolution by name).

Keep this file import-only; no runtime logic.
"""

from app.db.base_class import Base

# ───────────────────────────────────────────────────────────────
# Accounts & auth
# ───────────────────────────────────────────────────────────────
from app.db.models.user import User
from app.db.models.otp import OTP
from app.db.models.deletion_job import AccountDeletionJob

# ───────────────────────────────────────────────────────────────
# Content
# ───────────────────────────────────────────────────────────────
from app.db.models.podcast import Podcast
from app.db.models.episode import Episode

# ───────────────────────────────────────────────────────────────
# Engagement & social
# ───────────────────────────────────────────────────────────────
from app.db.models.reaction import PodcastDislike, PodcastLike
from app.db.models.library import HistoryEntry, LibraryItem
from app.db.models.subscription import Subscription
from app.db.models.comment import Comment
from app.db.models.newsletter_subscriber import NewsletterSubscriber

__all__ = [
    "Base",
    "User",
    "OTP",
    "AccountDeletionJob",
    "Podcast",
    "Episode",
    "PodcastLike",
    "PodcastDislike",
    "LibraryItem",
    "HistoryEntry",
    "Subscription",
    "Comment",
    "NewsletterSubscriber",
]

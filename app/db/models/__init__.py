"""
ALPHA — ORM model package
=========================

Re-exports every model so `from app.db.models import User, Podcast` works and
all tables are registered on `Base.metadata` at import time.
"""

from .user import User
from .otp import OTP
from .podcast import Podcast
from .episode import Episode
from .reaction import PodcastLike, PodcastDislike
from .library import HistoryEntry, LibraryItem, HISTORY_LIMIT
from .subscription import Subscription
from .comment import Comment
from .newsletter_subscriber import NewsletterSubscriber
from .deletion_job import AccountDeletionJob

__all__ = [
    "User",
    "OTP",
    "Podcast",
    "Episode",
    "PodcastLike",
    "PodcastDislike",
    "LibraryItem",
    "HistoryEntry",
    "HISTORY_LIMIT",
    "Subscription",
    "Comment",
    "NewsletterSubscriber",
    "AccountDeletionJob",
]

from __future__ import annotations

"""
Newsletter sign-ups and the public contact form.

- `subscribe_newsletter`: one row per address (unique), welcome mail best-effort.
- `send_contact_message`: forwards to the admin inbox; delivery is strict.
"""

from typing import Any, Dict, Optional
import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, InternalFailure, ValidationFailed
from app.db.models.newsletter_subscriber import NewsletterSubscriber
from app.utils import email_utils

logger = logging.getLogger("alpha.newsletter")

# Lightweight email sanity (do not over-validate)
_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")

ALREADY_SUBSCRIBED = "You have already subscribed before"


async def subscribe_newsletter(db: AsyncSession, email: Optional[str]) -> Dict[str, Any]:
    address = (email or "").strip().lower()
    if not address:
        raise ValidationFailed("Email is required")
    if not _EMAIL_RE.match(address):
        raise ValidationFailed("Please enter a valid email address", code="invalid_email")

    existing = (
        await db.execute(select(NewsletterSubscriber).where(NewsletterSubscriber.email == address))
    ).scalar_one_or_none()
    if existing is not None:
        raise Conflict(ALREADY_SUBSCRIBED, code="already_subscribed")

    subscriber = NewsletterSubscriber(email=address)
    db.add(subscriber)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict(ALREADY_SUBSCRIBED, code="already_subscribed")

    try:
        await email_utils.send_subscription_welcome_email(address)
    except Exception:
        logger.exception("Welcome mail to %s failed [non-fatal]", address)

    return {
        "message": "Subscribed successfully",
        "data": {
            "id": str(subscriber.id),
            "email": subscriber.email,
            "createdAt": subscriber.created_at.isoformat() if subscriber.created_at else None,
        },
    }


async def send_contact_message(
    name: Optional[str],
    email: Optional[str],
    subject: Optional[str],
    message: Optional[str],
) -> Dict[str, str]:
    fields = [(v or "").strip() for v in (name, email, subject, message)]
    if not all(fields):
        raise ValidationFailed("All fields are required")
    try:
        await email_utils.send_contact_email(*fields)
    except Exception as exc:
        logger.exception("Contact message from %s could not be delivered", fields[1])
        raise InternalFailure("Failed to send message, please try again later.", code="contact_failed") from exc
    return {"message": "Message sent successfully"}


__all__ = ["subscribe_newsletter", "send_contact_message"]

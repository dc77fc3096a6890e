# app/utils/email_utils.py

from __future__ import annotations

"""
Transactional Email Utilities for ALPHA
=======================================

Async senders built on **FastAPI-Mail**, with Jinja2-rendered HTML bodies and
plaintext fallbacks.

Delivery modes
--------------
- Production with SMTP configured (or `EMAIL_STRICT_LOCAL=1`): real send.
- Anything else: **DRY-RUN**, the message is logged instead of sent.

Failure policy
--------------
Two kinds of senders live here:

- **Strict** (OTP mail, contact form): the caller cannot proceed without the
  message, so transport failures raise `EmailDeliveryError` (500).
- **Best-effort** (admin/deletion notice, welcome mails, subscriber notices):
  failures are logged and swallowed.

Public API
----------
- send_otp_email(email, otp)                                    # strict
- send_delete_otp_email(email, otp)                             # strict
- send_contact_email(name, email, subject, message)             # strict
- send_account_deleted_notification(user_snapshot, reason)      # best-effort
- send_subscription_welcome_email(email)                        # best-effort
- send_new_subscriber_email(channel_email, subscriber_username)  # best-effort
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from app.core.config import settings
from app.core.exceptions import InternalFailure

# ──────────────────────────────────────────────────────────────────────────────
# 🔧 Configuration & Globals
# ──────────────────────────────────────────────────────────────────────────────

logger = logging.getLogger("alpha.email")

SMTP_HOST: Optional[str] = settings.SMTP_HOST
SMTP_PORT: int = settings.SMTP_PORT
SMTP_USERNAME: Optional[str] = settings.SMTP_USERNAME
SMTP_PASSWORD: Optional[str] = (
    settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
)
EMAIL_FROM: str = settings.EMAIL_FROM
EMAIL_FROM_NAME: str = settings.EMAIL_FROM_NAME
EMAIL_TEMPLATE_DIR: Path = Path(settings.EMAIL_TEMPLATE_DIR).resolve()

# For SMTPS (implicit TLS) use port 465; otherwise use STARTTLS (587 default)
_USE_SSL = SMTP_PORT == 465

# Lazy singletons for FastAPI-Mail + Jinja2
_fastmail_conf: Optional[ConnectionConfig] = None
_fastmail: Optional[FastMail] = None
_jinja_env: Optional[Environment] = None


class EmailDeliveryError(InternalFailure):
    """Raised by strict senders when the transport refuses the message."""

    def __init__(self, message: str = "Email sending failed") -> None:
        super().__init__(message, code="email_delivery_failed")


# ──────────────────────────────────────────────────────────────────────────────
# 🧰 Jinja environment
# ──────────────────────────────────────────────────────────────────────────────

def _jinja() -> Environment:
    """Create (once) the Jinja2 environment rooted at EMAIL_TEMPLATE_DIR."""
    global _jinja_env
    if _jinja_env is not None:
        return _jinja_env

    search_path = str(EMAIL_TEMPLATE_DIR) if EMAIL_TEMPLATE_DIR.is_dir() else "."
    if not EMAIL_TEMPLATE_DIR.is_dir():
        logger.warning("Email template folder %s not found; plaintext fallbacks only.", EMAIL_TEMPLATE_DIR)

    _jinja_env = Environment(
        loader=FileSystemLoader(search_path),
        autoescape=select_autoescape(enabled_extensions=("html", "xml")),
    )
    return _jinja_env


def _render_html_template(template_name: str, context: Mapping[str, Any]) -> Optional[str]:
    """Render an HTML template; None when missing or broken (caller falls back)."""
    try:
        return _jinja().get_template(template_name).render(**dict(context))
    except TemplateNotFound:
        return None
    except Exception:
        logger.exception("Template render failed: %s", template_name)
        return None


# ──────────────────────────────────────────────────────────────────────────────
# 📮 FastAPI-Mail configuration
# ──────────────────────────────────────────────────────────────────────────────

def _conn_config() -> ConnectionConfig:
    """Build and cache the FastAPI-Mail ConnectionConfig."""
    global _fastmail_conf
    if _fastmail_conf:
        return _fastmail_conf

    if not SMTP_HOST:
        logger.warning("SMTP_HOST is not set – emails will be logged (ENV=%s)", settings.ENV)

    _fastmail_conf = ConnectionConfig(
        MAIL_USERNAME=SMTP_USERNAME or "",
        MAIL_PASSWORD=SMTP_PASSWORD or "",
        MAIL_FROM=EMAIL_FROM,
        MAIL_PORT=SMTP_PORT,
        MAIL_SERVER=SMTP_HOST or "localhost",
        MAIL_FROM_NAME=EMAIL_FROM_NAME,
        MAIL_STARTTLS=not _USE_SSL,
        MAIL_SSL_TLS=_USE_SSL,
        USE_CREDENTIALS=bool(SMTP_USERNAME and SMTP_PASSWORD),
        SUPPRESS_SEND=0,
    )
    return _fastmail_conf


def _fastmail_client() -> FastMail:
    """Lazily instantiate and cache FastMail client."""
    global _fastmail
    if _fastmail is None:
        _fastmail = FastMail(_conn_config())
    return _fastmail


# ──────────────────────────────────────────────────────────────────────────────
# 🧭 Behavior toggles & utilities
# ──────────────────────────────────────────────────────────────────────────────

def _should_send_real_email() -> bool:
    """True when SMTP is configured **and** we're in production, or when
    EMAIL_STRICT_LOCAL forces real delivery outside production."""
    if not SMTP_HOST:
        return False
    if settings.is_production:
        return True
    return bool(settings.EMAIL_STRICT_LOCAL)


def _mailto(to_email: str) -> str:
    """Minimal recipient sanity check; raises ValueError when clearly malformed."""
    addr = (to_email or "").strip()
    if not addr or "@" not in addr:
        raise ValueError("Invalid recipient email")
    return addr


# ──────────────────────────────────────────────────────────────────────────────
# 📮  ASYNC: transport helpers
# ──────────────────────────────────────────────────────────────────────────────

async def _dispatch(
    to_email: str,
    subject: str,
    body: str,
    *,
    subtype: MessageType,
    strict: bool,
    reply_to: Optional[List[str]] = None,
) -> None:
    """Send one message, or log it in DRY-RUN mode.

    `strict=True` turns any transport failure into `EmailDeliveryError`;
    otherwise the failure is logged and swallowed.
    """
    try:
        recipient = _mailto(to_email)
    except ValueError:
        if strict:
            raise EmailDeliveryError("Invalid recipient email")
        logger.warning("Skipping email with invalid recipient %r (subject=%s)", to_email, subject)
        return

    if not _should_send_real_email():
        shown = body if subtype == MessageType.plain else "[HTML body omitted]"
        logger.info("📨 [DRY-RUN] Email to=%s subject=%s\n%s", recipient, subject, shown)
        return

    message = MessageSchema(
        subject=subject,
        recipients=[recipient],
        body=body or "",
        subtype=subtype,
        reply_to=reply_to or [],
    )
    try:
        await _fastmail_client().send_message(message)
        logger.info("📨 Email sent to %s (subject=%s)", recipient, subject)
    except Exception as exc:
        if strict:
            logger.exception("❌ FastMail send failed (to=%s subject=%s)", recipient, subject)
            raise EmailDeliveryError() from exc
        logger.exception("❌ FastMail send failed (to=%s subject=%s) [non-fatal]", recipient, subject)


async def _send_templated(
    to_email: str,
    subject: str,
    template_name: str,
    context: Mapping[str, Any],
    fallback_text: str,
    *,
    strict: bool,
    reply_to: Optional[List[str]] = None,
) -> None:
    """Prefer the rendered HTML template; fall back to plaintext."""
    html = _render_html_template(template_name, context)
    if html:
        await _dispatch(to_email, subject, html, subtype=MessageType.html, strict=strict, reply_to=reply_to)
    else:
        await _dispatch(
            to_email, subject, fallback_text, subtype=MessageType.plain, strict=strict, reply_to=reply_to
        )


# ──────────────────────────────────────────────────────────────────────────────
# 🔑  Strict senders (OTP + contact)
# ──────────────────────────────────────────────────────────────────────────────

async def send_otp_email(email: str, otp: str) -> None:
    """Mail a registration / password-reset verification code."""
    minutes = settings.OTP_TTL_MINUTES
    context = {
        "otp": otp,
        "expires_minutes": minutes,
        "product_name": EMAIL_FROM_NAME,
        "headline": "Your verification code",
        "intro": "Use the code below to verify your email address.",
    }
    text = (
        f"Your verification code is: {otp}\n\n"
        f"It expires in {minutes} minutes. If you didn't request this, you can ignore this email."
    )
    await _send_templated(email, "Your ALPHA verification code", "otp.html", context, text, strict=True)


async def send_delete_otp_email(email: str, otp: str) -> None:
    """Mail the confirmation code required to delete an account."""
    minutes = settings.OTP_TTL_MINUTES
    context = {
        "otp": otp,
        "expires_minutes": minutes,
        "product_name": EMAIL_FROM_NAME,
        "headline": "Confirm account deletion",
        "intro": (
            "You asked to delete your account. This removes your podcasts, uploads "
            "and history permanently. Enter the code below to confirm."
        ),
    }
    text = (
        f"Your account deletion code is: {otp}\n\n"
        f"It expires in {minutes} minutes. If you did not ask to delete your account, "
        "change your password now."
    )
    await _send_templated(email, "Confirm your ALPHA account deletion", "otp.html", context, text, strict=True)


async def send_contact_email(name: str, email: str, subject: str, message: str) -> None:
    """Forward a contact-form message to the admin inbox, replying to the sender."""
    context = {"name": name, "email": email, "subject": subject, "message": message}
    text = f"From: {name} <{email}>\nSubject: {subject}\n\n{message}"
    await _send_templated(
        settings.ADMIN_EMAIL,
        f"Contact form: {subject}",
        "contact.html",
        context,
        text,
        strict=True,
        reply_to=[email],
    )


# ──────────────────────────────────────────────────────────────────────────────
# 📫  Best-effort notices
# ──────────────────────────────────────────────────────────────────────────────

async def send_account_deleted_notification(user_snapshot: Mapping[str, Any], reason: str) -> None:
    """Tell the admin that an account was deleted, and why."""
    username = user_snapshot.get("username") or "N/A"
    email = user_snapshot.get("email") or "N/A"
    phone = user_snapshot.get("phone") or "N/A"
    context = {"username": username, "email": email, "phone": phone, "reason": reason}
    text = (
        "A user deleted their account.\n\n"
        f"Username: {username}\nEmail: {email}\nPhone: {phone}\nReason: {reason}"
    )
    await _send_templated(
        settings.ADMIN_EMAIL,
        f"Account deleted: {username}",
        "account-deleted.html",
        context,
        text,
        strict=False,
    )


async def send_subscription_welcome_email(email: str) -> None:
    text = (
        "Thanks for subscribing to the ALPHA newsletter!\n\n"
        "You'll hear from us when new podcasts and episodes land."
    )
    await _dispatch(email, "Welcome to the ALPHA newsletter", text, subtype=MessageType.plain, strict=False)


async def send_new_subscriber_email(channel_email: str, subscriber_username: str) -> None:
    text = f"Good news! {subscriber_username} just subscribed to your channel on ALPHA."
    await _dispatch(channel_email, "You have a new subscriber", text, subtype=MessageType.plain, strict=False)


__all__ = [
    "EmailDeliveryError",
    "send_otp_email",
    "send_delete_otp_email",
    "send_contact_email",
    "send_account_deleted_notification",
    "send_subscription_welcome_email",
    "send_new_subscriber_email",
]

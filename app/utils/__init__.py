"""Utility helpers for the ALPHA backend.

Submodules:
- email_utils: transactional email (OTP, account deleted, new subscriber, contact)
- redis_utils: fixed-window rate limiting and no-store response helpers
"""

__all__: list[str] = []

# src/zen_rewards/utils/log.py
"""Log sanitisation helpers that keep identifiers out of plain-text logs."""

from __future__ import annotations

_IDENTITY_PREFIX = 10
_NONCE_PREFIX = 8


def sanitize_identity(identity: str | None) -> str:
    """Shorten an external identity: ``user_2abc123xyz789`` -> ``user_2abc1...``."""
    if not identity:
        return "[no-identity]"
    return f"{identity[:_IDENTITY_PREFIX]}..." if len(identity) > _IDENTITY_PREFIX else identity


def sanitize_nonce(nonce: str | None) -> str:
    """Return only the first few characters of a nonce."""
    if not nonce:
        return "[none]"
    return f"{nonce[:_NONCE_PREFIX]}..."


def sanitize_email(email: str | None) -> str:
    """Mask the local part of an email: ``john@example.com`` -> ``j***@example.com``."""
    if not email:
        return "[no-email]"
    local, sep, domain = email.partition("@")
    if not sep or not domain:
        return "[invalid-email]"
    masked = f"{local[0]}***" if local else "***"
    return f"{masked}@{domain}"

"""Bearer token helpers for resolving the calling customer."""
from __future__ import annotations

from datetime import timedelta

from jose import JWTError, jwt

from zen_rewards.core.settings import settings
from zen_rewards.db.time import utcnow


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Issue an HS256 token whose ``sub`` is the customer's external identity.

    Args:
        subject: Stable external identifier of the customer.
        expires_delta: Optional lifetime; defaults to the configured expiry.

    Returns:
        Encoded JWT string.
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {"sub": subject, "exp": utcnow() + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_subject(token: str) -> str | None:
    """Return the ``sub`` claim of a valid token, or None if the token is invalid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None

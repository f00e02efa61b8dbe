"""Domain errors raised by the game session protocol.

Every error carries a stable ``error_kind`` that is safe to return to clients.
Tampering-class failures share one generic message that does not reveal which
check rejected a claim.
"""

from __future__ import annotations

from datetime import datetime

GENERIC_SESSION_MESSAGE = "This game session is no longer valid. Please start a new game."


class GameError(Exception):
    """Base class for errors surfaced by the game session protocol."""

    error_kind: str = "GameError"
    default_message: str = "Game request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class IdentityNotFound(GameError):
    """The authenticated identity has no customer record."""

    error_kind = "IdentityNotFound"
    default_message = "Customer not found. Please sync your account first."


class CooldownActive(GameError):
    """A challenge was requested while the cooldown window is still open."""

    error_kind = "CooldownActive"
    default_message = "You can only play once per cooldown window."

    def __init__(self, cooldown_ends_at: datetime, remaining_ms: int) -> None:
        super().__init__()
        self.cooldown_ends_at = cooldown_ends_at
        self.remaining_ms = remaining_ms


class InvalidSession(GameError):
    """The claimed nonce does not match the live session on record."""

    error_kind = "InvalidSession"
    default_message = GENERIC_SESSION_MESSAGE


class VerificationFailed(GameError):
    """The claim is malformed, unsigned, tampered with, or structurally invalid."""

    error_kind = "VerificationFailed"
    default_message = GENERIC_SESSION_MESSAGE


class SessionExpired(GameError):
    """The signed challenge is past its expiry."""

    error_kind = "SessionExpired"
    default_message = GENERIC_SESSION_MESSAGE


class StoreUnavailable(GameError):
    """The customer record store failed; callers may retry."""

    error_kind = "StoreUnavailable"
    default_message = "Customer records are temporarily unavailable. Please retry."


class ConcurrentUpdate(GameError):
    """Optimistic write retries were exhausted; callers may retry."""

    error_kind = "ConcurrentUpdate"
    default_message = "The customer record changed concurrently. Please retry."

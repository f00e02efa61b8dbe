"""HMAC-signed challenge tokens.

The server signs the claims it hands to a client and verifies them again when
they come back, so no session table is needed: the client carries its own
state and the signature makes tampering detectable.

Wire format: the claims are serialized as canonical JSON (sorted keys, compact
separators, UTF-8) and signed with HMAC-SHA256. The signature travels as a
lowercase hex string.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from zen_rewards.core.deck import Card

SIGNATURE_HEX_LENGTH = 64


class InvalidSignature(Exception):
    """The signature does not match the serialized claims."""


class MalformedClaims(Exception):
    """The serialized claims could not be decoded into a challenge."""


@dataclass(frozen=True)
class ChallengeClaims:
    """Claims bound together by a challenge signature."""

    deck: tuple[Card, ...]
    nonce: str
    expires_at: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "deck": [card.to_dict() for card in self.deck],
            "exp": self.expires_at,
            "nonce": self.nonce,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> ChallengeClaims:
        """Build claims from decoded JSON, raising MalformedClaims on bad shape."""
        if not isinstance(payload, dict) or set(payload) != {"deck", "exp", "nonce"}:
            raise MalformedClaims("Unexpected claim fields")
        deck, nonce, expires_at = payload["deck"], payload["nonce"], payload["exp"]
        if not isinstance(nonce, str) or not isinstance(expires_at, str):
            raise MalformedClaims("Nonce and expiry must be strings")
        if not isinstance(deck, list):
            raise MalformedClaims("Deck must be a list")
        try:
            cards = tuple(Card.from_dict(entry) for entry in deck)
        except (TypeError, ValueError) as err:
            raise MalformedClaims(f"Invalid card entry: {err}") from err
        return cls(deck=cards, nonce=nonce, expires_at=expires_at)


@dataclass(frozen=True)
class SignedClaims:
    """Serialized claims and their signature, both opaque to the client."""

    serialized: str
    signature: str


class ChallengeCodec:
    """Sign and verify challenge claims with a shared server secret."""

    def __init__(self, secret: str | bytes) -> None:
        key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        if not key:
            raise ValueError("Challenge signing secret must not be empty")
        self._key = key

    @staticmethod
    def canonicalize(claims: ChallengeClaims) -> str:
        """Return the deterministic serialization that gets signed."""
        return json.dumps(
            claims.to_payload(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def _mac(self, serialized: str) -> str:
        return hmac.new(self._key, serialized.encode("utf-8"), hashlib.sha256).hexdigest()

    def sign(self, claims: ChallengeClaims) -> SignedClaims:
        """Serialize and sign the claims."""
        serialized = self.canonicalize(claims)
        return SignedClaims(serialized=serialized, signature=self._mac(serialized))

    def verify(self, serialized: str, signature: str) -> ChallengeClaims:
        """Verify a signature and decode the claims it covers.

        Args:
            serialized: Canonical claims exactly as produced by `sign`.
            signature: Hex-encoded HMAC-SHA256 supplied by the client.

        Returns:
            The decoded `ChallengeClaims`.

        Raises:
            InvalidSignature: If the signature does not match.
            MalformedClaims: If the signed payload cannot be decoded.
        """
        if not isinstance(signature, str) or len(signature) != SIGNATURE_HEX_LENGTH:
            raise InvalidSignature("Signature has an unexpected length")
        expected = self._mac(serialized)
        if not hmac.compare_digest(signature.encode("ascii", "replace"), expected.encode("ascii")):
            raise InvalidSignature("Signature mismatch")
        try:
            payload = json.loads(serialized)
        except json.JSONDecodeError as err:
            raise MalformedClaims("Claims are not valid JSON") from err
        return ChallengeClaims.from_payload(payload)

    def verify_claims(self, claims: ChallengeClaims, signature: str) -> ChallengeClaims:
        """Verify claims the client sent back field by field."""
        return self.verify(self.canonicalize(claims), signature)


def build_claims(deck: Sequence[Card], nonce: str, expires_at: str) -> ChallengeClaims:
    """Convenience constructor accepting any card sequence."""
    return ChallengeClaims(deck=tuple(deck), nonce=nonce, expires_at=expires_at)

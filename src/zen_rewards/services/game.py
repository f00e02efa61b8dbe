"""Memory game session issuing and completion verification.

Session state lives in two places only: the signed challenge held by the
client and a small namespace in the customer record. Issuing writes the new
nonce and cooldown before the challenge is returned, so a stale token can never
race a fresh one. Completion re-checks everything the client sends and clears
the nonce only once the claim has passed every integrity check.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from random import Random
from typing import Any

from pydantic import ValidationError

from zen_rewards.core.cooldown import check_cooldown, cooldown_end
from zen_rewards.core.deck import Card, generate_deck, is_pair_complete
from zen_rewards.core.errors import (
    CooldownActive,
    InvalidSession,
    SessionExpired,
    VerificationFailed,
)
from zen_rewards.core.loyalty import PointsLedger
from zen_rewards.core.settings import Settings
from zen_rewards.core.signing import (
    ChallengeCodec,
    InvalidSignature,
    MalformedClaims,
    build_claims,
)
from zen_rewards.db.time import parse_iso, to_iso, utcnow
from zen_rewards.models import GAME_NAMESPACE, POINTS_NAMESPACE
from zen_rewards.schemas.game import CompleteGameRequest
from zen_rewards.services.customer_store import CustomerRecord, CustomerStore, Mutation
from zen_rewards.utils.log import sanitize_identity, sanitize_nonce

logger = logging.getLogger(__name__)

NONCE_BYTES = 16
OUTCOME_WIN = "win"
OUTCOME_TIME_LIMIT = "TimeLimitExceeded"

__all__ = [
    "CompletionClaim",
    "CompletionResult",
    "GameRules",
    "GameSessionService",
    "GameStatus",
    "IssuedChallenge",
    "SessionState",
    "parse_completion_claim",
]


@dataclass(frozen=True)
class GameRules:
    """Fixed per-deployment game parameters."""

    pair_count: int = 9
    session_ttl_seconds: int = 300
    cooldown_seconds: int = 86_400
    reward_points: int = 10
    max_elapsed_seconds: float = 60.0

    @classmethod
    def from_settings(cls, config: Settings) -> GameRules:
        return cls(
            pair_count=config.game_pair_count,
            session_ttl_seconds=config.game_session_ttl_seconds,
            cooldown_seconds=config.game_cooldown_seconds,
            reward_points=config.game_reward_points,
            max_elapsed_seconds=config.game_max_elapsed_seconds,
        )


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class SessionState:
    """The game's namespace inside the customer metadata."""

    last_nonce: str | None = None
    cooldown_ends_at: str | None = None
    game_started_at: str | None = None
    last_played_at: str | None = None
    total_wins: int = 0
    last_win_time: float | None = None

    @classmethod
    def from_metadata(cls, data: Any) -> SessionState:
        if not isinstance(data, dict):
            return cls()
        wins = data.get("total_wins")
        win_time = data.get("last_win_time")
        return cls(
            last_nonce=_opt_str(data.get("last_nonce")),
            cooldown_ends_at=_opt_str(data.get("cooldown_ends_at")),
            game_started_at=_opt_str(data.get("game_started_at")),
            last_played_at=_opt_str(data.get("last_played_at")),
            total_wins=wins if isinstance(wins, int) and not isinstance(wins, bool) and wins > 0 else 0,
            last_win_time=float(win_time) if isinstance(win_time, (int, float)) and not isinstance(win_time, bool) else None,
        )

    def to_metadata(self, existing: Any = None) -> dict[str, Any]:
        merged = dict(existing) if isinstance(existing, dict) else {}
        merged.update(
            {
                "last_nonce": self.last_nonce,
                "cooldown_ends_at": self.cooldown_ends_at,
                "game_started_at": self.game_started_at,
                "last_played_at": self.last_played_at,
                "total_wins": self.total_wins,
            }
        )
        if self.last_win_time is not None:
            merged["last_win_time"] = self.last_win_time
        return merged


@dataclass(frozen=True)
class IssuedChallenge:
    """A playable, signed challenge."""

    deck: list[Card]
    signature: str
    nonce: str
    expires_at: str
    cooldown_ends_at: str


@dataclass(frozen=True)
class CompletionClaim:
    """What a client claims when it finishes a game."""

    signature: str
    deck: tuple[Card, ...]
    nonce: str
    expires_at: str
    elapsed_seconds: float


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of a verified completion."""

    success: bool
    outcome: str
    points_awarded: int
    cooldown_ends_at: str | None
    ledger: PointsLedger


@dataclass(frozen=True)
class GameStatus:
    """Whether the customer may start a game right now."""

    can_play: bool
    cooldown_ends_at: datetime | None
    remaining_ms: int
    last_played_at: str | None
    total_wins: int


def parse_completion_claim(payload: Any) -> CompletionClaim:
    """Validate a raw completion payload.

    Any structural problem is reported as `VerificationFailed` so the
    response does not reveal which field was wrong.
    """
    try:
        request = CompleteGameRequest.model_validate(payload)
    except ValidationError as err:
        logger.info("Rejected malformed completion payload (%d errors)", err.error_count())
        raise VerificationFailed() from err
    return CompletionClaim(
        signature=request.signature,
        deck=tuple(Card(id=c.id, pair_id=c.pair_id, symbol=c.symbol) for c in request.deck),
        nonce=request.nonce,
        expires_at=request.expires_at,
        elapsed_seconds=request.elapsed_seconds,
    )


class GameSessionService:
    """Issue challenges and verify completions for one customer store."""

    def __init__(
        self,
        store: CustomerStore,
        codec: ChallengeCodec,
        rules: GameRules | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
        rng: Random | None = None,
    ) -> None:
        self.store = store
        self.codec = codec
        self.rules = rules or GameRules()
        self._clock = clock
        self._rng = rng

    # --- Issuing ----------------------------------------------------------------

    def start(self, external_id: str) -> IssuedChallenge:
        """Issue a new challenge if the cooldown allows it.

        The cooldown window starts now, not on completion: abandoning a game
        still uses up the allowance for the window.

        Raises:
            IdentityNotFound: If the customer does not exist.
            CooldownActive: If the previous window is still open.
        """
        now = self._clock()

        def mutate(record: CustomerRecord) -> Mutation[IssuedChallenge]:
            game_data = record.metadata.get(GAME_NAMESPACE)
            state = SessionState.from_metadata(game_data)

            status = check_cooldown(state.cooldown_ends_at, now)
            if not status.can_play:
                raise CooldownActive(status.cooldown_ends_at or now, status.remaining_ms)

            deck = generate_deck(self.rules.pair_count, self._rng)
            nonce = secrets.token_hex(NONCE_BYTES)
            expires_at = to_iso(now + timedelta(seconds=self.rules.session_ttl_seconds))
            signed = self.codec.sign(build_claims(deck, nonce, expires_at))
            cooldown_ends_at = to_iso(cooldown_end(now, self.rules.cooldown_seconds))

            new_state = replace(
                state,
                last_nonce=nonce,
                cooldown_ends_at=cooldown_ends_at,
                game_started_at=to_iso(now),
            )
            metadata = dict(record.metadata)
            metadata[GAME_NAMESPACE] = new_state.to_metadata(game_data)
            if not isinstance(metadata.get(POINTS_NAMESPACE), dict):
                metadata[POINTS_NAMESPACE] = PointsLedger(cycle_start_date=to_iso(now)).to_metadata()

            challenge = IssuedChallenge(
                deck=deck,
                signature=signed.signature,
                nonce=nonce,
                expires_at=expires_at,
                cooldown_ends_at=cooldown_ends_at,
            )
            return Mutation(metadata=metadata, result=challenge)

        try:
            challenge = self.store.read_modify_write(external_id, mutate)
        except CooldownActive as err:
            logger.info(
                "Cooldown active for %s, ends at %s",
                sanitize_identity(external_id),
                to_iso(err.cooldown_ends_at),
            )
            raise

        logger.info(
            "Game started for %s, nonce %s expires at %s",
            sanitize_identity(external_id),
            sanitize_nonce(challenge.nonce),
            challenge.expires_at,
        )
        return challenge

    # --- Verifying --------------------------------------------------------------

    def _verify_claim(self, claim: CompletionClaim, state: SessionState, now: datetime) -> None:
        """Run the integrity checks in order, raising on the first failure."""
        if state.last_nonce is None or not hmac.compare_digest(
            claim.nonce.encode("utf-8"), state.last_nonce.encode("utf-8")
        ):
            raise InvalidSession()

        try:
            self.codec.verify_claims(
                build_claims(claim.deck, claim.nonce, claim.expires_at),
                claim.signature,
            )
        except (InvalidSignature, MalformedClaims) as err:
            raise VerificationFailed() from err

        try:
            expires_at = parse_iso(claim.expires_at)
        except ValueError as err:
            raise VerificationFailed() from err
        if now > expires_at:
            raise SessionExpired()

        if not is_pair_complete(claim.deck, self.rules.pair_count):
            raise VerificationFailed()

    def complete(self, external_id: str, payload: Any) -> CompletionResult:
        """Verify a completion claim and award points on success.

        A claim whose elapsed time is outside ``[0, max_elapsed_seconds]`` is a
        loss: the session is consumed and nothing is awarded.

        Raises:
            IdentityNotFound: If the customer does not exist.
            InvalidSession: If the nonce is not the live one on record.
            VerificationFailed: If the claim is malformed, unsigned or altered.
            SessionExpired: If the challenge has expired.
        """
        claim = parse_completion_claim(payload)
        now = self._clock()
        now_iso = to_iso(now)

        def mutate(record: CustomerRecord) -> Mutation[CompletionResult]:
            game_data = record.metadata.get(GAME_NAMESPACE)
            state = SessionState.from_metadata(game_data)
            self._verify_claim(claim, state, now)

            ledger = PointsLedger.from_metadata(record.metadata.get(POINTS_NAMESPACE))
            if ledger.cycle_start_date is None:
                ledger = replace(ledger, cycle_start_date=now_iso)

            metadata = dict(record.metadata)
            if 0 <= claim.elapsed_seconds <= self.rules.max_elapsed_seconds:
                ledger = ledger.award(self.rules.reward_points, at=now_iso)
                new_state = replace(
                    state,
                    last_nonce=None,
                    last_played_at=now_iso,
                    total_wins=state.total_wins + 1,
                    last_win_time=claim.elapsed_seconds,
                )
                result = CompletionResult(
                    success=True,
                    outcome=OUTCOME_WIN,
                    points_awarded=self.rules.reward_points,
                    cooldown_ends_at=state.cooldown_ends_at,
                    ledger=ledger,
                )
            else:
                new_state = replace(state, last_nonce=None, last_played_at=now_iso)
                result = CompletionResult(
                    success=False,
                    outcome=OUTCOME_TIME_LIMIT,
                    points_awarded=0,
                    cooldown_ends_at=state.cooldown_ends_at,
                    ledger=ledger,
                )

            metadata[GAME_NAMESPACE] = new_state.to_metadata(game_data)
            metadata[POINTS_NAMESPACE] = ledger.to_metadata(record.metadata.get(POINTS_NAMESPACE))
            return Mutation(metadata=metadata, result=result)

        try:
            result = self.store.read_modify_write(external_id, mutate)
        except (InvalidSession, VerificationFailed, SessionExpired) as err:
            logger.info(
                "Completion rejected for %s (%s), nonce %s",
                sanitize_identity(external_id),
                err.error_kind,
                sanitize_nonce(claim.nonce),
            )
            raise

        if result.success:
            logger.info(
                "Game won by %s: +%d points in %.1fs, balance %d (%s)",
                sanitize_identity(external_id),
                result.points_awarded,
                claim.elapsed_seconds,
                result.ledger.current_balance,
                result.ledger.tier,
            )
        else:
            logger.info(
                "Game lost by %s: %.1fs is outside the time limit",
                sanitize_identity(external_id),
                claim.elapsed_seconds,
            )
        return result

    # --- Reads ------------------------------------------------------------------

    def status(self, external_id: str) -> GameStatus:
        """Report cooldown state and play history without mutating anything."""
        record = self.store.get(external_id)
        state = SessionState.from_metadata(record.metadata.get(GAME_NAMESPACE))
        cooldown = check_cooldown(state.cooldown_ends_at, self._clock())
        return GameStatus(
            can_play=cooldown.can_play,
            cooldown_ends_at=cooldown.cooldown_ends_at,
            remaining_ms=cooldown.remaining_ms,
            last_played_at=state.last_played_at,
            total_wins=state.total_wins,
        )

    def ledger(self, external_id: str) -> PointsLedger:
        """Return the customer's ledger with freshly derived tier and discount."""
        record = self.store.get(external_id)
        return PointsLedger.from_metadata(record.metadata.get(POINTS_NAMESPACE))

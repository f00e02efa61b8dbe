"""Cooldown window policy for the memory game."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from zen_rewards.db.time import parse_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CooldownStatus:
    """Eligibility of an identity to start a new game."""

    can_play: bool
    cooldown_ends_at: datetime | None
    remaining_ms: int


def check_cooldown(cooldown_ends_at: str | datetime | None, now: datetime) -> CooldownStatus:
    """Decide whether a new challenge may be issued at ``now``.

    A missing, unparseable, or elapsed cooldown allows play. The window is
    closed at its end instant, so ``now == cooldown_ends_at`` can play.
    """
    if cooldown_ends_at is None or cooldown_ends_at == "":
        return CooldownStatus(can_play=True, cooldown_ends_at=None, remaining_ms=0)

    if isinstance(cooldown_ends_at, datetime):
        ends_at = cooldown_ends_at
    else:
        try:
            ends_at = parse_iso(cooldown_ends_at)
        except ValueError:
            logger.warning("Ignoring unparseable cooldown timestamp %r", cooldown_ends_at)
            return CooldownStatus(can_play=True, cooldown_ends_at=None, remaining_ms=0)

    if ends_at <= now:
        return CooldownStatus(can_play=True, cooldown_ends_at=None, remaining_ms=0)

    remaining = ends_at - now
    return CooldownStatus(
        can_play=False,
        cooldown_ends_at=ends_at,
        remaining_ms=int(remaining.total_seconds() * 1000),
    )


def cooldown_end(now: datetime, cooldown_seconds: int) -> datetime:
    """Return when a cooldown window opened at ``now`` closes."""
    return now + timedelta(seconds=cooldown_seconds)

"""Zen Points ledger and tier engine.

Tiers and discounts are a pure function of the current balance. They are
written next to the balance for external readers, but never read back as a
source of truth: every load recomputes them, so a partial failure cannot leave
a balance and its tier out of step.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from zen_rewards.db.time import parse_iso

DEFAULT_CYCLE_DAYS = 30


@dataclass(frozen=True)
class Tier:
    """A loyalty level unlocked at ``min_points``."""

    key: str
    name: str
    min_points: int
    discount_percent: int


# Ascending by threshold; a balance equal to a threshold belongs to that tier.
TIERS: tuple[Tier, ...] = (
    Tier(key="seed", name="Seed", min_points=0, discount_percent=0),
    Tier(key="sprout", name="Sprout", min_points=100, discount_percent=5),
    Tier(key="blossom", name="Blossom", min_points=250, discount_percent=10),
    Tier(key="lotus", name="Lotus", min_points=500, discount_percent=15),
)

_TIERS_BY_KEY: dict[str, Tier] = {tier.key: tier for tier in TIERS}


def _tier_for(balance: int) -> Tier:
    current = TIERS[0]
    for tier in TIERS:
        if balance >= tier.min_points:
            current = tier
        else:
            break
    return current


def derive_tier(balance: int) -> str:
    """Return the tier key for a points balance."""
    return _tier_for(balance).key


def derive_discount_percent(tier: str) -> int:
    """Return the discount percentage for a tier key; unknown tiers get 0."""
    found = _TIERS_BY_KEY.get(tier)
    return found.discount_percent if found else 0


def next_tier(balance: int) -> Tier | None:
    """Return the next tier above ``balance`` or None at the top tier."""
    for tier in TIERS:
        if tier.min_points > balance:
            return tier
    return None


def points_to_next_tier(balance: int) -> int | None:
    """Return the points still missing for the next tier."""
    upcoming = next_tier(balance)
    return None if upcoming is None else upcoming.min_points - balance


def tiers_for_api() -> dict[str, dict[str, Any]]:
    """Return the tier table with inclusive bounds; the top tier's max is None."""
    table: dict[str, dict[str, Any]] = {}
    for index, tier in enumerate(TIERS):
        upper = TIERS[index + 1].min_points - 1 if index + 1 < len(TIERS) else None
        table[tier.key] = {
            "name": tier.name,
            "min": tier.min_points,
            "max": upper,
            "discount": tier.discount_percent,
        }
    return table


def days_until_reset(
    cycle_start_date: str | None,
    now: datetime,
    cycle_days: int = DEFAULT_CYCLE_DAYS,
) -> int:
    """Return whole days left in the points cycle, never below zero.

    A missing or unreadable start date counts as a cycle that has just begun.
    """
    if not cycle_start_date:
        return cycle_days
    try:
        started = parse_iso(cycle_start_date)
    except ValueError:
        return cycle_days
    days_passed = (now - started).days
    return max(0, cycle_days - days_passed)


def _non_negative_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float) and math.isfinite(value):
        return max(0, int(value))
    if isinstance(value, str):
        try:
            return max(0, int(value))
        except ValueError:
            return 0
    return 0


@dataclass(frozen=True)
class PointsLedger:
    """A customer's running balance and lifetime total."""

    current_balance: int = 0
    lifetime_points: int = 0
    cycle_start_date: str | None = None
    last_game_award: int | None = None
    last_updated: str | None = None

    @property
    def tier(self) -> str:
        return derive_tier(self.current_balance)

    @property
    def discount_percent(self) -> int:
        return derive_discount_percent(self.tier)

    def award(self, points: int, *, at: str | None = None) -> PointsLedger:
        """Return a new ledger with ``points`` added to balance and lifetime."""
        if points < 0:
            raise ValueError("Awarded points must be non-negative")
        return replace(
            self,
            current_balance=self.current_balance + points,
            lifetime_points=self.lifetime_points + points,
            last_game_award=points,
            last_updated=at or self.last_updated,
        )

    @classmethod
    def from_metadata(cls, data: Any) -> PointsLedger:
        """Load a ledger from its metadata namespace, ignoring stored tier fields."""
        if not isinstance(data, dict):
            return cls()
        cycle_start = data.get("cycle_start_date")
        last_updated = data.get("last_updated")
        last_award = data.get("last_game_award")
        return cls(
            current_balance=_non_negative_int(data.get("current_balance")),
            lifetime_points=_non_negative_int(data.get("lifetime_points")),
            cycle_start_date=cycle_start if isinstance(cycle_start, str) else None,
            last_game_award=_non_negative_int(last_award) if last_award is not None else None,
            last_updated=last_updated if isinstance(last_updated, str) else None,
        )

    def to_metadata(self, existing: Any = None) -> dict[str, Any]:
        """Merge the ledger into ``existing`` so unrelated keys are preserved."""
        merged = dict(existing) if isinstance(existing, dict) else {}
        merged.update(
            {
                "current_balance": self.current_balance,
                "lifetime_points": self.lifetime_points,
                "tier": self.tier,
                "discount_percent": self.discount_percent,
                "cycle_start_date": self.cycle_start_date,
            }
        )
        if self.last_game_award is not None:
            merged["last_game_award"] = self.last_game_award
        if self.last_updated is not None:
            merged["last_updated"] = self.last_updated
        return merged

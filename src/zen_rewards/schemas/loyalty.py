"""Loyalty ledger schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field


class LoyaltySummary(BaseModel):
    """Tier and discount read consumed by pricing at checkout."""

    current_balance: int
    lifetime_points: int
    tier: str
    discount_percent: int = Field(..., ge=0, le=100)
    next_tier: str | None = None
    points_to_next_tier: int | None = None
    cycle_start_date: str | None = None
    days_until_reset: int = Field(..., ge=0)


class TierInfo(BaseModel):
    """Public description of one tier; ``max`` is None for the top tier."""

    name: str
    min: int
    max: int | None
    discount: int

# src/zen_rewards/api/v1/endpoints/loyalty.py
"""Zen Points ledger endpoints for the Zen Rewards API."""

from fastapi import APIRouter

from zen_rewards.core.loyalty import days_until_reset, points_to_next_tier, tiers_for_api
from zen_rewards.core.loyalty import next_tier as upcoming_tier
from zen_rewards.core.settings import settings
from zen_rewards.db.time import utcnow
from zen_rewards.schemas.loyalty import LoyaltySummary, TierInfo

from ..dependencies import CurrentIdentityDep, GameServiceDep

router = APIRouter(prefix="/loyalty", tags=["loyalty"])


@router.get("/me", response_model=LoyaltySummary)
async def get_my_points(
    identity: CurrentIdentityDep,
    game_service: GameServiceDep,
) -> LoyaltySummary:
    """Return the caller's balance with its derived tier, discount and cycle countdown."""
    ledger = game_service.ledger(identity)
    upcoming = upcoming_tier(ledger.current_balance)
    return LoyaltySummary(
        current_balance=ledger.current_balance,
        lifetime_points=ledger.lifetime_points,
        tier=ledger.tier,
        discount_percent=ledger.discount_percent,
        next_tier=upcoming.key if upcoming else None,
        points_to_next_tier=points_to_next_tier(ledger.current_balance),
        cycle_start_date=ledger.cycle_start_date,
        days_until_reset=days_until_reset(
            ledger.cycle_start_date,
            utcnow(),
            settings.zen_points_cycle_days,
        ),
    )


@router.get("/tiers", response_model=dict[str, TierInfo])
async def list_tiers() -> dict[str, TierInfo]:
    """Return the public tier table."""
    return {key: TierInfo(**info) for key, info in tiers_for_api().items()}

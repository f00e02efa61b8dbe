# src/zen_rewards/api/v1/endpoints/system.py
"""System and transparency endpoints for the Zen Rewards API."""

from __future__ import annotations

from fastapi import APIRouter

from zen_rewards.core.deck import CARD_SYMBOLS
from zen_rewards.core.loyalty import tiers_for_api
from zen_rewards.core.settings import settings

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings; suitable for client UIs that
    show the game rules.

    Returns:
        Dictionary containing app metadata, game rules, rate limiting and
        the loyalty tier table
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "jwt_algorithm": settings.jwt_algorithm,
            "debug": settings.debug,
        },
        "game": {
            "pair_count": settings.game_pair_count,
            "symbols": list(CARD_SYMBOLS),
            "session_ttl_seconds": settings.game_session_ttl_seconds,
            "cooldown_seconds": settings.game_cooldown_seconds,
            "reward_points": settings.game_reward_points,
            "max_elapsed_seconds": settings.game_max_elapsed_seconds,
        },
        "rate_limit": {
            "enabled": settings.game_rate_limit_per_minute > 0,
            "requests_per_minute": settings.game_rate_limit_per_minute,
            "redis": settings.redis_enabled,
        },
        "loyalty": {
            "cycle_days": settings.zen_points_cycle_days,
            "tiers": tiers_for_api(),
        },
    }

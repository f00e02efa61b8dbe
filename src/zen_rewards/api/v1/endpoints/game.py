# src/zen_rewards/api/v1/endpoints/game.py
"""Memory game endpoints for the Zen Rewards API."""

import json
import logging

from fastapi import APIRouter, Request

from zen_rewards.core.errors import VerificationFailed
from zen_rewards.db.time import to_iso
from zen_rewards.schemas.game import (
    CardSchema,
    CompleteGameRequest,
    CompleteGameResponse,
    CooldownResponse,
    ErrorResponse,
    GameStatusResponse,
    StartGameResponse,
)

from ..dependencies import CurrentIdentityDep, GameServiceDep, RateLimitDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game/memory", tags=["game"], dependencies=[RateLimitDep])

_REJECTIONS: dict[int | str, dict[str, object]] = {
    403: {"model": ErrorResponse, "description": "Session invalid, expired or tampered with"},
    404: {"model": ErrorResponse, "description": "Customer not found"},
}


@router.post(
    "/start",
    response_model=StartGameResponse,
    responses={
        404: _REJECTIONS[404],
        429: {"model": CooldownResponse, "description": "Cooldown window still open"},
    },
)
async def start_game(
    identity: CurrentIdentityDep,
    game_service: GameServiceDep,
) -> StartGameResponse:
    """Issue a signed deck and open a new cooldown window.

    Args:
        identity: External identity of the authenticated customer
        game_service: Game session service

    Returns:
        The deck, its signature, the session nonce and both deadlines
    """
    challenge = game_service.start(identity)
    return StartGameResponse(
        deck=[CardSchema(**card.to_dict()) for card in challenge.deck],
        signature=challenge.signature,
        nonce=challenge.nonce,
        expires_at=challenge.expires_at,
        cooldown_ends_at=challenge.cooldown_ends_at,
    )


@router.post(
    "/complete",
    response_model=CompleteGameResponse,
    responses=_REJECTIONS,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": CompleteGameRequest.model_json_schema(
                        ref_template="#/components/schemas/{model}"
                    ),
                },
            },
        },
    },
)
async def complete_game(
    request: Request,
    identity: CurrentIdentityDep,
    game_service: GameServiceDep,
) -> CompleteGameResponse:
    """Verify a completed game and award points.

    The body is validated by the verifier rather than by FastAPI so that a
    malformed claim is answered like any other rejected one.

    Args:
        request: Incoming request carrying the completion claim
        identity: External identity of the authenticated customer
        game_service: Game session service

    Returns:
        Outcome, points awarded and the updated ledger
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        logger.info("Rejected completion with an unreadable body")
        raise VerificationFailed() from err

    result = game_service.complete(identity, payload)
    return CompleteGameResponse(
        success=result.success,
        outcome=result.outcome,
        points_awarded=result.points_awarded,
        cooldown_ends_at=result.cooldown_ends_at,
        current_balance=result.ledger.current_balance,
        lifetime_points=result.ledger.lifetime_points,
        tier=result.ledger.tier,
        discount_percent=result.ledger.discount_percent,
    )


@router.get("/status", response_model=GameStatusResponse, responses={404: _REJECTIONS[404]})
async def game_status(
    identity: CurrentIdentityDep,
    game_service: GameServiceDep,
) -> GameStatusResponse:
    """Report whether the customer may play now."""
    status = game_service.status(identity)
    return GameStatusResponse(
        can_play=status.can_play,
        cooldown_ends_at=to_iso(status.cooldown_ends_at) if status.cooldown_ends_at else None,
        remaining_ms=status.remaining_ms,
        last_played_at=status.last_played_at,
        total_wins=status.total_wins,
    )

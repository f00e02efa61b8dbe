"""Schemas for the memory game endpoints."""
from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr


class CardSchema(BaseModel):
    """A card as it travels between server and client."""

    id: StrictStr = Field(..., min_length=1, max_length=64)
    pair_id: StrictStr = Field(..., min_length=1, max_length=64)
    symbol: StrictStr = Field(..., min_length=1, max_length=32)

    model_config = ConfigDict(extra="forbid")


class StartGameResponse(BaseModel):
    """A signed, playable challenge."""

    deck: list[CardSchema]
    signature: str = Field(..., description="Hex HMAC-SHA256 over the deck, nonce and expiry")
    nonce: str
    expires_at: str = Field(..., description="Echo back verbatim on completion")
    cooldown_ends_at: str


class CooldownResponse(BaseModel):
    """Returned with HTTP 429 while the cooldown window is open."""

    cooldown_active: bool = True
    cooldown_ends_at: str
    remaining_ms: int
    message: str


class CompleteGameRequest(BaseModel):
    """Completion claim; every field except the elapsed time is echoed from start."""

    signature: StrictStr = Field(..., min_length=1, max_length=128)
    deck: list[CardSchema] = Field(..., min_length=2, max_length=64)
    nonce: StrictStr = Field(..., min_length=1, max_length=128)
    expires_at: StrictStr = Field(..., min_length=1, max_length=64)
    elapsed_seconds: float = Field(
        ...,
        strict=True,
        allow_inf_nan=False,
        validation_alias=AliasChoices("elapsed_seconds", "time_taken"),
    )

    model_config = ConfigDict(extra="ignore")


class CompleteGameResponse(BaseModel):
    """Verified completion outcome and the resulting ledger."""

    success: bool
    outcome: str
    points_awarded: int
    cooldown_ends_at: str | None
    current_balance: int
    lifetime_points: int
    tier: str
    discount_percent: int


class GameStatusResponse(BaseModel):
    """Cooldown and history summary for the current customer."""

    can_play: bool
    cooldown_ends_at: str | None
    remaining_ms: int
    last_played_at: str | None
    total_wins: int


class ErrorResponse(BaseModel):
    """Structured error body."""

    error_kind: str
    message: str

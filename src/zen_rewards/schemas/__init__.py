# src/zen_rewards/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .game import (
    CardSchema,
    CompleteGameRequest,
    CompleteGameResponse,
    CooldownResponse,
    ErrorResponse,
    GameStatusResponse,
    StartGameResponse,
)
from .loyalty import LoyaltySummary, TierInfo

__all__ = [
    "CardSchema",
    "CompleteGameRequest", "CompleteGameResponse",
    "CooldownResponse",
    "ErrorResponse",
    "GameStatusResponse",
    "StartGameResponse",
    "LoyaltySummary", "TierInfo",
]

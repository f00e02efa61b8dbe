# src/zen_rewards/services/__init__.py
"""Business logic services for the Zen Rewards application."""

from .customer_store import CustomerRecord, CustomerStore, Mutation, StaleRecordError
from .game import GameRules, GameSessionService
from .rate_limit import RateLimiter, get_rate_limiter

__all__ = [
    "CustomerRecord",
    "CustomerStore",
    "GameRules",
    "GameSessionService",
    "Mutation",
    "RateLimiter",
    "StaleRecordError",
    "get_rate_limiter",
]

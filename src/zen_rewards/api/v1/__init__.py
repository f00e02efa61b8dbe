# src/zen_rewards/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import game_router, loyalty_router, system_router

__all__ = [
    "game_router",
    "loyalty_router",
    "system_router",
]

# src/zen_rewards/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .game import router as game_router
from .loyalty import router as loyalty_router
from .system import router as system_router

__all__ = [
    "game_router",
    "loyalty_router",
    "system_router",
]

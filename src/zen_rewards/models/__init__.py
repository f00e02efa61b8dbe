# src/zen_rewards/models/__init__.py
"""SQLAlchemy models for the Zen Rewards application."""

from .customer import GAME_NAMESPACE, POINTS_NAMESPACE, Customer

__all__ = ["Customer", "GAME_NAMESPACE", "POINTS_NAMESPACE"]

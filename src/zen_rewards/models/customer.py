# src/zen_rewards/models/customer.py
"""SQLAlchemy model for the shared customer record."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from zen_rewards.db.session import Base

# Metadata namespaces owned by the game session protocol.
GAME_NAMESPACE = "memory_game"
POINTS_NAMESPACE = "zen_points"


class Customer(Base):
    """Customer identity with a free-form metadata blob.

    Other services write their own keys into ``metadata_json``; the game only
    touches ``GAME_NAMESPACE`` and ``POINTS_NAMESPACE``. ``version`` is bumped on
    every metadata write and guards optimistic read-modify-write cycles.
    """

    __tablename__ = "customer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[str] = mapped_column(Text, unique=True, nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes.
    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

# tests/scripts/test_ensure_db.py
"""Tests for the local database helper script."""

from zen_rewards.models import Customer
from zen_rewards.scripts.ensure_db import seed_customer


def test_seed_customer_creates_once(db_session, capsys) -> None:
    created = seed_customer(db_session, "user_seeded_player", "seed@example.com")
    again = seed_customer(db_session, "user_seeded_player")

    assert created.id == again.id
    assert created.metadata_json == {}
    assert db_session.query(Customer).filter_by(external_id="user_seeded_player").count() == 1
    out = capsys.readouterr().out
    assert "s***@example.com" in out
    assert "seed@example.com" not in out
    assert "already exists" in out

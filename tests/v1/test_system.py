# tests/v1/test_system.py
"""Tests for system and transparency endpoints."""

from fastapi import status
from fastapi.testclient import TestClient


def test_system_config(client: TestClient) -> None:
    """Public config exposes game rules but no secrets."""
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert "app" in data and "game" in data and "loyalty" in data
    assert data["game"]["pair_count"] == 9
    assert data["game"]["session_ttl_seconds"] == 300
    assert data["game"]["cooldown_seconds"] == 86_400
    assert data["game"]["reward_points"] == 10
    assert data["rate_limit"]["enabled"] is False
    assert data["loyalty"]["cycle_days"] == 30
    assert set(data["loyalty"]["tiers"]) == {"seed", "sprout", "blossom", "lotus"}

    rendered = r.text
    assert "test-game-signing-secret" not in rendered
    assert "test-jwt-secret" not in rendered
    assert "sqlite" not in rendered

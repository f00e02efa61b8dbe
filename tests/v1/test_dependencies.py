# tests/v1/test_dependencies.py
"""Tests for API dependencies module."""

from datetime import timedelta

import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt
from starlette.requests import Request

from zen_rewards.api.v1.dependencies import (
    _client_key,
    enforce_rate_limit,
    get_challenge_codec,
    get_current_identity,
    get_customer_store,
    get_game_service,
    get_rate_limiter_dep,
)
from zen_rewards.core.security import create_access_token, decode_subject
from zen_rewards.core.settings import settings
from zen_rewards.services.rate_limit import RateLimiter


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _request(headers: dict[str, str] | None = None, host: str = "203.0.113.9") -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw_headers, "client": (host, 1234)})


class TestGetCurrentIdentity:
    """Test the get_current_identity dependency function."""

    def test_valid_token(self) -> None:
        token = create_access_token("user_2abc123xyz789")
        assert get_current_identity(_credentials(token)) == "user_2abc123xyz789"

    def test_expired_token(self) -> None:
        token = create_access_token("user_2abc123xyz789", expires_delta=timedelta(seconds=-5))
        with pytest.raises(HTTPException) as exc_info:
            get_current_identity(_credentials(token))
        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_signed_with_another_key(self) -> None:
        token = jwt.encode({"sub": "user_x"}, "some-other-key", algorithm=settings.jwt_algorithm)
        with pytest.raises(HTTPException) as exc_info:
            get_current_identity(_credentials(token))
        assert "Could not validate credentials" in exc_info.value.detail

    def test_token_without_subject(self) -> None:
        token = jwt.encode({"scope": "game"}, settings.secret_key, algorithm=settings.jwt_algorithm)
        assert decode_subject(token) is None
        with pytest.raises(HTTPException):
            get_current_identity(_credentials(token))


def test_service_factories_wire_settings(db_session) -> None:
    store = get_customer_store(db_session)
    assert store.max_retries == settings.store_max_retries
    service = get_game_service(store, get_challenge_codec())
    assert service.rules.pair_count == settings.game_pair_count
    assert service.rules.reward_points == settings.game_reward_points


class TestClientKey:
    """Client identification for rate limiting."""

    def test_first_forwarded_address_wins(self) -> None:
        assert _client_key(_request({"X-Forwarded-For": "198.51.100.4, 10.0.0.1"})) == "198.51.100.4"

    def test_real_ip_header(self) -> None:
        assert _client_key(_request({"X-Real-IP": "198.51.100.7"})) == "198.51.100.7"

    def test_falls_back_to_peer_address(self) -> None:
        assert _client_key(_request()) == "203.0.113.9"


def test_enforce_rate_limit_raises_429() -> None:
    limiter = RateLimiter(points=1)
    request = _request(host="192.0.2.50")
    enforce_rate_limit(request, limiter)
    with pytest.raises(HTTPException) as exc_info:
        enforce_rate_limit(request, limiter)
    assert exc_info.value.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert "Retry-After" in exc_info.value.headers


def test_rate_limit_dependency_reuses_one_limiter() -> None:
    assert get_rate_limiter_dep() is get_rate_limiter_dep()

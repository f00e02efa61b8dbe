# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("GAME_SIGNING_SECRET", "test-game-signing-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["REDIS_URL"] = ""
os.environ["GAME_RATE_LIMIT_PER_MINUTE"] = "0"

from zen_rewards.core.security import create_access_token
from zen_rewards.core.signing import ChallengeCodec
from zen_rewards.db.session import Base
from zen_rewards.db.session import get_db as app_get_session
from zen_rewards.main import app as fastapi_app
from zen_rewards.models import Customer
from zen_rewards.services.customer_store import CustomerStore
from zen_rewards.services.game import GameRules, GameSessionService
from zen_rewards.services.rate_limit import reset_local_windows

TEST_DB_URL = "sqlite://"
TEST_SIGNING_SECRET = "unit-test-signing-secret"
START_TIME = datetime(2025, 3, 1, 9, 0, 0, tzinfo=UTC)

_CUSTOMER_COUNTER = count(1)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # The store commits its own writes, so tests run on a plain session and
    # wipe the tables afterwards.
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def clear_rate_limit_windows() -> Iterator[None]:
    reset_local_windows()
    yield
    reset_local_windows()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_customer(db_session: Session) -> Callable[..., Customer]:
    """Return a factory that persists customers with optional metadata."""

    def _make(
        external_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        email: str | None = None,
    ) -> Customer:
        customer = Customer(
            external_id=external_id or f"user_test{next(_CUSTOMER_COUNTER):04d}abcdef",
            email=email,
            metadata_json=metadata if metadata is not None else {},
        )
        db_session.add(customer)
        db_session.commit()
        db_session.refresh(customer)
        return customer

    return _make


@pytest.fixture()
def customer(make_customer: Callable[..., Customer]) -> Customer:
    """Create the primary test customer with pre-existing unrelated metadata."""
    return make_customer(
        external_id="user_2abc123xyz789",
        metadata={"newsletter": {"opted_in": True}},
        email="player@example.com",
    )


@pytest.fixture()
def auth_headers(customer: Customer) -> dict[str, str]:
    """Return authorization headers for the primary test customer."""
    token = create_access_token(customer.external_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def codec() -> ChallengeCodec:
    return ChallengeCodec(TEST_SIGNING_SECRET)


@pytest.fixture()
def store(db_session: Session) -> CustomerStore:
    return CustomerStore(db_session)


@pytest.fixture()
def game_service(store: CustomerStore, codec: ChallengeCodec, clock: FrozenClock) -> GameSessionService:
    """Game service with default rules and a frozen clock."""
    return GameSessionService(store, codec, GameRules(), clock=clock)


@pytest.fixture()
def echo_claim() -> Callable[..., dict[str, Any]]:
    """Return a helper that echoes an issued challenge back as a completion claim.

    Accepts either an ``IssuedChallenge`` or the JSON body of a start response.
    """

    def _echo(challenge: Any, elapsed_seconds: float = 42.0) -> dict[str, Any]:
        if isinstance(challenge, dict):
            return {
                "signature": challenge["signature"],
                "deck": [dict(card) for card in challenge["deck"]],
                "nonce": challenge["nonce"],
                "expires_at": challenge["expires_at"],
                "elapsed_seconds": elapsed_seconds,
            }
        return {
            "signature": challenge.signature,
            "deck": [card.to_dict() for card in challenge.deck],
            "nonce": challenge.nonce,
            "expires_at": challenge.expires_at,
            "elapsed_seconds": elapsed_seconds,
        }

    return _echo

"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from zen_rewards.core.security import decode_subject
from zen_rewards.core.settings import settings
from zen_rewards.core.signing import ChallengeCodec
from zen_rewards.db.session import get_db
from zen_rewards.services.customer_store import CustomerStore
from zen_rewards.services.game import GameRules, GameSessionService
from zen_rewards.services.rate_limit import RateLimiter, get_rate_limiter

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Resolve the caller's external identity from the bearer token.

    Args:
        credentials: HTTP Bearer token credentials

    Returns:
        The ``sub`` claim of the token

    Raises:
        HTTPException: If the token is invalid or has no subject
    """
    subject = decode_subject(credentials.credentials)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject


def get_customer_store(db: SessionDep) -> CustomerStore:
    """Return a versioned customer store bound to the request session."""
    return CustomerStore(db, max_retries=settings.store_max_retries)


def get_challenge_codec() -> ChallengeCodec:
    """Return the codec that signs and verifies game challenges."""
    return ChallengeCodec(settings.game_signing_secret.get_secret_value())


def get_game_service(
    store: Annotated[CustomerStore, Depends(get_customer_store)],
    codec: Annotated[ChallengeCodec, Depends(get_challenge_codec)],
) -> GameSessionService:
    """Return the game session service for this request."""
    return GameSessionService(store, codec, GameRules.from_settings(settings))


def get_rate_limiter_dep() -> RateLimiter:
    """Return the limiter shared by the game routes."""
    return get_rate_limiter()


def _client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip", "")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter_dep)],
) -> None:
    """Reject the request with 429 once the client's window is used up."""
    decision = limiter.consume(_client_key(request))
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please slow down.",
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )


# Type aliases for common dependencies
CurrentIdentityDep = Annotated[str, Depends(get_current_identity)]
CustomerStoreDep = Annotated[CustomerStore, Depends(get_customer_store)]
GameServiceDep = Annotated[GameSessionService, Depends(get_game_service)]
RateLimitDep = Depends(enforce_rate_limit)

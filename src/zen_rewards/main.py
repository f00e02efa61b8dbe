# src/zen_rewards/main.py
"""Main entry point for the Zen Rewards application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from zen_rewards.api.v1 import game_router, loyalty_router, system_router
from zen_rewards.core.errors import (
    ConcurrentUpdate,
    CooldownActive,
    GameError,
    IdentityNotFound,
    InvalidSession,
    SessionExpired,
    StoreUnavailable,
    VerificationFailed,
)
from zen_rewards.core.settings import settings
from zen_rewards.db.time import to_iso

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[GameError], int] = {
    IdentityNotFound: status.HTTP_404_NOT_FOUND,
    CooldownActive: status.HTTP_429_TOO_MANY_REQUESTS,
    InvalidSession: status.HTTP_403_FORBIDDEN,
    VerificationFailed: status.HTTP_403_FORBIDDEN,
    SessionExpired: status.HTTP_403_FORBIDDEN,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConcurrentUpdate: status.HTTP_409_CONFLICT,
}

# Initialize FastAPI app
app = FastAPI(
    title="Zen Rewards API",
    description="Daily memory game and Zen Points loyalty ledger",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    """Render a domain error as ``{error_kind, message}`` with its mapped status."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    body: dict[str, object] = {"error_kind": exc.error_kind, "message": exc.message}
    headers: dict[str, str] | None = None
    if isinstance(exc, CooldownActive):
        body.update(
            {
                "cooldown_active": True,
                "cooldown_ends_at": to_iso(exc.cooldown_ends_at),
                "remaining_ms": exc.remaining_ms,
            }
        )
        headers = {"Retry-After": str(max(1, -(-exc.remaining_ms // 1000)))}
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("%s on %s %s", exc.error_kind, request.method, request.url.path)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


# Include API routers
app.include_router(game_router, prefix="/api/v1")
app.include_router(loyalty_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Daily memory game and Zen Points loyalty ledger",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("zen_rewards.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

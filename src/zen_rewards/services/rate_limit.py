"""Fixed-window request throttling for the game routes."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Final

import redis

from zen_rewards.core.settings import settings

logger = logging.getLogger(__name__)

_KEY_PREFIX: Final[str] = "rl:game"
_WINDOW_CACHE: dict[str, list[int]] = {}
_CACHE_LOCK = Lock()
_LIMITER: RateLimiter | None = None


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of consuming one request from a client's window."""

    allowed: bool
    remaining: int
    retry_after_seconds: int


class RateLimiter:
    """Count requests per key in fixed windows.

    Backed by Redis when a client is supplied; falls back to an in-process
    window if Redis errors, so an outage never blocks players.
    """

    def __init__(
        self,
        *,
        points: int,
        window_seconds: int = 60,
        redis_client: Any | None = None,
        clock: Any = time.time,
    ) -> None:
        self.points = points
        self.window_seconds = window_seconds
        self._redis = redis_client
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self.points > 0

    def consume(self, client_key: str) -> RateLimitDecision:
        """Count one request for ``client_key`` and decide whether it may proceed."""
        if not self.enabled:
            return RateLimitDecision(allowed=True, remaining=0, retry_after_seconds=0)

        key = f"{_KEY_PREFIX}:{client_key}"
        if self._redis is not None:
            try:
                pipe = self._redis.pipeline()
                pipe.incr(key)
                pipe.expire(key, self.window_seconds, nx=True)
                pipe.ttl(key)
                count, _, ttl = pipe.execute()
                return self._decide(int(count), max(int(ttl), 1))
            except redis.RedisError as err:
                logger.warning("Rate limiter falling back to in-process window: %s", err)
                self._redis = None

        now = int(self._clock())
        with _CACHE_LOCK:
            _evict_closed_windows(now)
            entry = _WINDOW_CACHE.get(key)
            if entry is None or entry[1] <= now:
                entry = [0, now + self.window_seconds]
                _WINDOW_CACHE[key] = entry
            entry[0] += 1
            count, window_end = entry
        return self._decide(count, max(window_end - now, 1))

    def _decide(self, count: int, seconds_left: int) -> RateLimitDecision:
        if count > self.points:
            return RateLimitDecision(allowed=False, remaining=0, retry_after_seconds=seconds_left)
        return RateLimitDecision(allowed=True, remaining=self.points - count, retry_after_seconds=0)


def _evict_closed_windows(now: int) -> None:
    # Caller holds _CACHE_LOCK.
    closed = [key for key, (_, window_end) in _WINDOW_CACHE.items() if window_end <= now]
    for key in closed:
        del _WINDOW_CACHE[key]


def reset_local_windows() -> None:
    """Forget all in-process windows and the shared limiter."""
    global _LIMITER
    with _CACHE_LOCK:
        _WINDOW_CACHE.clear()
        _LIMITER = None


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide limiter, building it from settings on first use."""
    global _LIMITER
    with _CACHE_LOCK:
        if _LIMITER is None:
            client = redis.from_url(settings.redis_url) if settings.redis_enabled else None
            _LIMITER = RateLimiter(points=settings.game_rate_limit_per_minute, redis_client=client)
        return _LIMITER

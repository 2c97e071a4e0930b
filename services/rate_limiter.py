"""Per-client request limiter for the generation endpoint.

A sliding-window counter keyed by client identity (IP address).  One
instance is created per application in the lifespan and injected into
routes through :func:`get_rate_limiter`, so state lives on
``app.state`` rather than in a module global.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Callable

from fastapi import Request

from config.settings import get_settings

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` per key.

    ``max_requests <= 0`` disables limiting.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0

    def _prune(self, key: str, now: float) -> deque[float] | None:
        """Drop expired hits for *key*; forget the key once it has none."""
        hits = self._hits.get(key)
        if hits is None:
            return None
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def hit(self, key: str) -> bool:
        """Record a request for *key*.  Returns False when over the limit."""
        if not self.enabled:
            return True
        now = self._clock()
        hits = self._prune(key, now)
        if hits is None:
            hits = self._hits[key] = deque()
        if len(hits) >= self.max_requests:
            logger.warning("Rate limit reached for %s (%d requests)", key, len(hits))
            return False
        hits.append(now)
        return True

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest hit for *key* leaves the window."""
        hits = self._prune(key, self._clock())
        if hits is None:
            return 0
        return max(int(hits[0] + self.window_seconds - self._clock()) + 1, 0)

    def cleanup(self) -> int:
        """Drop keys with no hits inside the window.  Returns keys removed."""
        now = self._clock()
        before = len(self._hits)
        for key in list(self._hits):
            self._prune(key, now)
        return before - len(self._hits)

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)


async def periodic_cleanup(
    limiter: SlidingWindowRateLimiter, interval_seconds: float = 300
) -> None:
    """Background task that drops idle clients from *limiter*.

    Should be started as an ``asyncio.Task`` in the FastAPI lifespan.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = limiter.cleanup()
        except Exception:
            logger.exception("Rate limiter cleanup failed")
            continue
        if removed:
            logger.debug(
                "Rate limiter cleanup removed %d idle clients (%d tracked)",
                removed,
                limiter.tracked_keys,
            )


def create_rate_limiter() -> SlidingWindowRateLimiter:
    settings = get_settings()
    return SlidingWindowRateLimiter(
        max_requests=settings.max_requests_per_ip,
        window_seconds=settings.rate_limit_window_seconds,
    )


def client_identity(request: Request) -> str:
    """Client IP, honouring the first ``X-Forwarded-For`` hop."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    """FastAPI dependency — the application's limiter instance."""
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = create_rate_limiter()
        request.app.state.rate_limiter = limiter
    return limiter

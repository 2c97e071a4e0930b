"""Concurrency cap for LLM-heavy endpoints.

Each generation or update request holds a backend call for up to several
minutes.  Requests beyond the per-worker cap get an immediate 503 instead
of queuing behind slow tiers.

Pure ASGI implementation (not BaseHTTPMiddleware) to keep SSE streaming
intact.
"""

from __future__ import annotations

import asyncio
import json
import logging

from starlette.types import ASGIApp, Receive, Scope, Send

from models.errors import ErrorCode, error_payload

logger = logging.getLogger(__name__)

# Paths that count as "heavy" (LLM-bound)
HEAVY_PATHS = frozenset({
    "/api/ask",
})


class ConcurrencyLimitMiddleware:
    """Reject heavy requests with 503 when the worker is at capacity.

    Lightweight endpoints (health, models) pass through unaffected.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_concurrent: int = 15,
        heavy_paths: frozenset[str] = HEAVY_PATHS,
    ) -> None:
        self.app = app
        self.max_concurrent = max_concurrent
        self.heavy_paths = heavy_paths
        self._semaphore: asyncio.Semaphore | None = None

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Lazy-init so the semaphore binds to the running event loop."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
            logger.info("Heavy endpoint semaphore initialized (max=%d)", self.max_concurrent)
        return self._semaphore

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "").rstrip("/") not in self.heavy_paths:
            await self.app(scope, receive, send)
            return

        sem = self._get_semaphore()
        if sem.locked():
            logger.warning("Concurrency limit reached for %s — returning 503", scope.get("path"))
            body = json.dumps(
                error_payload(
                    ErrorCode.SERVICE_BUSY,
                    "Server busy — too many concurrent requests. Please retry.",
                )
            ).encode()
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"retry-after", b"5"),
                ],
            })
            await send({"type": "http.response.body", "body": body})
            return

        async with sem:
            await self.app(scope, receive, send)

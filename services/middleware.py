"""FastAPI middleware — Request ID tracking (pure ASGI, streaming-safe)."""

from __future__ import annotations

import logging
import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestIdMiddleware:
    """Tag every HTTP request with an ID and log its status and duration.

    Pure ASGI (no BaseHTTPMiddleware) so SSE generation streams are not
    buffered.  A client-supplied ``X-Request-ID`` is reused; otherwise a
    short UUID is generated.  The ID is echoed in the response headers and
    stored in ``scope["state"]["request_id"]``.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = headers.get(b"x-request-id", b"").decode() or str(uuid.uuid4())[:8]
        scope.setdefault("state", {})
        scope["state"]["request_id"] = request_id

        started = time.monotonic()
        status_code = 0

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                response_headers = list(message.get("headers", []))
                response_headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            logger.info(
                "[%s] %s %s -> %s (%dms)",
                request_id,
                scope.get("method", ""),
                scope.get("path", ""),
                status_code or "-",
                int((time.monotonic() - started) * 1000),
            )

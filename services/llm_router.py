"""LLM router — sequential multi-tier fallback.

Tiers (see :mod:`services.llm_tiers`) are tried strictly in order, one
call in flight at a time.  Each call gets its own timeout; exceeding it
cancels that call only and the router moves on immediately (no backoff).
The first well-formed completion wins.  When every tier fails the caller
receives :class:`AllTiersFailedError` listing each tier's failure.
"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from config.llm_config import LLMConfig
from config.settings import Settings, get_settings
from errors.exceptions import (
    AllTiersFailedError,
    ConfigurationError,
    TierError,
    TierTimeoutError,
)
from models.site import ChatMessage, Completion
from services.llm_service import call_tier
from services.llm_tiers import Tier, build_tiers

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
_router: LLMRouter | None = None


class LLMRouter:
    """Route chat completions across the configured tiers."""

    def __init__(
        self,
        settings: Settings | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._http = http
        self._owns_http = False

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Create the shared ``httpx.AsyncClient`` connection pool."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            limits=httpx.Limits(max_connections=30, max_keepalive_connections=10),
        )
        self._owns_http = True
        logger.info("LLMRouter started")

    async def close(self) -> None:
        """Close the connection pool if this router created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None
            self._owns_http = False

    # -- public API ----------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def tiers(self) -> list[Tier]:
        """Tier list for the current configuration."""
        return build_tiers(self.settings)

    async def generate(
        self,
        messages: list[ChatMessage],
        params: LLMConfig | None = None,
    ) -> Completion:
        """Return the first successful completion across tiers.

        Raises:
            ConfigurationError: No tier is configured.
            AllTiersFailedError: Every tier failed.
        """
        tiers = self.tiers()
        if not tiers:
            raise ConfigurationError(
                "No LLM tiers configured. Set CUSTOM_LLM_BASE_URL and "
                "CUSTOM_LLM_MODEL, or HF_TOKEN."
            )

        config = self.settings.get_default_llm_config().merge(params)
        total_chars = sum(len(m.content) for m in messages)
        logger.info(
            "LLM request: %d messages, ~%d chars, max_tokens=%s, tiers=%d",
            len(messages),
            total_chars,
            config.max_tokens,
            len(tiers),
        )

        if self._http is None:
            async with httpx.AsyncClient() as http:
                return await self._run_tiers(tiers, messages, config, http)
        return await self._run_tiers(tiers, messages, config, self._http)

    # -- internals -----------------------------------------------------------

    async def _run_tiers(
        self,
        tiers: list[Tier],
        messages: list[ChatMessage],
        config: LLMConfig,
        http: httpx.AsyncClient,
    ) -> Completion:
        failures: list[tuple[str, str]] = []
        started = time.monotonic()

        for tier in tiers:
            tier_started = time.monotonic()
            logger.info("Trying %s (model=%s, timeout=%dms)", tier.name, tier.model, tier.timeout_ms)
            try:
                result = await self._call_with_timeout(tier, messages, config, http)
            except TierError as exc:
                elapsed_ms = int((time.monotonic() - tier_started) * 1000)
                logger.warning("Failed: %s (%dms) - %s", tier.name, elapsed_ms, exc.message)
                failures.append((tier.name, exc.message))
                continue

            elapsed_ms = int((time.monotonic() - tier_started) * 1000)
            if result.usage:
                logger.info(
                    "Success: %s (%dms) - tokens: %d prompt + %d completion = %d total",
                    tier.name,
                    elapsed_ms,
                    result.usage.prompt_tokens,
                    result.usage.completion_tokens,
                    result.usage.total_tokens,
                )
            else:
                logger.info(
                    "Success: %s (%dms, total %dms, ~%d chars output)",
                    tier.name,
                    elapsed_ms,
                    int((time.monotonic() - started) * 1000),
                    len(result.content),
                )
            return result

        raise AllTiersFailedError(failures)

    async def _call_with_timeout(
        self,
        tier: Tier,
        messages: list[ChatMessage],
        config: LLMConfig,
        http: httpx.AsyncClient,
    ) -> Completion:
        try:
            return await asyncio.wait_for(
                call_tier(tier, messages, config, http),
                timeout=tier.timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise TierTimeoutError(tier.name, tier.timeout_ms) from exc


def get_llm_router() -> LLMRouter:
    """Return the module-level :class:`LLMRouter` singleton."""
    global _router
    if _router is None:
        _router = LLMRouter()
    return _router

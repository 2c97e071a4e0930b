"""Domain-specific exceptions for the site generation service.

These exceptions let the router and API layers distinguish between
failure modes and respond with the appropriate HTTP status or SSE event.

Skipped search/replace edits are *not* errors: the patch engine records
them as ``EditOutcome`` entries and carries on.
"""

from __future__ import annotations


class LLMRouterError(Exception):
    """Base class for model routing errors."""


class ConfigurationError(LLMRouterError):
    """No usable backend tier is configured.  Fatal to the request."""


class TierError(LLMRouterError):
    """A single tier failed.  Recovered by moving on to the next tier."""

    def __init__(self, tier_name: str, message: str) -> None:
        self.tier_name = tier_name
        self.message = message
        super().__init__(f"{tier_name}: {message}")


class TierTimeoutError(TierError):
    """The tier call exceeded its own timeout budget."""

    def __init__(self, tier_name: str, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(tier_name, f"Timeout after {timeout_ms}ms")


class TierTransportError(TierError):
    """Non-2xx response, unreachable backend, or malformed response body."""

    def __init__(self, tier_name: str, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(tier_name, message)


class AllTiersFailedError(LLMRouterError):
    """Every configured tier failed.

    ``failures`` holds one ``(tier_name, error_message)`` pair per tier,
    in the order the tiers were tried.
    """

    def __init__(self, failures: list[tuple[str, str]]) -> None:
        self.failures = list(failures)
        summary = "; ".join(f"{name}: {error}" for name, error in self.failures)
        super().__init__(f"All LLM tiers failed. {summary}")


class NoContentError(Exception):
    """The backend answered but the completion holds nothing usable."""

    def __init__(self, message: str = "No content returned from the model") -> None:
        super().__init__(message)

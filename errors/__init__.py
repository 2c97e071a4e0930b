"""Custom exception hierarchy for the site generation service."""

from errors.exceptions import (
    AllTiersFailedError,
    ConfigurationError,
    LLMRouterError,
    NoContentError,
    TierError,
    TierTimeoutError,
    TierTransportError,
)

__all__ = [
    "AllTiersFailedError",
    "ConfigurationError",
    "LLMRouterError",
    "NoContentError",
    "TierError",
    "TierTimeoutError",
    "TierTransportError",
]

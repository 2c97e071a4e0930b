"""Backend tier table — which LLM endpoints to try, in which order.

Tiers are rebuilt from Settings on every request:

1. **Primary** — the configured OpenAI-compatible endpoint
   (``CUSTOM_LLM_BASE_URL`` + ``CUSTOM_LLM_MODEL``).
2. **Cloud fallbacks** — only when the primary is a local relay (Ollama on
   loopback).  Cloud models are routed through the same relay, fastest
   first, each with its own timeout budget.
3. **Hosted inference** — HuggingFace serverless via LiteLLM when
   ``HF_TOKEN`` is set.  Always last.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

from config.settings import Settings

_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "0.0.0.0"})

# (model, timeout_ms) — fastest/cheapest first, largest last.
CLOUD_FALLBACK_MODELS: tuple[tuple[str, int], ...] = (
    ("gpt-oss:20b-cloud", 60_000),
    ("gpt-oss:120b-cloud", 120_000),
    ("qwen3-coder:480b-cloud", 180_000),
    ("deepseek-v3.1:671b-cloud", 300_000),
)


class TierKind(str, Enum):
    OPENAI_COMPATIBLE = "openai_compatible"
    HOSTED_INFERENCE = "hosted_inference"


@dataclass(frozen=True)
class Tier:
    """One candidate backend."""

    name: str
    kind: TierKind
    model: str
    timeout_ms: int
    url: str | None = None
    api_key: str | None = None
    is_local_relay: bool = False
    keep_alive: str | None = None
    max_tokens_cap: int | None = None

    def describe(self) -> dict:
        """Public view of the tier (no credentials)."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "model": self.model,
            "timeoutMs": self.timeout_ms,
            "localRelay": self.is_local_relay,
        }


def is_local_relay_url(url: str) -> bool:
    """True when *url* points at a loopback host."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return False
    return host.lower() in _LOOPBACK_HOSTS


def build_tiers(settings: Settings) -> list[Tier]:
    """Build the ordered tier list from configuration."""
    tiers: list[Tier] = []

    base_url = settings.custom_llm_base_url.strip().rstrip("/")
    primary_model = settings.custom_llm_model.strip()
    if base_url and primary_model:
        local = is_local_relay_url(base_url)
        tiers.append(
            Tier(
                name="Tier 1: Local relay" if local else "Tier 1: Custom LLM",
                kind=TierKind.OPENAI_COMPATIBLE,
                model=primary_model,
                timeout_ms=settings.tier1_timeout,
                url=base_url,
                api_key=settings.custom_llm_api_key or None,
                is_local_relay=local,
                keep_alive=settings.ollama_keep_alive if local else None,
            )
        )

        if local and settings.cloud_fallback_enabled:
            for model, timeout_ms in CLOUD_FALLBACK_MODELS:
                if model == primary_model:
                    continue
                tiers.append(
                    Tier(
                        name=f"Cloud fallback: {model}",
                        kind=TierKind.OPENAI_COMPATIBLE,
                        model=model,
                        timeout_ms=timeout_ms,
                        url=base_url,
                        api_key=settings.custom_llm_api_key or None,
                        is_local_relay=True,
                        keep_alive=settings.ollama_keep_alive,
                    )
                )

    if settings.tier2_enabled and settings.hf_token:
        tiers.append(
            Tier(
                name="Tier 2: HF Serverless",
                kind=TierKind.HOSTED_INFERENCE,
                model=settings.tier2_model,
                timeout_ms=settings.tier2_timeout,
                api_key=settings.hf_token,
                max_tokens_cap=settings.tier2_max_tokens,
            )
        )

    return tiers

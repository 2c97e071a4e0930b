"""Per-tier LLM calls.

- OpenAI-compatible endpoints (Ollama, gateways) are called directly with
  ``httpx`` — ``POST {url}/chat/completions``, non-streaming.
- Hosted inference goes through LiteLLM (``huggingface/<model>``).

Both return a :class:`Completion` or raise :class:`TierTransportError`.
Timeouts are enforced by the router, not here.
"""

from __future__ import annotations

import json

import httpx
import litellm

from config.llm_config import LLMConfig
from errors.exceptions import TierTransportError
from models.site import ChatMessage, Completion, Usage
from services.llm_tiers import Tier, TierKind

_ERROR_BODY_LIMIT = 500


def _parse_usage(raw: object) -> Usage | None:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ValueError("usage is not an object")
    return Usage(
        prompt_tokens=raw.get("prompt_tokens") or 0,
        completion_tokens=raw.get("completion_tokens") or 0,
        total_tokens=raw.get("total_tokens") or 0,
    )


def parse_chat_completion(tier: Tier, data: dict) -> Completion:
    """Parse a chat-completions JSON body into a :class:`Completion`.

    Raises:
        TierTransportError: The body is JSON but not a chat completion.
    """
    choices = data.get("choices") if isinstance(data, dict) else None
    if not choices or not isinstance(choices, list):
        raise TierTransportError(tier.name, "Invalid response format")

    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        raise TierTransportError(tier.name, "Invalid response format")

    try:
        return Completion(
            content=message.get("content") or "",
            finish_reason=choice.get("finish_reason") or "stop",
            usage=_parse_usage(data.get("usage")),
            tier=tier.name,
        )
    except ValueError as exc:
        # pydantic ValidationError is a ValueError
        raise TierTransportError(tier.name, "Invalid response format") from exc


async def call_openai_compatible(
    tier: Tier,
    messages: list[ChatMessage],
    config: LLMConfig,
    http: httpx.AsyncClient,
) -> Completion:
    """Call an OpenAI-compatible ``/chat/completions`` endpoint."""
    if not tier.url:
        raise TierTransportError(tier.name, "Tier URL not configured")

    body: dict = {
        "model": tier.model,
        "messages": [m.model_dump() for m in messages],
        "stream": False,
        **config.to_request_kwargs(),
    }
    if tier.keep_alive:
        # Keep the model loaded between requests
        body["keep_alive"] = tier.keep_alive

    headers = {"Content-Type": "application/json"}
    if tier.api_key:
        headers["Authorization"] = f"Bearer {tier.api_key}"

    try:
        response = await http.post(
            f"{tier.url}/chat/completions",
            json=body,
            headers=headers,
            timeout=httpx.Timeout(tier.timeout_ms / 1000),
        )
    except httpx.TimeoutException:
        raise
    except httpx.HTTPError as exc:
        raise TierTransportError(tier.name, f"{type(exc).__name__}: {exc}") from exc

    if response.status_code < 200 or response.status_code >= 300:
        raise TierTransportError(
            tier.name,
            f"HTTP {response.status_code}: {response.text[:_ERROR_BODY_LIMIT]}",
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError) as exc:
        raise TierTransportError(tier.name, "Malformed JSON response") from exc

    return parse_chat_completion(tier, data)


async def call_hosted_inference(
    tier: Tier,
    messages: list[ChatMessage],
    config: LLMConfig,
) -> Completion:
    """Call HuggingFace serverless inference through LiteLLM."""
    max_tokens = config.max_tokens
    if tier.max_tokens_cap:
        max_tokens = min(max_tokens or tier.max_tokens_cap, tier.max_tokens_cap)

    kwargs: dict = {
        "model": f"huggingface/{tier.model}",
        "messages": [m.model_dump() for m in messages],
        "api_key": tier.api_key,
        "max_tokens": max_tokens,
        "timeout": tier.timeout_ms / 1000,
    }
    if config.temperature is not None:
        kwargs["temperature"] = config.temperature

    try:
        response = await litellm.acompletion(**kwargs)
    except Exception as exc:
        raise TierTransportError(tier.name, f"{type(exc).__name__}: {exc}") from exc

    try:
        choice = response.choices[0]
        usage = getattr(response, "usage", None)
        return Completion(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "stop",
            usage=Usage(
                prompt_tokens=usage.prompt_tokens or 0,
                completion_tokens=usage.completion_tokens or 0,
                total_tokens=usage.total_tokens or 0,
            ) if usage else None,
            tier=tier.name,
        )
    except (AttributeError, IndexError, TypeError, ValueError) as exc:
        raise TierTransportError(tier.name, "Invalid response format") from exc


async def call_tier(
    tier: Tier,
    messages: list[ChatMessage],
    config: LLMConfig,
    http: httpx.AsyncClient,
) -> Completion:
    """Dispatch on the tier kind."""
    if tier.kind == TierKind.OPENAI_COMPATIBLE:
        return await call_openai_compatible(tier, messages, config, http)
    if tier.kind == TierKind.HOSTED_INFERENCE:
        return await call_hosted_inference(tier, messages, config)
    raise TierTransportError(tier.name, f"Unsupported tier kind: {tier.kind}")

"""Reusable LLM generation parameters.

LLMConfig is a standalone Pydantic model that can be:
- built from Settings as the global default,
- passed per request by the API layer,
- narrowed per tier (e.g. a lower max_tokens cap for hosted inference).

Priority chain (low → high):
    .env global defaults  →  per-request overrides
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM generation parameters.

    All fields are optional.  ``None`` means "not set at this layer".
    """

    model: str | None = Field(default=None, description="Model identifier")
    max_tokens: int | None = Field(default=None, ge=1, description="Max tokens to generate")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    frequency_penalty: float | None = Field(
        default=None, ge=-2.0, le=2.0, description="OpenAI-style frequency penalty"
    )
    presence_penalty: float | None = Field(
        default=None, ge=-2.0, le=2.0, description="OpenAI-style presence penalty"
    )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def merge(self, overrides: LLMConfig | None) -> LLMConfig:
        """Return a new LLMConfig: *self* as base, *overrides* wins on non-None fields."""
        if overrides is None:
            return self.model_copy()
        base = self.model_dump(exclude_none=True)
        over = overrides.model_dump(exclude_none=True)
        base.update(over)
        return LLMConfig(**base)

    def to_request_kwargs(self) -> dict:
        """Convert to chat-completions request body fields (snake_case)."""
        kw: dict = {}
        for field in (
            "max_tokens",
            "temperature",
            "top_p",
            "frequency_penalty",
            "presence_penalty",
        ):
            val = getattr(self, field)
            if val is not None:
                kw[field] = val
        return kw

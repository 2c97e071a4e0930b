"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from config.llm_config import LLMConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── Tier 1: primary OpenAI-compatible endpoint ───────────
    # e.g. http://localhost:11434/v1 (Ollama) or any hosted gateway
    custom_llm_base_url: str = ""
    custom_llm_model: str = ""
    custom_llm_api_key: str = ""
    tier1_timeout: int = 180_000  # ms
    # Cloud models appended automatically when tier 1 is a local relay
    cloud_fallback_enabled: bool = True
    ollama_keep_alive: str = "10m"

    # ── Tier 2: hosted inference (last resort) ────────────────
    tier2_enabled: bool = True
    hf_token: str = ""
    tier2_model: str = "deepseek-ai/deepseek-coder-1.3b-instruct"
    tier2_timeout: int = 60_000  # ms
    tier2_max_tokens: int = 2048

    # ── LLM Generation Defaults (tuned for code-like output) ──
    default_max_tokens: int = 8192
    default_temperature: float = 0.6
    default_top_p: float = 0.95
    default_frequency_penalty: float = 0.1
    default_presence_penalty: float = 0.1

    # ── Request limits ───────────────────────────────────────
    max_requests_per_ip: int = 4  # 0 disables the limiter
    rate_limit_window_seconds: int = 3600
    rate_limit_cleanup_seconds: float = 300.0
    max_concurrent_heavy: int = 15  # per worker

    # ── Streaming ────────────────────────────────────────────
    stream_chunk_size: int = 100

    # ── Helpers ───────────────────────────────────────────────

    def get_default_llm_config(self) -> LLMConfig:
        """Build an :class:`LLMConfig` from global .env defaults."""
        return LLMConfig(
            model=self.custom_llm_model or None,
            max_tokens=self.default_max_tokens,
            temperature=self.default_temperature,
            top_p=self.default_top_p,
            frequency_penalty=self.default_frequency_penalty,
            presence_penalty=self.default_presence_penalty,
        )


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()

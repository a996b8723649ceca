"""Service settings — read from the environment, never from the dashboard."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field


class AppSettings(BaseModel):
    """Advisory backend + store settings."""

    openai_api_key: str | None = Field(default=None, description="OpenAI API key. None = narrative fallback only")
    llm_model: str = Field(default="gpt-4o-mini", description="Chat-completions model name")
    llm_max_tokens: int = Field(default=350, ge=1, description="Max tokens per advisory reply")
    llm_temperature: float = Field(default=0.4, ge=0, le=2.0, description="Sampling temperature")
    supabase_url: str | None = Field(default=None, description="Supabase project URL for the event store")
    supabase_service_role_key: str | None = Field(default=None, description="Supabase service-role key")
    chat_daily_limit: int = Field(default=30, ge=1, description="Chat messages per session per UTC day")
    log_level: str = Field(default="INFO", description="loguru level for the service sink")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppSettings:
        """Build settings from environment variables; unset variables keep defaults."""
        env = os.environ if environ is None else environ
        mapping = {
            "openai_api_key": "OPENAI_API_KEY",
            "llm_model": "ROBOTAXI_LLM_MODEL",
            "llm_max_tokens": "ROBOTAXI_LLM_MAX_TOKENS",
            "llm_temperature": "ROBOTAXI_LLM_TEMPERATURE",
            "supabase_url": "SUPABASE_URL",
            "supabase_service_role_key": "SUPABASE_SERVICE_ROLE_KEY",
            "chat_daily_limit": "ROBOTAXI_CHAT_DAILY_LIMIT",
            "log_level": "ROBOTAXI_LOG_LEVEL",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        return cls(**values)

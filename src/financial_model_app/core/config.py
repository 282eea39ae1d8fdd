"""Centralized application configuration.

Settings are read from the environment or a ``.env`` file at the project
root. Nothing here opens connections; the service wrappers read these values
when they build their clients.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_DIR = Path(__file__).resolve().parents[3]
_ENV_FILE = _PROJECT_DIR / ".env"


class Settings(BaseSettings):
    # Chat-completion API used for model generation and analysis
    OPENAI_API_KEY: str = Field("", description="OpenAI API key; generation endpoints fail without it")
    OPENAI_MODEL: str = Field("gpt-4o-mini", description="Chat model used for generation and analysis")
    LLM_TIMEOUT_SECONDS: float = Field(60.0, description="Timeout for a single LLM request (seconds)")
    GENERATION_TEMPERATURE: float = Field(0.7, description="Sampling temperature for model generation")
    GENERATION_MAX_TOKENS: int = Field(4000, description="Token cap for generated financial models")
    ANALYSIS_MAX_TOKENS: int = Field(300, description="Token cap for strategic insights")

    # Hosted auth and data store
    SUPABASE_URL: str = Field("", description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field("", description="Supabase anon (public) key")

    # HTTP service
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("OPENAI_API_KEY", "SUPABASE_ANON_KEY", mode="before")
    @classmethod
    def strip_secret(cls, v: Any) -> str:
        if isinstance(v, str):
            return v.strip()
        return v or ""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, AnyHttpUrl
from pydantic_settings import BaseSettings

ProviderName = Literal["gemini", "openai", "anthropic"]


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Dump.do API"
    ENV: str = Field(default=os.getenv("ENV", "local"))
    DEBUG: bool = Field(default=os.getenv("DEBUG", "false").lower() == "true")
    LOG_FORMAT: str = Field(default=os.getenv("LOG_FORMAT", "console"))  # "console" | "json"
    ALLOWED_ORIGINS: str = Field(default=os.getenv("ALLOWED_ORIGINS", ""))  # CSV
    DEV_BYPASS_AUTH: bool = False

    # LLM
    LLM_PROVIDER: ProviderName = "gemini"
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = Field(default=os.getenv("OPENAI_MODEL", "gpt-4o"))
    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_MODEL: str = "claude-3-5-sonnet-20241022"
    LLM_MAX_TOKENS: int = 1024
    LLM_TEMPERATURE: float = 0.7

    # Timeouts / retries
    LLM_TIMEOUT_S: float = 30.0
    LLM_MAX_RETRIES: int = 3
    LLM_RETRY_BASE_DELAY_S: float = 1.0
    LLM_RETRY_MAX_DELAY_S: float = 30.0
    STORAGE_TIMEOUT_S: float = 30.0

    # Limits
    RATE_LIMIT_MAX: int = 20
    RATE_LIMIT_WINDOW_S: float = 60.0
    MAX_CONTEXT_MESSAGES: int = 10
    MAX_MESSAGE_LENGTH: int = 10000
    DUMP_CORE_MAX_HISTORY_MESSAGES: int = 8
    DUMP_CORE_MAX_HISTORY_CHARS: int = 8000

    # Supabase
    SUPABASE_URL: AnyHttpUrl | None = None
    SUPABASE_SERVICE_ROLE: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    SUPABASE_SCHEMA: str = Field(default=os.getenv("SUPABASE_SCHEMA", "public"))

    class Config:
        env_file = (".env.backend", ".env.local", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    def api_key_for(self, provider: str) -> str | None:
        return {
            "gemini": self.GEMINI_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
        }.get(provider)

    def model_for(self, provider: str) -> str:
        return {
            "gemini": self.GEMINI_MODEL,
            "openai": self.OPENAI_MODEL,
            "anthropic": self.ANTHROPIC_MODEL,
        }[provider]

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached Settings instance. Call anywhere.
    """
    return Settings()

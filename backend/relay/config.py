from __future__ import annotations

import threading
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Provider ---
    OPENAI_API_KEY: str = Field(
        default="",
        description="API key sent as a bearer token to the provider",
    )
    OPENAI_API_BASE_URL: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the provider REST API",
    )
    OPENAI_TIMEOUT_MS: int = Field(
        default=60000,
        gt=0,
        description="Per-request timeout for provider calls in milliseconds",
    )

    # --- Polling ---
    POLL_DEFAULT_MAX_WAIT_MS: int = Field(
        default=30000,
        gt=0,
        description="Wait budget used by poll endpoints when the caller gives none",
    )
    POLL_MAX_WAIT_MS: int = Field(
        default=600000,
        gt=0,
        description="Upper bound accepted for the max_wait_ms query parameter",
    )

    # --- Logging ---
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )

    # --- Environment ---
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Deployment environment",
    )

    @property
    def openai_timeout_seconds(self) -> float:
        return self.OPENAI_TIMEOUT_MS / 1000

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Return the singleton Settings instance (thread-safe)."""
    global _settings_instance
    if _settings_instance is None:
        with _settings_lock:
            if _settings_instance is None:
                _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached Settings so the next call re-reads the environment."""
    global _settings_instance
    with _settings_lock:
        _settings_instance = None

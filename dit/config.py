# dit/config.py
"""
Centralized application configuration using pydantic-settings.

All settings are read from environment variables or .env file.
For a new deployment, just modify .env - no code changes needed.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Priority: environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )

    # --- Database ---
    DB_URL: str = Field(
        default="postgresql://localhost:5432/dit",
        description="Relational store connection URL (postgres or sqlite)"
    )

    # --- Redis ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (shared rate-limit counters)"
    )

    # --- Server ---
    HOST: str = Field(default="127.0.0.1", description="Server bind host")
    PORT: int = Field(default=8000, description="Server bind port")

    # --- Debug / Logging ---
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # --- Sessions ---
    SESSION_TTL_HOURS: int = Field(default=24, ge=1, description="Sliding session lifetime")
    SESSION_CREATE_ATTEMPTS: int = Field(default=3, ge=1, description="Token collision retries")

    # --- Rate limiting ---
    RATE_LIMIT_BACKEND: str = Field(default="memory", description="memory or redis")
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=60, ge=1)
    AUTH_RATE_LIMIT: int = 60
    QR_RATE_LIMIT: int = 120
    LIKES_RATE_LIMIT: int = 240
    COMMENTS_RATE_LIMIT: int = 120
    POSTS_RATE_LIMIT: int = 60
    CHAT_RATE_LIMIT: int = 60
    ANALYTICS_RATE_LIMIT: int = 600

    # --- Social feed ---
    FEED_LIMIT: int = Field(default=100, ge=1, le=500)

    # --- Chat relays ---
    CHAT_WEBHOOK_URL: Optional[str] = Field(default=None, description="General assistant webhook")
    GUARDIAN_WEBHOOK_URL: Optional[str] = Field(default=None, description="Password guardian webhook")
    CHAT_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, le=60)

    # --- Player ---
    PLAYER_TICK_SECONDS: float = Field(default=0.25, gt=0, le=1.0)
    CATALOG_PATH: Optional[str] = Field(default=None, description="Optional JSON track catalog")

    # --- Observability ---
    OTEL_ENABLED: bool = False
    METRICS_ENABLED: bool = True

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_upper

    @field_validator("RATE_LIMIT_BACKEND")
    @classmethod
    def validate_rate_limit_backend(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {"memory", "redis"}:
            raise ValueError("RATE_LIMIT_BACKEND must be 'memory' or 'redis'")
        return v_lower


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance (singleton pattern)."""
    return Settings()


# --- Singleton instance for easy import ---
settings = get_settings()


# --- Module-level exports ---
DATABASE_URL: str = settings.DB_URL
DEBUG: bool = settings.DEBUG
LOG_LEVEL: str = settings.LOG_LEVEL
REDIS_URL: str = settings.REDIS_URL

# --- Paths (computed, not from env) ---
PROJECT_ROOT: str = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
LOGS_PATH: str = os.path.join(PROJECT_ROOT, "logs")

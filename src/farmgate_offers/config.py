"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup; if a value is malformed the app fails fast with a clear error.

Usage:
    from farmgate_offers.config import get_settings
    settings = get_settings()
    print(settings.database_url)
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the offer service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Database (PostgreSQL) ---
    database_url: str = (
        "postgresql+asyncpg://farmgate:farmgate_dev"
        "@localhost:5432/farmgate_offers"
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- Identity ---
    # Set by the authentication gateway in front of this service
    caller_id_header: str = "X-User-ID"

    # --- Offer Defaults ---
    # 0 means new offers carry no deadline unless the request sets one
    offer_ttl_hours: int = Field(default=0, ge=0)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def offer_ttl(self) -> timedelta | None:
        """Default lifetime of a pending offer, or None for no deadline."""
        if not self.offer_ttl_hours:
            return None
        return timedelta(hours=self.offer_ttl_hours)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()

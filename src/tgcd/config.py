"""Configuration settings for the tgcd service."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    postgres_url: str = Field(
        validation_alias="POSTGRES_URL",
        description="PostgreSQL connection string for the tag database",
    )
    pool_size: int = Field(
        default=16,
        ge=1,
        validation_alias="POOL_SIZE",
        description="Maximum number of pooled database connections",
    )
    pool_min_size: int = Field(
        default=1,
        ge=0,
        validation_alias="POOL_MIN_SIZE",
        description="Connections opened eagerly when the pool starts",
    )
    db_command_timeout: float = Field(
        default=60.0,
        gt=0,
        validation_alias="DB_COMMAND_TIMEOUT",
        description="Per-statement timeout in seconds",
    )
    batch_concurrency: int = Field(
        default=8,
        ge=1,
        validation_alias="BATCH_CONCURRENCY",
        description="Connections a single GetMultipleTags call may hold at once",
    )

    # Server
    host: str = Field(default="0.0.0.0", validation_alias="HOST", description="Server host")
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        validation_alias="PORT",
        description="Server port",
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json",
        validation_alias="LOG_FORMAT",
        description="Log format (json or console)",
    )

    @model_validator(mode="before")
    @classmethod
    def load_postgres_url_file(cls, data: object) -> object:
        """Read POSTGRES_URL_FILE if present (Docker secrets pattern)."""
        url_file = os.getenv("POSTGRES_URL_FILE")
        if not url_file or not isinstance(data, dict):
            return data
        if data.get("postgres_url") or data.get("POSTGRES_URL") or os.getenv("POSTGRES_URL"):
            return data
        with open(url_file) as f:
            data["POSTGRES_URL"] = f.read().strip()
        return data

    @model_validator(mode="after")
    def clamp_pool_min_size(self) -> "Settings":
        if self.pool_min_size > self.pool_size:
            self.pool_min_size = self.pool_size
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[call-arg]

"""Application configuration models."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="ReelSearch", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_access_token: str | None = Field(default=None, alias="TMDB_ACCESS_TOKEN")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_timeout_seconds: float = Field(
        default=15.0, alias="TMDB_TIMEOUT", gt=0, le=120
    )
    tmdb_max_retries: int = Field(default=2, alias="TMDB_MAX_RETRIES", ge=0, le=10)
    tmdb_max_concurrency: int = Field(
        default=8, alias="TMDB_MAX_CONCURRENCY", ge=1, le=32
    )

    result_limit: int = Field(default=20, alias="RESULT_LIMIT", ge=1, le=100)
    mixed_type_cap: int = Field(default=5, alias="MIXED_TYPE_CAP", ge=1, le=20)
    min_quality_rating: float = Field(
        default=6.0, alias="MIN_QUALITY_RATING", ge=0, le=10
    )

    knowledge_dir: Path | None = Field(default=None, alias="KNOWLEDGE_DIR")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", "tmdb_access_token", "knowledge_dir", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        """Treat blank environment values as unset."""

        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        """Upper-case the level name and reject unknown levels."""

        if value is None:
            return "INFO"
        level = str(value).strip().upper() or "INFO"
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown LOG_LEVEL {value!r}")
        return level

    @property
    def has_tmdb_credentials(self) -> bool:
        """Return whether any TMDB credential is configured."""

        return bool(self.tmdb_api_key or self.tmdb_access_token)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()

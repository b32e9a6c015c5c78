"""Application settings loaded from environment variables and config files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveFloat, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from tubelens.config import CONFIG_ROOT


class SearchDefaults(BaseModel):
    """Defaults applied to search requests that omit optional fields."""

    context_lines: NonNegativeInt = 0

    model_config = ConfigDict(extra="forbid")


class TranscriptDefaults(BaseModel):
    """Request defaults loaded from ``transcript_defaults.yaml``."""

    format: str = "timestamped"
    search: SearchDefaults = Field(default_factory=SearchDefaults)

    model_config = ConfigDict(extra="forbid")


def _load_transcript_defaults(defaults_path: Path) -> TranscriptDefaults:
    if not defaults_path.exists():
        return TranscriptDefaults()

    raw_data = yaml.safe_load(defaults_path.read_text(encoding="utf-8")) or {}
    return TranscriptDefaults.model_validate(raw_data)


class Settings(BaseSettings):
    """Primary application settings for tubelens services and the CLI."""

    youtube_api_key: Optional[SecretStr] = Field(default=None, alias="YOUTUBE_API_KEY")
    youtube_api_base_url: str = Field(default="https://www.googleapis.com/youtube/v3", alias="YOUTUBE_API_BASE_URL")

    transcript_cache_ttl_seconds: PositiveFloat = Field(default=3600.0, alias="TRANSCRIPT_CACHE_TTL_SECONDS")
    transcript_cache_max_entries: Optional[PositiveInt] = Field(default=None, alias="TRANSCRIPT_CACHE_MAX_ENTRIES")
    default_language: str = Field(default="en", min_length=2, max_length=10, alias="DEFAULT_LANGUAGE")
    caption_retry_attempts: PositiveInt = Field(default=3, alias="CAPTION_RETRY_ATTEMPTS")
    max_concurrent_videos: PositiveInt = Field(default=4, alias="MAX_CONCURRENT_VIDEOS")
    metadata_timeout_seconds: PositiveFloat = Field(default=10.0, alias="METADATA_TIMEOUT_SECONDS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    transcript_defaults: TranscriptDefaults = Field(
        default_factory=lambda: _load_transcript_defaults(CONFIG_ROOT / "transcript_defaults.yaml")
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    @property
    def debug(self) -> bool:
        """Whether verbose cache and fetch logging is enabled."""

        return self.log_level.upper() == "DEBUG"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


__all__ = ["SearchDefaults", "Settings", "TranscriptDefaults", "get_settings"]

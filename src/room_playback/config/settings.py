"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages


class PlaybackSettings(BaseModel):
    """Per-room playback behaviour."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    idle_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=3600.0,
        validation_alias=AliasChoices("idle_timeout_seconds", "idle_timeout"),
    )
    max_autoplay_history: int = Field(default=25, ge=1, le=500)
    default_volume: float = Field(default=1.0, ge=0.0, le=1.0)
    queue_page_size: int = Field(
        default=10,
        ge=1,
        le=50,
        validation_alias=AliasChoices("queue_page_size", "page_size"),
    )
    max_autoplay_attempts: int = Field(default=3, ge=1, le=10)


class AudioSettings(BaseModel):
    """Audio stream and voice transport configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            "before_options": "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5",
            "options": "-vn",
        }
    )
    ytdlp_format: str = "bestaudio/best"
    connect_timeout_seconds: float = Field(default=10.0, gt=0.0, le=60.0)


class AISettings(BaseModel):
    """AI related-track recommendation configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("api_key", "openai_api_key", "openai_key"),
    )
    model: str = Field(
        default="openai:gpt-4o-mini",
        validation_alias=AliasChoices("model", "ai_model", "openai_model"),
    )
    max_tokens: int = Field(default=500, ge=1, le=4096)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    candidate_count: int = Field(default=5, ge=1, le=10)
    timeout_seconds: float = Field(default=20.0, gt=0.0, le=120.0)
    cache_ttl_seconds: int = Field(default=3600, ge=0, le=86_400)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - PLAYBACK__IDLE_TIMEOUT_SECONDS, PLAYBACK__DEFAULT_VOLUME, etc. (nested)
    - AUDIO__YTDLP_FORMAT, AI__MODEL, etc. (nested)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    ai: AISettings = Field(default_factory=AISettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()

"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen after
initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages


class PlaybackSettings(BaseModel):
    """Queue and playback policy."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    history_size: int = Field(default=20, ge=1, le=500)
    max_consecutive_failures: int = Field(
        default=3,
        ge=1,
        le=50,
        validation_alias=AliasChoices("max_consecutive_failures", "max_failures"),
    )
    reply_delete_delay_seconds: float = Field(
        default=30.0,
        ge=0.0,
        le=3600.0,
        validation_alias=AliasChoices("reply_delete_delay_seconds", "reply_delete_delay"),
    )


class AudioSettings(BaseModel):
    """Audio playback configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: float = Field(default=0.5, ge=0.0, le=2.0)
    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            "before_options": "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5",
            "options": "-vn",
        }
    )
    ytdlp_format: str = "bestaudio/best"
    connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        validation_alias=AliasChoices("connect_timeout_seconds", "connect_timeout"),
    )
    cache_ttl_seconds: int = Field(default=7200, ge=0)


class PresenceSettings(BaseModel):
    """Texts shown in the bot's activity line."""

    model_config = SettingsConfigDict(frozen=True)

    default_text: str = Field(default="/play", min_length=1, max_length=128)
    playing_text: str = Field(default="music", min_length=1, max_length=128)


class Settings(BaseSettings):
    """Application settings container.

    Environment variable naming:
    - ENVIRONMENT, LOG_LEVEL (top-level)
    - PLAYBACK__HISTORY_SIZE, AUDIO__YTDLP_FORMAT, PRESENCE__PLAYING_TEXT, ...
      (nested sections joined with ``__``)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"

    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    presence: PresenceSettings = Field(default_factory=PresenceSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels))
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()

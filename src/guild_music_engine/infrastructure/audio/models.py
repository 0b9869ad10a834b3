"""Pydantic models for yt-dlp data transformation and configuration.

These are infrastructure-specific models for parsing external yt-dlp data,
caching extraction results, and configuring yt-dlp options.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from guild_music_engine.domain.shared.types import NonEmptyStr, NonNegativeInt, PositiveInt

CACHE_MAX_SIZE: Final[int] = 500
DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
DEFAULT_HTTP_CHUNK_SIZE: Final[int] = 1024 * 1024  # 1 MiB
LOG_URL_TRUNCATE: Final[int] = 60
MAX_TITLE_LENGTH: Final[int] = 500
MAX_DURATION_SECONDS: Final[int] = 86_400


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class AudioFormatInfo(BaseModel):
    """A single format entry from yt-dlp extraction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp extraction result.

    Used both for full extractions and for the flat entries of a playlist,
    where only ``id``, ``url`` and ``title`` are usually present. Extra
    fields are ignored; before-validators coerce garbage to None.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    webpage_url: NonEmptyStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr | None = None
    duration: NonNegativeInt | None = None
    formats: list[AudioFormatInfo] = Field(default_factory=list)

    @field_validator("id", "webpage_url", "url", "title", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Coerce to a whole number of seconds; None for garbage or absurd values."""
        if v is None:
            return None
        try:
            val = int(v)
        except (TypeError, ValueError):
            return None
        return val if 0 <= val <= MAX_DURATION_SECONDS else None


class CacheEntry(BaseModel):
    """Cached yt-dlp extraction result with the time it was stored."""

    model_config = ConfigDict(frozen=True)

    info: YtDlpTrackInfo | None = None
    cached_at: float = Field(ge=0.0)


# ── yt-dlp option models ───────────────────────────────────────────────


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    default_search: NonEmptyStr = "ytsearch"
    forceipv4: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    http_chunk_size: PositiveInt = DEFAULT_HTTP_CHUNK_SIZE
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    ignoreerrors: bool = False

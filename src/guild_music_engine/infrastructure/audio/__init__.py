"""Audio infrastructure - yt-dlp metadata provider."""

from guild_music_engine.infrastructure.audio.models import (
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)
from guild_music_engine.infrastructure.audio.ytdlp_resolver import YtDlpResolver

__all__ = [
    "AudioFormatInfo",
    "CacheEntry",
    "YtDlpOpts",
    "YtDlpResolver",
    "YtDlpTrackInfo",
]

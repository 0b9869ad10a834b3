"""MetadataProvider implementation using yt-dlp for URL resolution, search and playlists."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from guild_music_engine.application.interfaces.metadata_provider import MetadataProvider
from guild_music_engine.config.settings import AudioSettings
from guild_music_engine.domain.music.entities import TrackMetadata
from guild_music_engine.domain.shared.messages import ErrorMessages, LogTemplates

from .models import (
    CACHE_MAX_SIZE,
    LOG_URL_TRUNCATE,
    MAX_TITLE_LENGTH,
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"^https?://"),
    re.compile(r"^www\."),
]

PLAYLIST_URL_TEMPLATE: Final[str] = "https://www.youtube.com/playlist?list={id}"
VIDEO_URL_TEMPLATE: Final[str] = "https://www.youtube.com/watch?v={id}"


class YtDlpResolver(MetadataProvider):
    """Resolves queries to TrackMetadata through yt-dlp.

    yt-dlp is blocking, so every extraction runs in a worker thread. Full
    extractions are cached per URL; ``resolve`` followed shortly by
    ``resolve_stream`` for the same track costs a single extraction.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)
        self._cache_ttl = self._settings.cache_ttl_seconds
        self._info_cache: dict[str, CacheEntry] = {}

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_playlist_opts(self) -> YtDlpOpts:
        return self._get_opts(noplaylist=False, extract_flat="in_playlist", ignoreerrors=True)

    # ── Conversion ─────────────────────────────────────────────────────

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpTrackInfo:
        return YtDlpTrackInfo.model_validate(data)

    @staticmethod
    def _page_url(info: YtDlpTrackInfo) -> str | None:
        for candidate in (info.webpage_url, info.url):
            if candidate and candidate.startswith(("http://", "https://")):
                return candidate
        if info.id:
            return VIDEO_URL_TEMPLATE.format(id=info.id)
        return None

    def _info_to_track(self, info: YtDlpTrackInfo) -> TrackMetadata | None:
        url = self._page_url(info)
        if url is None:
            logger.warning(ErrorMessages.NO_URL_IN_INFO_DICT)
            return None

        title = info.title[:MAX_TITLE_LENGTH] if info.title else None
        return TrackMetadata(url=url, title=title, duration_seconds=info.duration)

    @staticmethod
    def _extract_stream_url(info: YtDlpTrackInfo) -> str | None:
        # A full extraction puts the selected format's URL at the top level.
        if info.url and info.url != info.webpage_url:
            return info.url
        return YtDlpResolver._extract_stream_from_formats(info.formats)

    @staticmethod
    def _extract_stream_from_formats(formats: list[AudioFormatInfo]) -> str | None:
        audio_formats = [f for f in formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1].url
        return None

    # ── Blocking yt-dlp calls (run in threads) ─────────────────────────

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        now = time.time()
        cached = self._info_cache.get(url)
        if cached is not None:
            if now - cached.cached_at < self._cache_ttl:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            self._info_cache.pop(url, None)

        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return None

        result = self._parse_info(dict(data)) if isinstance(data, dict) else None
        if result is not None:
            self._store(url, result, now)
            if result.webpage_url and result.webpage_url != url:
                self._store(result.webpage_url, result, now)
        return result

    def _search_sync(self, query: str) -> YtDlpTrackInfo | None:
        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(f"ytsearch1:{query}", download=False)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return None

        if not isinstance(data, dict):
            return None
        entries = data.get("entries") or []
        if not isinstance(entries, list) or not entries or not entries[0]:
            return None

        result = self._parse_info(dict(entries[0]))
        if result.webpage_url:
            self._store(result.webpage_url, result, time.time())
        return result

    def _extract_playlist_sync(self, url: str) -> list[YtDlpTrackInfo]:
        try:
            with YoutubeDL(params=cast(Any, self._get_playlist_opts().model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_PLAYLIST, url)
            return []

        if not isinstance(data, dict):
            return []
        entries = data.get("entries") or []
        if not isinstance(entries, list):
            return []
        return [self._parse_info(dict(e)) for e in entries if e]

    def _store(self, key: str, info: YtDlpTrackInfo, now: float) -> None:
        self._info_cache[key] = CacheEntry(info=info, cached_at=now)
        if len(self._info_cache) <= CACHE_MAX_SIZE:
            return
        expired = [k for k, entry in self._info_cache.items() if now - entry.cached_at >= self._cache_ttl]
        for k in expired:
            self._info_cache.pop(k, None)
        while len(self._info_cache) > CACHE_MAX_SIZE:
            self._info_cache.pop(next(iter(self._info_cache)))

    # ── MetadataProvider ───────────────────────────────────────────────

    async def resolve(self, query: str) -> TrackMetadata | None:
        query = query.strip()
        if self.is_url(query):
            info = await asyncio.to_thread(self._extract_info_sync, query)
        else:
            info = await asyncio.to_thread(self._search_sync, query)

        if info is None:
            return None
        return self._info_to_track(info)

    async def resolve_playlist(self, playlist_id: str) -> list[TrackMetadata]:
        playlist_id = playlist_id.strip()
        url = playlist_id if self.is_url(playlist_id) else PLAYLIST_URL_TEMPLATE.format(id=playlist_id)

        entries = await asyncio.to_thread(self._extract_playlist_sync, url)
        tracks: list[TrackMetadata] = []
        for entry in entries:
            track = self._info_to_track(entry)
            if track is not None:
                tracks.append(track)
        return tracks

    async def resolve_stream(self, track: TrackMetadata) -> str | None:
        info = await asyncio.to_thread(self._extract_info_sync, track.url)
        if info is None:
            return None

        stream_url = self._extract_stream_url(info)
        if stream_url is None:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, track.display_title)
        return stream_url

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

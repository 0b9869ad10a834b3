"""Port interface for resolving queries, playlists and streams into tracks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from guild_music_engine.domain.shared.types import NonEmptyStr

if TYPE_CHECKING:
    from ...domain.music.entities import TrackMetadata


class MetadataProvider(ABC):
    """The only component allowed to mint TrackMetadata."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> TrackMetadata | None:
        """Resolve a URL or free-text search to a single track."""
        ...

    @abstractmethod
    async def resolve_playlist(self, playlist_id: NonEmptyStr) -> list[TrackMetadata]:
        """Resolve a playlist id or URL to its tracks, in playlist order."""
        ...

    @abstractmethod
    async def resolve_stream(self, track: TrackMetadata) -> str | None:
        """Return a direct audio stream URL for ``track``, or None."""
        ...

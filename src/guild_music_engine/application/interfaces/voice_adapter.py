"""Port interface for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from guild_music_engine.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.entities import TrackMetadata

StreamEndCallback = Callable[[DiscordSnowflake, int, Exception | None], Awaitable[None]]
"""Called with ``(guild_id, generation, error)`` once a stream stops producing audio."""


class VoiceAdapter(ABC):
    """Interface for voice channel connection and audio output."""

    @abstractmethod
    async def ensure_connected(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> bool:
        """Ensure the bot is in the channel, connecting or moving as needed."""
        ...

    @abstractmethod
    async def disconnect(self, guild_id: DiscordSnowflake) -> bool:
        """Leave voice in a guild."""
        ...

    @abstractmethod
    async def play(self, guild_id: DiscordSnowflake, track: TrackMetadata, *, generation: int) -> bool:
        """Start streaming ``track.stream_url``; end of stream reports ``generation``."""
        ...

    @abstractmethod
    async def stop(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def pause(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def resume(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    def get_current_channel_id(self, guild_id: DiscordSnowflake) -> DiscordSnowflake | None:
        """Get the current voice channel ID, or None if not connected."""
        ...

    @abstractmethod
    async def get_listeners(self, guild_id: DiscordSnowflake) -> list[DiscordSnowflake]:
        """Get non-bot member IDs in the bound voice channel."""
        ...

    @abstractmethod
    def set_on_stream_end_callback(self, callback: StreamEndCallback) -> None:
        ...

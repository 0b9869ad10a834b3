"""Playback Session - the live voice binding and audio stream of one guild."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ...domain.shared.exceptions import (
    ConnectFailedError,
    ResolutionFailedError,
    StreamFailedError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import DiscordSnowflake
from ..intents import TrackEnded

if TYPE_CHECKING:
    from ...domain.music.entities import TrackMetadata
    from ..interfaces.metadata_provider import MetadataProvider
    from ..interfaces.voice_adapter import VoiceAdapter

logger = logging.getLogger(__name__)

FinishedCallback = Callable[[TrackEnded], Awaitable[Any]]


@dataclass
class StreamHandle:
    """The audio pipe currently fed to the voice connection."""

    track: TrackMetadata
    generation: int
    paused: bool = False


class PlaybackSession:
    """Translates queue decisions into voice-adapter calls for a single guild.

    Every started stream gets a new generation number. The voice layer echoes
    it back when the stream ends; only the first signal for the live
    generation is forwarded, so intentional stops and duplicate end events
    never advance the queue.

    Each play or stop request also bumps a request counter. A play that
    suspends (stream resolution, voice connect) and finds the counter moved on
    when it resumes gives up without touching anything.
    """

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        voice_adapter: VoiceAdapter,
        metadata_provider: MetadataProvider,
    ) -> None:
        self._guild_id = guild_id
        self._voice = voice_adapter
        self._provider = metadata_provider
        self._on_finished: FinishedCallback | None = None

        self._channel_id: DiscordSnowflake | None = None
        self._stream: StreamHandle | None = None
        self._generation = 0
        self._request_id = 0
        self._stopped_at = 0

    @property
    def guild_id(self) -> DiscordSnowflake:
        return self._guild_id

    @property
    def channel_id(self) -> DiscordSnowflake | None:
        return self._channel_id

    @property
    def stream(self) -> StreamHandle | None:
        return self._stream

    @property
    def generation(self) -> int:
        """Generation of the most recently started stream."""
        return self._generation

    @property
    def is_bound(self) -> bool:
        return self._channel_id is not None

    @property
    def is_streaming(self) -> bool:
        return self._stream is not None

    @property
    def paused(self) -> bool:
        return self._stream is not None and self._stream.paused

    def set_on_finished(self, callback: FinishedCallback) -> None:
        self._on_finished = callback

    async def bind(self, channel_id: DiscordSnowflake) -> DiscordSnowflake:
        """Join ``channel_id``; a no-op when already there."""
        if self._channel_id == channel_id and self._voice.is_connected(self._guild_id):
            return channel_id

        if not await self._voice.ensure_connected(self._guild_id, channel_id):
            self._stream = None
            self._channel_id = None
            await self._voice.disconnect(self._guild_id)
            raise ConnectFailedError(channel_id)

        self._channel_id = channel_id
        return channel_id

    async def play(self, track: TrackMetadata, *, channel_id: DiscordSnowflake | None = None) -> bool:
        """Start streaming ``track``, joining ``channel_id`` first when given.

        Returns False when a newer play or stop request arrived while this one
        was suspended. Raises ResolutionFailedError, ConnectFailedError or
        StreamFailedError; none of them leave a stream behind.
        """
        request = self._begin_request()
        await self._retire_stream()

        if track.stream_url is None:
            logger.debug(LogTemplates.TRACK_RESOLVING_STREAM, track.display_title)
            stream_url = await self._provider.resolve_stream(track)
            if self._is_stale(request):
                return False
            if not stream_url:
                raise ResolutionFailedError(track.url)
            track = track.with_stream_url(stream_url)

        if channel_id is not None:
            await self.bind(channel_id)
            if self._is_stale(request):
                if self._stopped_at > request:
                    # A stop landed while we were connecting; do not linger in the channel.
                    self._channel_id = None
                    await self._voice.disconnect(self._guild_id)
                return False

        if not self.is_bound:
            raise ConnectFailedError(channel_id, ErrorMessages.SESSION_NOT_BOUND)

        generation = self._generation + 1
        if not await self._voice.play(self._guild_id, track, generation=generation):
            raise StreamFailedError(track.url)
        if self._is_stale(request):
            return False

        self._generation = generation
        self._stream = StreamHandle(track=track, generation=generation)
        return True

    async def pause(self) -> bool:
        if self._stream is None:
            return False
        if self._stream.paused:
            return True
        if not await self._voice.pause(self._guild_id):
            return False
        self._stream.paused = True
        return True

    async def resume(self) -> bool:
        if self._stream is None:
            return False
        if not self._stream.paused:
            return True
        if not await self._voice.resume(self._guild_id):
            return False
        self._stream.paused = False
        return True

    async def stop(self) -> bool:
        """Tear down the stream and leave voice. False when there was nothing to stop."""
        self._stopped_at = self._begin_request()
        had_anything = self._stream is not None or self._channel_id is not None

        self._stream = None
        self._channel_id = None
        await self._voice.stop(self._guild_id)
        await self._voice.disconnect(self._guild_id)
        return had_anything

    async def has_listeners_present(self) -> bool:
        if self._channel_id is None:
            return False
        return bool(await self._voice.get_listeners(self._guild_id))

    async def handle_stream_end(self, generation: int, error: Exception | None = None) -> None:
        """Forward the end of the live stream to the owner, exactly once."""
        stream = self._stream
        if stream is None or stream.generation != generation:
            logger.debug(
                LogTemplates.SESSION_IGNORING_STREAM_END,
                generation,
                self._guild_id,
                stream.generation if stream else None,
            )
            return

        self._stream = None
        logger.debug(LogTemplates.TRACK_ENDED, self._guild_id, generation, error)

        if self._on_finished is None:
            return

        try:
            await self._on_finished(
                TrackEnded(generation=generation, error=str(error) if error else None)
            )
        except Exception as e:
            logger.exception(LogTemplates.SESSION_CALLBACK_ERROR, self._guild_id, e)

    def _begin_request(self) -> int:
        self._request_id += 1
        return self._request_id

    def _is_stale(self, request: int) -> bool:
        if request == self._request_id:
            return False
        logger.info(LogTemplates.SESSION_STALE_REQUEST, request, self._guild_id, self._request_id)
        return True

    async def _retire_stream(self) -> None:
        if self._stream is None:
            return
        self._stream = None
        await self._voice.stop(self._guild_id)

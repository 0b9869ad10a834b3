"""Per-guild playback contexts and the shared presence line."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import PlaybackQueue
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from ..interfaces.collaborators import ActivityDisplay
from ..intents import Intent, ListenersChanged, Outcome, OutcomeStatus, TrackEnded
from .orchestrator import PlaybackOrchestrator
from .playback_session import PlaybackSession

if TYPE_CHECKING:
    from ..interfaces.metadata_provider import MetadataProvider
    from ..interfaces.voice_adapter import VoiceAdapter

logger = logging.getLogger(__name__)

# Intents that describe something already happening; they never open a new context.
_EVENT_INTENTS = (TrackEnded, ListenersChanged)


class PresenceTracker:
    """Collapses per-guild playing/idle transitions into one bot-wide presence.

    The presence shows music while at least one guild is playing and falls
    back to the default only when the last one goes idle.
    """

    def __init__(self, display: ActivityDisplay) -> None:
        self._display = display
        self._playing: set[DiscordSnowflake] = set()

    @property
    def playing_guilds(self) -> frozenset[DiscordSnowflake]:
        return frozenset(self._playing)

    def for_guild(self, guild_id: DiscordSnowflake) -> ActivityDisplay:
        return _GuildPresence(self, guild_id)

    async def mark_playing(self, guild_id: DiscordSnowflake) -> None:
        was_idle = not self._playing
        self._playing.add(guild_id)
        if was_idle:
            await self._display.set_music_playing()

    async def mark_idle(self, guild_id: DiscordSnowflake) -> None:
        if guild_id not in self._playing:
            return
        self._playing.discard(guild_id)
        if not self._playing:
            await self._display.set_default()


class _GuildPresence(ActivityDisplay):
    def __init__(self, tracker: PresenceTracker, guild_id: DiscordSnowflake) -> None:
        self._tracker = tracker
        self._guild_id = guild_id

    async def set_default(self) -> None:
        await self._tracker.mark_idle(self._guild_id)

    async def set_music_playing(self) -> None:
        await self._tracker.mark_playing(self._guild_id)


class GuildPlaybackRegistry:
    """Owns one orchestrator per guild, created on first use.

    A context is dropped once its orchestrator reports that the last listener
    left. An explicit stop keeps it, so pending tracks, loop flags and replay
    history are still there for the next command.
    """

    def __init__(
        self,
        *,
        voice_adapter: VoiceAdapter,
        metadata_provider: MetadataProvider,
        activity_display: ActivityDisplay,
        history_size: int = 20,
        max_consecutive_failures: int = 3,
    ) -> None:
        self._voice = voice_adapter
        self._provider = metadata_provider
        self._presence = PresenceTracker(activity_display)
        self._history_size = history_size
        self._max_failures = max_consecutive_failures
        self._contexts: dict[DiscordSnowflake, PlaybackOrchestrator] = {}

        self._voice.set_on_stream_end_callback(self._on_stream_end)

    @property
    def presence(self) -> PresenceTracker:
        return self._presence

    @property
    def guild_ids(self) -> list[DiscordSnowflake]:
        return list(self._contexts)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._contexts

    def __len__(self) -> int:
        return len(self._contexts)

    def get(self, guild_id: DiscordSnowflake) -> PlaybackOrchestrator | None:
        return self._contexts.get(guild_id)

    def get_or_create(self, guild_id: DiscordSnowflake) -> PlaybackOrchestrator:
        orchestrator = self._contexts.get(guild_id)
        if orchestrator is not None:
            return orchestrator

        session = PlaybackSession(
            guild_id=guild_id,
            voice_adapter=self._voice,
            metadata_provider=self._provider,
        )
        orchestrator = PlaybackOrchestrator(
            guild_id=guild_id,
            queue=PlaybackQueue(history_size=self._history_size),
            session=session,
            metadata_provider=self._provider,
            activity_display=self._presence.for_guild(guild_id),
            max_consecutive_failures=self._max_failures,
        )
        self._contexts[guild_id] = orchestrator
        logger.debug(LogTemplates.SESSION_CREATED, guild_id)
        return orchestrator

    async def dispatch(self, guild_id: DiscordSnowflake, intent: Intent) -> Outcome:
        if isinstance(intent, _EVENT_INTENTS):
            orchestrator = self._contexts.get(guild_id)
            if orchestrator is None:
                return Outcome(status=OutcomeStatus.IGNORED)
        else:
            orchestrator = self.get_or_create(guild_id)

        try:
            return await orchestrator.dispatch(intent)
        finally:
            self._reap(orchestrator)

    async def shutdown(self) -> None:
        """Stop every session and forget all contexts."""
        contexts = list(self._contexts.values())
        self._contexts.clear()
        for orchestrator in contexts:
            await orchestrator.session.stop()
            logger.debug(LogTemplates.SESSION_DISCARDED, orchestrator.guild_id)

    async def _on_stream_end(
        self, guild_id: DiscordSnowflake, generation: int, error: Exception | None
    ) -> None:
        orchestrator = self._contexts.get(guild_id)
        if orchestrator is None:
            return

        try:
            await orchestrator.session.handle_stream_end(generation, error)
        finally:
            self._reap(orchestrator)

    def _reap(self, orchestrator: PlaybackOrchestrator) -> None:
        if not orchestrator.abandoned:
            return
        if self._contexts.get(orchestrator.guild_id) is orchestrator:
            del self._contexts[orchestrator.guild_id]
            logger.debug(LogTemplates.SESSION_DISCARDED, orchestrator.guild_id)

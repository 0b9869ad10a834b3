"""Playback Orchestrator - the single entry point that turns intents into queue and voice changes."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING

from ...domain.music.value_objects import RemovalSpec
from ...domain.shared.exceptions import (
    ConnectFailedError,
    DomainError,
    InvalidRemovalSpecError,
    NotPlayingError,
    ResolutionFailedError,
    StreamFailedError,
)
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from ..intents import (
    Intent,
    ListenersChanged,
    LoopQueue,
    LoopSong,
    NowPlaying,
    Outcome,
    OutcomeStatus,
    Pause,
    QueuePlaylist,
    QueueTrack,
    Remove,
    Replay,
    Resume,
    ShowQueue,
    Shuffle,
    Skip,
    Stop,
    TrackEnded,
)

if TYPE_CHECKING:
    from ...domain.music.entities import PlaybackQueue, TrackMetadata
    from ..interfaces.collaborators import ActivityDisplay
    from ..interfaces.metadata_provider import MetadataProvider
    from .playback_session import PlaybackSession

logger = logging.getLogger(__name__)

_START_FAILURES: dict[type[DomainError], OutcomeStatus] = {
    ResolutionFailedError: OutcomeStatus.RESOLUTION_FAILED,
    ConnectFailedError: OutcomeStatus.CONNECT_FAILED,
    StreamFailedError: OutcomeStatus.STREAM_FAILED,
}


class PlaybackOrchestrator:
    """Owns one guild's queue and session and applies intents to them.

    Stream completion arrives here as a ``TrackEnded`` intent, so user
    commands and automatic advancement share one code path. After every
    suspension point the handlers re-read queue state instead of trusting
    what they saw before awaiting.
    """

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        queue: PlaybackQueue,
        session: PlaybackSession,
        metadata_provider: MetadataProvider,
        activity_display: ActivityDisplay,
        max_consecutive_failures: int = 3,
        rng: random.Random | None = None,
    ) -> None:
        self._guild_id = guild_id
        self._queue = queue
        self._session = session
        self._provider = metadata_provider
        self._display = activity_display
        self._max_failures = max_consecutive_failures
        self._rng = rng

        # Set once the last listener left; the registry drops the context then.
        self.abandoned = False

        # One intent at a time per guild; stream ends queue behind user commands.
        self._lock = asyncio.Lock()

        session.set_on_finished(self.dispatch)

    @property
    def guild_id(self) -> DiscordSnowflake:
        return self._guild_id

    @property
    def queue(self) -> PlaybackQueue:
        return self._queue

    @property
    def session(self) -> PlaybackSession:
        return self._session

    async def dispatch(self, intent: Intent) -> Outcome:
        async with self._lock:
            try:
                return await self._handle(intent)
            except NotPlayingError as e:
                return Outcome(status=OutcomeStatus.NOT_PLAYING, detail=e.message)

    async def _handle(self, intent: Intent) -> Outcome:
        match intent:
            case QueueTrack():
                return await self._queue_track(intent)
            case QueuePlaylist():
                return await self._queue_playlist(intent)
            case Skip():
                return await self._skip(intent)
            case TrackEnded():
                return await self._track_ended(intent)
            case Replay():
                return await self._replay(intent)
            case Remove():
                return self._remove(intent)
            case Stop():
                return await self._stop(intent)
            case LoopSong():
                enabled = self._queue.toggle_song_loop()
                logger.info(
                    LogTemplates.SONG_LOOP_CHANGED,
                    intent.requested_by,
                    "started" if enabled else "stopped",
                    self._guild_id,
                )
                return Outcome(status=OutcomeStatus.SONG_LOOP_TOGGLED, enabled=enabled)
            case LoopQueue():
                enabled = self._queue.toggle_queue_loop()
                logger.info(
                    LogTemplates.QUEUE_LOOP_CHANGED,
                    intent.requested_by,
                    "started" if enabled else "stopped",
                    self._guild_id,
                )
                return Outcome(status=OutcomeStatus.QUEUE_LOOP_TOGGLED, enabled=enabled)
            case Shuffle():
                return self._shuffle(intent)
            case Pause():
                return await self._pause()
            case Resume():
                return await self._resume()
            case NowPlaying():
                return Outcome(status=OutcomeStatus.NOW_PLAYING, track=self._require_current("nowplaying"))
            case ShowQueue():
                return Outcome(status=OutcomeStatus.QUEUE_LISTED, snapshot=self._queue.snapshot())
            case ListenersChanged():
                return await self._listeners_changed()
            case _:
                raise TypeError(f"Unsupported intent: {type(intent).__name__}")

    # ── Queueing ──────────────────────────────────────────────────────

    async def _queue_track(self, intent: QueueTrack) -> Outcome:
        track = await self._provider.resolve(intent.query)
        if track is None:
            return Outcome(status=OutcomeStatus.RESOLUTION_FAILED, detail=intent.query)

        if self._queue.is_playing_music:
            pending = self._queue.enqueue([track])
            logger.info(LogTemplates.QUEUE_ENQUEUED, 1, self._guild_id, pending)
            return Outcome(status=OutcomeStatus.QUEUED, track=track)

        return await self._start(track, channel_id=intent.channel_id, status=OutcomeStatus.STARTED)

    async def _queue_playlist(self, intent: QueuePlaylist) -> Outcome:
        tracks = await self._provider.resolve_playlist(intent.playlist_id)
        if not tracks:
            return Outcome(status=OutcomeStatus.PLAYLIST_EMPTY, detail=intent.playlist_id)

        pending = self._queue.enqueue(tracks)
        logger.info(LogTemplates.PLAYLIST_IMPORTED, intent.requested_by, len(tracks), self._guild_id)
        if self._queue.is_playing_music:
            logger.info(LogTemplates.QUEUE_ENQUEUED, len(tracks), self._guild_id, pending)
            return Outcome(status=OutcomeStatus.PLAYLIST_QUEUED, tracks=tracks)

        first = self._queue.advance()
        if first is None:
            return Outcome(status=OutcomeStatus.PLAYLIST_EMPTY, detail=intent.playlist_id)

        outcome = await self._start(
            first, channel_id=intent.channel_id, status=OutcomeStatus.PLAYLIST_STARTED
        )
        outcome.tracks = tracks
        return outcome

    # ── Advancing ─────────────────────────────────────────────────────

    async def _skip(self, intent: Skip) -> Outcome:
        skipped = self._require_current("skip")
        logger.info(LogTemplates.TRACK_SKIPPED, intent.requested_by, skipped.display_title, self._guild_id)
        next_track = await self._continue()
        return Outcome(status=OutcomeStatus.SKIPPED, track=skipped, next_track=next_track)

    async def _track_ended(self, intent: TrackEnded) -> Outcome:
        finished = self._queue.current
        if finished is None or intent.generation != self._session.generation:
            return Outcome(status=OutcomeStatus.IGNORED)

        if intent.error:
            logger.warning(LogTemplates.PLAYBACK_ERROR, self._guild_id, intent.error)

        next_track = await self._continue()
        return Outcome(status=OutcomeStatus.ADVANCED, track=finished, next_track=next_track)

    async def _replay(self, intent: Replay) -> Outcome:
        track = self._queue.replay()
        if track is None:
            return Outcome(status=OutcomeStatus.NOTHING_TO_REPLAY)

        logger.info(LogTemplates.TRACK_REPLAYED, intent.requested_by, track.display_title, self._guild_id)
        # The interrupted track is dropped, not pushed into history.
        self._queue.discard_current()
        channel_id = None if self._session.is_bound else intent.channel_id
        return await self._start(track, channel_id=channel_id, status=OutcomeStatus.REPLAYED)

    async def _continue(self) -> TrackMetadata | None:
        """Advance past the current track and start whatever comes next.

        Tracks that fail to start are dropped and the following one is tried,
        up to the configured number of consecutive failures.
        """
        if not await self._session.has_listeners_present():
            logger.info(LogTemplates.PLAYBACK_NO_LISTENERS, self._guild_id)
            await self._halt(abandon=True)
            return None

        failures = 0
        while (next_track := self._queue.advance()) is not None:
            try:
                started = await self._session.play(next_track)
            except DomainError as e:
                logger.warning(LogTemplates.TRACK_FAILED, next_track.display_title, self._guild_id, e.message)
                self._queue.discard_current()
                failures += 1
                if failures >= self._max_failures:
                    logger.error(LogTemplates.PLAYBACK_FAILURES_EXHAUSTED, failures, self._guild_id)
                    break
                continue

            if started:
                logger.info(LogTemplates.TRACK_STARTED, next_track.display_title, self._guild_id)
                await self._show_playing()
            return next_track
        else:
            logger.info(LogTemplates.QUEUE_EMPTY, self._guild_id)

        await self._halt()
        return None

    async def _start(
        self,
        track: TrackMetadata,
        *,
        channel_id: DiscordSnowflake | None,
        status: OutcomeStatus,
    ) -> Outcome:
        self._queue.start_playing(track)
        try:
            started = await self._session.play(track, channel_id=channel_id)
        except DomainError as e:
            logger.warning(LogTemplates.TRACK_FAILED, track.display_title, self._guild_id, e.message)
            if self._queue.current is track:
                self._queue.discard_current()
                await self._session.stop()
                await self._show_default()
            return Outcome(
                status=_START_FAILURES.get(type(e), OutcomeStatus.ERROR),
                track=track,
                detail=e.message,
            )

        if not started:
            return Outcome(status=OutcomeStatus.SUPERSEDED, track=track)

        logger.info(LogTemplates.TRACK_STARTED, track.display_title, self._guild_id)
        await self._show_playing()
        return Outcome(status=status, track=track)

    # ── Control ───────────────────────────────────────────────────────

    async def _stop(self, intent: Stop) -> Outcome:
        stopped = self._queue.current
        self._queue.stop()
        had_session = await self._session.stop()
        if stopped is None and not had_session:
            return Outcome(status=OutcomeStatus.NOT_PLAYING)

        logger.info(LogTemplates.PLAYBACK_STOPPED, intent.requested_by, self._guild_id)
        await self._show_default()
        return Outcome(status=OutcomeStatus.STOPPED, track=stopped)

    def _remove(self, intent: Remove) -> Outcome:
        try:
            spec = RemovalSpec.parse(intent.spec)
        except InvalidRemovalSpecError as e:
            return Outcome(status=OutcomeStatus.INVALID_ARGUMENT, detail=e.message)

        if spec.is_range:
            removed = self._queue.remove_range(spec.start, spec.end)
        else:
            single = self._queue.remove(spec.start)
            removed = [single] if single is not None else []

        logger.info(LogTemplates.QUEUE_REMOVED, intent.requested_by, len(removed), self._guild_id)
        return Outcome(status=OutcomeStatus.REMOVED, tracks=removed, detail=str(spec))

    def _shuffle(self, intent: Shuffle) -> Outcome:
        self._require_current("shuffle")
        if not self._queue.shuffle(self._rng):
            return Outcome(status=OutcomeStatus.NOTHING_TO_SHUFFLE)

        logger.info(LogTemplates.QUEUE_SHUFFLED, intent.requested_by, self._guild_id)
        return Outcome(status=OutcomeStatus.SHUFFLED)

    async def _pause(self) -> Outcome:
        current = self._require_current("pause")
        if not await self._session.pause():
            raise NotPlayingError("pause")

        self._queue.set_paused(True)
        logger.info(LogTemplates.PLAYBACK_PAUSED, self._guild_id)
        return Outcome(status=OutcomeStatus.PAUSED, track=current)

    async def _resume(self) -> Outcome:
        current = self._require_current("resume")
        if not await self._session.resume():
            raise NotPlayingError("resume")

        self._queue.set_paused(False)
        logger.info(LogTemplates.PLAYBACK_RESUMED, self._guild_id)
        return Outcome(status=OutcomeStatus.RESUMED, track=current)

    async def _listeners_changed(self) -> Outcome:
        if not (self._queue.is_playing_music or self._session.is_bound):
            return Outcome(status=OutcomeStatus.IGNORED)
        if await self._session.has_listeners_present():
            return Outcome(status=OutcomeStatus.IGNORED)

        logger.info(LogTemplates.PLAYBACK_NO_LISTENERS, self._guild_id)
        stopped = self._queue.current
        await self._halt(abandon=True)
        return Outcome(status=OutcomeStatus.STOPPED, track=stopped)

    def _require_current(self, operation: str) -> TrackMetadata:
        current = self._queue.current
        if current is None:
            raise NotPlayingError(operation)
        return current

    async def _halt(self, *, abandon: bool = False) -> None:
        self._queue.stop()
        await self._session.stop()
        await self._show_default()
        if abandon:
            self.abandoned = True

    # ── Activity display ──────────────────────────────────────────────

    async def _show_playing(self) -> None:
        try:
            await self._display.set_music_playing()
        except Exception as e:
            logger.warning(LogTemplates.ACTIVITY_UPDATE_FAILED, e)

    async def _show_default(self) -> None:
        try:
            await self._display.set_default()
        except Exception as e:
            logger.warning(LogTemplates.ACTIVITY_UPDATE_FAILED, e)

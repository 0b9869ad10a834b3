"""Core domain entities for the music bounded context."""

from __future__ import annotations

import random
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from guild_music_engine.domain.shared.types import (
    DurationSeconds,
    HistorySize,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeInt,
    QueueIndex,
    TrackTitleStr,
)


class TrackMetadata(BaseModel):
    """Immutable description of a playable item.

    Only the metadata provider mints these. The same instance is shared by
    the pending list, the current slot and the history without copying.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    url: HttpUrlStr
    title: TrackTitleStr | None = None
    duration_seconds: DurationSeconds | None = None
    stream_url: NonEmptyStr | None = None

    @property
    def display_title(self) -> str:
        return self.title or self.url

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.duration_seconds is None:
            return "Unknown"

        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    def with_stream_url(self, stream_url: str) -> TrackMetadata:
        """Return a copy of this track pointing at a resolved audio stream."""
        return self.model_copy(update={"stream_url": stream_url})


class Idle(BaseModel):
    """Nothing is bound to the session."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class Playing(BaseModel):
    """A track is bound to the session, possibly paused."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["playing"] = "playing"
    track: TrackMetadata
    paused: bool = False


PlaybackStatus = Annotated[Idle | Playing, Field(discriminator="kind")]
"""Tagged union that replaces a ``current`` + ``is_playing`` field pair."""


class QueueSnapshot(BaseModel):
    """Read-only view of a queue for display."""

    model_config = ConfigDict(frozen=True)

    current: TrackMetadata | None
    upcoming: list[TrackMetadata]
    paused: bool = False
    loop_song: bool = False
    loop_queue: bool = False

    @property
    def total_duration_seconds(self) -> int | None:
        """Sum of current and upcoming durations, or None if any is unknown."""
        tracks = ([self.current] if self.current else []) + self.upcoming
        total = 0
        for track in tracks:
            if track.duration_seconds is None:
                return None
            total += track.duration_seconds
        return total


class PlaybackQueue(BaseModel):
    """Pending tracks, playback status, loop flags and replay history for one guild.

    Pure state: nothing here awaits or touches the voice connection, so every
    method is safe to call from a stream-completion handler.
    """

    pending: list[TrackMetadata] = Field(default_factory=list)
    status: PlaybackStatus = Field(default_factory=Idle)
    history: list[TrackMetadata] = Field(default_factory=list)
    history_size: HistorySize = 20
    loop_song: bool = False
    loop_queue: bool = False

    @property
    def current(self) -> TrackMetadata | None:
        match self.status:
            case Playing(track=track):
                return track
            case _:
                return None

    @property
    def is_playing_music(self) -> bool:
        return isinstance(self.status, Playing)

    @property
    def is_paused(self) -> bool:
        return isinstance(self.status, Playing) and self.status.paused

    @property
    def pending_length(self) -> NonNegativeInt:
        return len(self.pending)

    def enqueue(self, tracks: list[TrackMetadata]) -> int:
        """Append tracks in order and return the new pending length."""
        self.pending.extend(tracks)
        return len(self.pending)

    def peek(self) -> TrackMetadata | None:
        return self.pending[0] if self.pending else None

    def start_playing(self, track: TrackMetadata) -> None:
        """Bind ``track`` as current. The caller has already taken it out of ``pending``."""
        self.status = Playing(track=track)

    def set_paused(self, paused: bool) -> bool:
        match self.status:
            case Playing() as playing:
                self.status = playing.model_copy(update={"paused": paused})
                return True
            case _:
                return False

    def advance(self) -> TrackMetadata | None:
        """Move past the current track and return what should play next.

        Song loop wins over queue loop: while it is on, the current track is
        returned again and neither ``pending`` nor the history changes.
        """
        finished = self.current
        if finished is not None and self.loop_song:
            self.status = Playing(track=finished)
            return finished

        if finished is not None:
            self._record(finished)
            if self.loop_queue:
                self.pending.append(finished)

        if not self.pending:
            self.status = Idle()
            return None

        next_track = self.pending.pop(0)
        self.status = Playing(track=next_track)
        return next_track

    def remove(self, index: QueueIndex) -> TrackMetadata | None:
        """Remove the track at a 0-based pending position; out of range is a no-op."""
        if 0 <= index < len(self.pending):
            return self.pending.pop(index)
        return None

    def remove_range(self, start: int, end: int) -> list[TrackMetadata]:
        """Remove the closed range ``[start, end]`` (0-based, either order, clamped)."""
        low, high = sorted((start, end))
        low = max(low, 0)
        high = min(high, len(self.pending) - 1)
        if low > high:
            return []

        removed = self.pending[low : high + 1]
        del self.pending[low : high + 1]
        return removed

    def replay(self) -> TrackMetadata | None:
        """Return the most recently finished track without consuming it."""
        return self.history[-1] if self.history else None

    def toggle_song_loop(self) -> bool:
        self.loop_song = not self.loop_song
        return self.loop_song

    def toggle_queue_loop(self) -> bool:
        self.loop_queue = not self.loop_queue
        return self.loop_queue

    def shuffle(self, rng: random.Random | None = None) -> bool:
        """Uniformly permute ``pending`` in place; False when there is nothing to reorder."""
        if len(self.pending) < 2:
            return False
        (rng or random).shuffle(self.pending)
        return True

    def stop(self) -> None:
        """Unbind the current track. ``pending`` is kept: stopping is not clearing."""
        finished = self.current
        if finished is not None:
            self._record(finished)
        self.status = Idle()

    def discard_current(self) -> TrackMetadata | None:
        """Drop the current track without recording it; used when it never started."""
        dropped = self.current
        self.status = Idle()
        return dropped

    def snapshot(self) -> QueueSnapshot:
        return QueueSnapshot(
            current=self.current,
            upcoming=list(self.pending),
            paused=self.is_paused,
            loop_song=self.loop_song,
            loop_queue=self.loop_queue,
        )

    def _record(self, track: TrackMetadata) -> None:
        self.history.append(track)
        if len(self.history) > self.history_size:
            del self.history[: len(self.history) - self.history_size]

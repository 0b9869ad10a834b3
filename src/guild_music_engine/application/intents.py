"""
Playback Intents

The closed set of requests a guild's orchestrator understands, and the
outcome it hands back. User commands and internal events (a stream ending,
listeners leaving) travel the same path so they are handled one at a time.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from guild_music_engine.domain.music.entities import QueueSnapshot, TrackMetadata
from guild_music_engine.domain.shared.types import DiscordSnowflake, NonEmptyStr, NonNegativeInt


class BaseIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    requested_by: str = "system"


# === User intents ===


class QueueTrack(BaseIntent):
    """Play ``query`` now if idle, otherwise append it to the queue."""

    query: NonEmptyStr
    channel_id: DiscordSnowflake | None = None


class QueuePlaylist(BaseIntent):
    playlist_id: NonEmptyStr
    channel_id: DiscordSnowflake | None = None


class Skip(BaseIntent):
    pass


class Replay(BaseIntent):
    channel_id: DiscordSnowflake | None = None


class Remove(BaseIntent):
    """Remove a 1-based position (``"3"``) or inclusive range (``"2-4"``)."""

    spec: str


class Stop(BaseIntent):
    pass


class LoopSong(BaseIntent):
    pass


class LoopQueue(BaseIntent):
    pass


class Shuffle(BaseIntent):
    pass


class Pause(BaseIntent):
    pass


class Resume(BaseIntent):
    pass


class NowPlaying(BaseIntent):
    pass


class ShowQueue(BaseIntent):
    pass


# === Internal events ===


class TrackEnded(BaseIntent):
    """The live stream finished on its own (or died with ``error``)."""

    generation: NonNegativeInt
    error: str | None = None


class ListenersChanged(BaseIntent):
    """Someone left or joined the bound voice channel."""


Intent = (
    QueueTrack
    | QueuePlaylist
    | Skip
    | Replay
    | Remove
    | Stop
    | LoopSong
    | LoopQueue
    | Shuffle
    | Pause
    | Resume
    | NowPlaying
    | ShowQueue
    | TrackEnded
    | ListenersChanged
)

VOICE_INTENTS: tuple[type[BaseIntent], ...] = (
    QueueTrack,
    QueuePlaylist,
    Skip,
    Replay,
    Remove,
    Stop,
    LoopSong,
    LoopQueue,
    Shuffle,
    Pause,
    Resume,
)
"""Intents that require the requester to be in a voice channel with permissions."""


class OutcomeStatus(Enum):
    """Status codes for intent outcomes."""

    QUEUED = "queued"
    STARTED = "started"
    PLAYLIST_QUEUED = "playlist_queued"
    PLAYLIST_STARTED = "playlist_started"
    PLAYLIST_EMPTY = "playlist_empty"
    SKIPPED = "skipped"
    ADVANCED = "advanced"
    REPLAYED = "replayed"
    NOTHING_TO_REPLAY = "nothing_to_replay"
    REMOVED = "removed"
    STOPPED = "stopped"
    SONG_LOOP_TOGGLED = "song_loop_toggled"
    QUEUE_LOOP_TOGGLED = "queue_loop_toggled"
    SHUFFLED = "shuffled"
    NOTHING_TO_SHUFFLE = "nothing_to_shuffle"
    PAUSED = "paused"
    RESUMED = "resumed"
    NOW_PLAYING = "now_playing"
    QUEUE_LISTED = "queue_listed"
    IGNORED = "ignored"
    SUPERSEDED = "superseded"
    NOT_PLAYING = "not_playing"
    NOT_IN_VOICE = "not_in_voice"
    NO_PERMISSION = "no_permission"
    RESOLUTION_FAILED = "resolution_failed"
    CONNECT_FAILED = "connect_failed"
    STREAM_FAILED = "stream_failed"
    INVALID_ARGUMENT = "invalid_argument"
    ERROR = "error"


class Outcome(BaseModel):
    """What an intent did, for the reply layer to render."""

    status: OutcomeStatus
    track: TrackMetadata | None = None
    next_track: TrackMetadata | None = None
    tracks: list[TrackMetadata] = Field(default_factory=list)
    enabled: bool | None = None
    snapshot: QueueSnapshot | None = None
    detail: str = ""

    @property
    def is_success(self) -> bool:
        return self.status not in _FAILURES


_FAILURES = frozenset(
    {
        OutcomeStatus.NOT_PLAYING,
        OutcomeStatus.NOT_IN_VOICE,
        OutcomeStatus.NO_PERMISSION,
        OutcomeStatus.RESOLUTION_FAILED,
        OutcomeStatus.CONNECT_FAILED,
        OutcomeStatus.STREAM_FAILED,
        OutcomeStatus.INVALID_ARGUMENT,
        OutcomeStatus.ERROR,
    }
)

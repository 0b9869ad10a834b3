"""Turns intent outcomes into the text users see."""

from __future__ import annotations

from ..domain.music.entities import QueueSnapshot, TrackMetadata
from ..domain.shared.messages import ReplyMessages
from ..utils.reply import clamp_lines, format_duration, truncate
from .intents import Outcome, OutcomeStatus

_FIXED: dict[OutcomeStatus, str] = {
    OutcomeStatus.PLAYLIST_STARTED: ReplyMessages.PLAYLIST_STARTED,
    OutcomeStatus.PLAYLIST_EMPTY: ReplyMessages.PLAYLIST_EMPTY,
    OutcomeStatus.SKIPPED: ReplyMessages.SKIPPED,
    OutcomeStatus.STOPPED: ReplyMessages.STOPPED,
    OutcomeStatus.PAUSED: ReplyMessages.PAUSED,
    OutcomeStatus.RESUMED: ReplyMessages.RESUMED,
    OutcomeStatus.REPLAYED: ReplyMessages.REPLAYED,
    OutcomeStatus.NOTHING_TO_REPLAY: ReplyMessages.NOTHING_TO_REPLAY,
    OutcomeStatus.SHUFFLED: ReplyMessages.SHUFFLED,
    OutcomeStatus.NOTHING_TO_SHUFFLE: ReplyMessages.NOTHING_TO_SHUFFLE,
    OutcomeStatus.NOT_PLAYING: ReplyMessages.NOT_PLAYING,
    OutcomeStatus.NOT_IN_VOICE: ReplyMessages.NOT_IN_VOICE,
    OutcomeStatus.NO_PERMISSION: ReplyMessages.NO_PERMISSION,
    OutcomeStatus.RESOLUTION_FAILED: ReplyMessages.RESOLUTION_FAILED,
    OutcomeStatus.CONNECT_FAILED: ReplyMessages.CONNECT_FAILED,
    OutcomeStatus.STREAM_FAILED: ReplyMessages.STREAM_FAILED,
    OutcomeStatus.INVALID_ARGUMENT: ReplyMessages.INVALID_REMOVE,
    OutcomeStatus.ERROR: ReplyMessages.GENERIC_FAILURE,
}

# Nothing worth saying: the command message is simply cleaned up.
_SILENT = frozenset({OutcomeStatus.ADVANCED, OutcomeStatus.IGNORED, OutcomeStatus.SUPERSEDED})


def render_outcome(outcome: Outcome) -> str | None:
    """Return the reply text for ``outcome``, or None when no reply is due."""
    status = outcome.status
    if status in _SILENT:
        return None
    if status in _FIXED:
        return _FIXED[status]

    match status:
        case OutcomeStatus.QUEUED | OutcomeStatus.STARTED:
            return _queued_line(outcome.track)
        case OutcomeStatus.PLAYLIST_QUEUED:
            return ReplyMessages.PLAYLIST_QUEUED.format(count=len(outcome.tracks))
        case OutcomeStatus.SONG_LOOP_TOGGLED:
            return ReplyMessages.SONG_LOOP_ON if outcome.enabled else ReplyMessages.SONG_LOOP_OFF
        case OutcomeStatus.QUEUE_LOOP_TOGGLED:
            return ReplyMessages.QUEUE_LOOP_ON if outcome.enabled else ReplyMessages.QUEUE_LOOP_OFF
        case OutcomeStatus.REMOVED:
            lines = [ReplyMessages.REMOVED_HEADER.format(count=len(outcome.tracks))]
            lines.extend(_track_lines(outcome.tracks))
            return clamp_lines(lines)
        case OutcomeStatus.NOW_PLAYING:
            if outcome.track is None:
                return ReplyMessages.NOT_PLAYING
            return ReplyMessages.CURRENT_SONG.format(
                title=truncate(outcome.track.display_title), url=outcome.track.url
            )
        case OutcomeStatus.QUEUE_LISTED:
            return render_snapshot(outcome.snapshot)

    return ReplyMessages.GENERIC_FAILURE


def render_snapshot(snapshot: QueueSnapshot | None) -> str:
    if snapshot is None or (snapshot.current is None and not snapshot.upcoming):
        return ReplyMessages.QUEUE_EMPTY

    lines: list[str] = []
    if snapshot.current is not None:
        lines.append(ReplyMessages.QUEUE_CURRENT.format(title=truncate(snapshot.current.display_title)))

    modes = [name for name, on in (("song", snapshot.loop_song), ("queue", snapshot.loop_queue)) if on]
    if modes:
        lines.append(ReplyMessages.QUEUE_LOOPING.format(modes=", ".join(modes)))

    if snapshot.upcoming:
        lines.append(ReplyMessages.QUEUE_HEADER.format(count=len(snapshot.upcoming)))
        lines.extend(_track_lines(snapshot.upcoming))
    else:
        lines.append(ReplyMessages.QUEUE_EMPTY)

    total = snapshot.total_duration_seconds
    if total is not None:
        lines.append(ReplyMessages.QUEUE_TOTAL.format(duration=format_duration(total)))

    return clamp_lines(lines)


def _queued_line(track: TrackMetadata | None) -> str:
    if track is None:
        return ReplyMessages.GENERIC_FAILURE
    if track.title is None:
        return ReplyMessages.QUEUED_URL_ONLY.format(url=track.url)
    return ReplyMessages.QUEUED.format(title=truncate(track.title), url=track.url)


def _track_lines(tracks: list[TrackMetadata]) -> list[str]:
    return [
        ReplyMessages.TRACK_LINE.format(position=position, title=truncate(track.display_title), url=track.url)
        for position, track in enumerate(tracks, start=1)
    ]

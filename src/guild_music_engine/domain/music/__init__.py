"""
Music Bounded Context

Domain logic for tracks, the per-guild playback queue and removal arguments.
"""

from guild_music_engine.domain.music.entities import (
    Idle,
    PlaybackQueue,
    PlaybackStatus,
    Playing,
    QueueSnapshot,
    TrackMetadata,
)
from guild_music_engine.domain.music.value_objects import RemovalSpec

__all__ = [
    # Entities
    "TrackMetadata",
    "PlaybackQueue",
    "QueueSnapshot",
    # Status
    "Idle",
    "Playing",
    "PlaybackStatus",
    # Value Objects
    "RemovalSpec",
]

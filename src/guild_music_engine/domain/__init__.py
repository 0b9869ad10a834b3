# ruff: noqa: N999
"""
Domain Layer

Contains pure playback logic organized by bounded contexts:
- shared/: Constrained types, messages and exceptions
- music/: Track metadata, queue and removal arguments
"""

from guild_music_engine.domain.music import PlaybackQueue, TrackMetadata
from guild_music_engine.domain.shared.exceptions import DomainError

__all__ = [
    "TrackMetadata",
    "PlaybackQueue",
    "DomainError",
]

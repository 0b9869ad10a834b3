"""
Shared Domain Kernel

Contains constrained types, messages and exceptions shared across the engine.
"""

from guild_music_engine.domain.shared.exceptions import (
    ConnectFailedError,
    DomainError,
    InvalidRemovalSpecError,
    NoPermissionError,
    NotPlayingError,
    ResolutionFailedError,
    StreamFailedError,
)

__all__ = [
    "DomainError",
    "NotPlayingError",
    "NoPermissionError",
    "ResolutionFailedError",
    "ConnectFailedError",
    "StreamFailedError",
    "InvalidRemovalSpecError",
]

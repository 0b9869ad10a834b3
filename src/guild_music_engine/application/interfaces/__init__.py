"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from guild_music_engine.application.interfaces.collaborators import (
    ActivityDisplay,
    PermissionOracle,
    ReplySink,
)
from guild_music_engine.application.interfaces.metadata_provider import MetadataProvider
from guild_music_engine.application.interfaces.voice_adapter import StreamEndCallback, VoiceAdapter

__all__ = [
    "MetadataProvider",
    "VoiceAdapter",
    "StreamEndCallback",
    "ReplySink",
    "PermissionOracle",
    "ActivityDisplay",
]

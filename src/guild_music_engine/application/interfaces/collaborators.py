"""Port interfaces for the chat-side collaborators of the engine.

Implementations must never raise into the engine: a failed reply or presence
update is logged and forgotten.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ReplySink(ABC):
    """Sends user-facing text in response to a command context."""

    @abstractmethod
    async def reply(self, context: Any, text: str) -> None:
        ...

    @abstractmethod
    async def delete_now(self, context: Any) -> None:
        """Delete the command that triggered the reply."""
        ...

    @abstractmethod
    async def delete_after_delay(self, context: Any, delay: float) -> None:
        """Delete the bot's reply once ``delay`` seconds have passed."""
        ...


class PermissionOracle(ABC):
    """Decides whether a user's voice request may reach the engine."""

    @abstractmethod
    def can_connect_and_speak(self, user: Any, channel: Any) -> bool:
        ...


class ActivityDisplay(ABC):
    """The bot's presence line."""

    @abstractmethod
    async def set_default(self) -> None:
        ...

    @abstractmethod
    async def set_music_playing(self) -> None:
        ...

"""Dependency Injection Container

Builds the engine's object graph lazily: adapters, the per-guild registry and
the command dispatcher are created on first access and cached for the life of
the extension.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.dispatcher import CommandDispatcher
    from ..application.interfaces.collaborators import ActivityDisplay, PermissionOracle, ReplySink
    from ..application.interfaces.metadata_provider import MetadataProvider
    from ..application.interfaces.voice_adapter import VoiceAdapter
    from ..application.services.registry import GuildPlaybackRegistry
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. Tests can inject
    fakes by assigning the private slots before the first access.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _metadata_provider: MetadataProvider | None = None
    _voice_adapter: VoiceAdapter | None = None
    _reply_sink: ReplySink | None = None
    _permission_oracle: PermissionOracle | None = None
    _activity_display: ActivityDisplay | None = None

    # Application services
    _registry: GuildPlaybackRegistry | None = None
    _dispatcher: CommandDispatcher | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure Adapters ===

    @property
    def metadata_provider(self) -> MetadataProvider:
        if self._metadata_provider is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._metadata_provider = YtDlpResolver(self.settings.audio)
        return self._metadata_provider

    @property
    def voice_adapter(self) -> VoiceAdapter:
        if self._voice_adapter is None:
            from ..infrastructure.discord.voice_adapter import DiscordVoiceAdapter

            self._voice_adapter = DiscordVoiceAdapter(self.bot, self.settings.audio)
        return self._voice_adapter

    @property
    def reply_sink(self) -> ReplySink:
        if self._reply_sink is None:
            from ..infrastructure.discord.collaborators import DiscordReplySink

            self._reply_sink = DiscordReplySink()
        return self._reply_sink

    @property
    def permission_oracle(self) -> PermissionOracle:
        if self._permission_oracle is None:
            from ..infrastructure.discord.collaborators import DiscordPermissionOracle

            self._permission_oracle = DiscordPermissionOracle()
        return self._permission_oracle

    @property
    def activity_display(self) -> ActivityDisplay:
        if self._activity_display is None:
            from ..infrastructure.discord.collaborators import DiscordActivityDisplay

            self._activity_display = DiscordActivityDisplay(self.bot, self.settings.presence)
        return self._activity_display

    # === Application Services ===

    @property
    def registry(self) -> GuildPlaybackRegistry:
        """Get the per-guild playback registry."""
        if self._registry is None:
            from ..application.services.registry import GuildPlaybackRegistry

            playback = self.settings.playback
            self._registry = GuildPlaybackRegistry(
                voice_adapter=self.voice_adapter,
                metadata_provider=self.metadata_provider,
                activity_display=self.activity_display,
                history_size=playback.history_size,
                max_consecutive_failures=playback.max_consecutive_failures,
            )
        return self._registry

    @property
    def dispatcher(self) -> CommandDispatcher:
        """Get the command dispatcher."""
        if self._dispatcher is None:
            from ..application.dispatcher import CommandDispatcher

            self._dispatcher = CommandDispatcher(
                registry=self.registry,
                reply_sink=self.reply_sink,
                permission_oracle=self.permission_oracle,
                reply_delete_delay=self.settings.playback.reply_delete_delay_seconds,
            )
        return self._dispatcher


def create_container(settings: Settings | None = None) -> Container:
    """Create a new dependency container."""
    if settings is None:
        from .settings import get_settings

        settings = get_settings()

    return Container(settings=settings)

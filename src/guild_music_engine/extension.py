"""discord.py extension entry point.

Load with ``await bot.load_extension("guild_music_engine.extension")``. A host
bot that already carries a ``container`` attribute keeps it; otherwise one is
built from the environment settings.
"""

from __future__ import annotations

import logging

from discord.ext import commands

from guild_music_engine.config.container import Container, create_container
from guild_music_engine.config.settings import get_settings
from guild_music_engine.domain.shared.messages import LogTemplates
from guild_music_engine.infrastructure.discord.cogs.music_cog import MusicCog
from guild_music_engine.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if not isinstance(container, Container):
        settings = get_settings()
        setup_logging(settings.log_level)
        container = create_container(settings)
        bot.container = container  # type: ignore[attr-defined]

    container.set_bot(bot)
    await bot.add_cog(MusicCog(bot, container))
    logger.info(LogTemplates.EXTENSION_LOADED, container.settings.environment)

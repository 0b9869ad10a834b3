"""discord.py implementations of the reply, permission and presence ports."""

from __future__ import annotations

import logging

import discord

from guild_music_engine.application.interfaces.collaborators import (
    ActivityDisplay,
    PermissionOracle,
    ReplySink,
)
from guild_music_engine.config.settings import PresenceSettings
from guild_music_engine.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class DiscordReplySink(ReplySink):
    """Answers slash-command interactions.

    Cogs defer every interaction first, so replies normally edit the deferred
    response; an interaction that was never acknowledged gets a fresh message.
    """

    async def reply(self, context: discord.Interaction, text: str) -> None:
        try:
            if context.response.is_done():
                await context.edit_original_response(content=text)
            else:
                await context.response.send_message(text)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.REPLY_FAILED, e)

    async def delete_now(self, context: discord.Interaction) -> None:
        try:
            await context.delete_original_response()
        except discord.HTTPException as e:
            logger.debug(LogTemplates.DELETE_FAILED, e)

    async def delete_after_delay(self, context: discord.Interaction, delay: float) -> None:
        try:
            message = await context.original_response()
            await message.delete(delay=delay)
        except discord.HTTPException as e:
            logger.debug(LogTemplates.DELETE_FAILED, e)


class DiscordPermissionOracle(PermissionOracle):
    """The bot must be able to connect and speak; the requester must be able to connect."""

    def can_connect_and_speak(
        self,
        user: discord.Member,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> bool:
        me = channel.guild.me
        if me is None:
            return False

        bot_permissions = channel.permissions_for(me)
        if not (bot_permissions.connect and bot_permissions.speak):
            return False

        return channel.permissions_for(user).connect


class DiscordActivityDisplay(ActivityDisplay):
    """Sets the bot's "Listening to ..." presence."""

    def __init__(self, bot: discord.Client, settings: PresenceSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or PresenceSettings()

    async def set_default(self) -> None:
        await self._set(self._settings.default_text)

    async def set_music_playing(self) -> None:
        await self._set(self._settings.playing_text)

    async def _set(self, text: str) -> None:
        activity = discord.Activity(type=discord.ActivityType.listening, name=text)
        try:
            await self._bot.change_presence(activity=activity)
        except Exception as e:
            logger.warning(LogTemplates.ACTIVITY_UPDATE_FAILED, e)

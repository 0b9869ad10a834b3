"""Tests for the discord.py reply, permission and presence adapters."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from guild_music_engine.config.settings import PresenceSettings
from guild_music_engine.infrastructure.discord.collaborators import (
    DiscordActivityDisplay,
    DiscordPermissionOracle,
    DiscordReplySink,
)


def http_error() -> discord.HTTPException:
    response = MagicMock()
    response.status = 404
    response.reason = "Not Found"
    return discord.HTTPException(response, "Unknown Message")


@pytest.fixture
def interaction():
    mock = MagicMock(spec=discord.Interaction)
    mock.response = MagicMock()
    mock.response.is_done.return_value = True
    mock.response.send_message = AsyncMock()
    mock.edit_original_response = AsyncMock()
    mock.delete_original_response = AsyncMock()
    mock.original_response = AsyncMock()
    return mock


class TestDiscordReplySink:
    """Tests for interaction replies."""

    @pytest.mark.asyncio
    async def test_reply_edits_deferred_response(self, interaction):
        """Should edit the deferred response."""
        await DiscordReplySink().reply(interaction, "hello")
        interaction.edit_original_response.assert_awaited_once_with(content="hello")

    @pytest.mark.asyncio
    async def test_reply_sends_when_not_acknowledged(self, interaction):
        """Should send a fresh message for an unacknowledged interaction."""
        interaction.response.is_done.return_value = False
        await DiscordReplySink().reply(interaction, "hello")
        interaction.response.send_message.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_reply_http_error_swallowed(self, interaction):
        """Should log instead of raising when Discord rejects the reply."""
        interaction.edit_original_response.side_effect = http_error()
        await DiscordReplySink().reply(interaction, "hello")

    @pytest.mark.asyncio
    async def test_delete_now(self, interaction):
        """Should delete the original response."""
        await DiscordReplySink().delete_now(interaction)
        interaction.delete_original_response.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_after_delay(self, interaction):
        """Should schedule deletion of the reply message."""
        message = MagicMock()
        message.delete = AsyncMock()
        interaction.original_response.return_value = message

        await DiscordReplySink().delete_after_delay(interaction, 30.0)

        message.delete.assert_awaited_once_with(delay=30.0)

    @pytest.mark.asyncio
    async def test_delete_http_error_swallowed(self, interaction):
        """Should ignore messages that are already gone."""
        interaction.delete_original_response.side_effect = http_error()
        await DiscordReplySink().delete_now(interaction)


class TestDiscordPermissionOracle:
    """Tests for voice permission checks."""

    def channel_with(self, bot_connect=True, bot_speak=True, user_connect=True):
        channel = MagicMock(spec=discord.VoiceChannel)
        me = MagicMock()
        channel.guild = MagicMock()
        channel.guild.me = me

        def permissions_for(target):
            perms = MagicMock()
            if target is me:
                perms.connect, perms.speak = bot_connect, bot_speak
            else:
                perms.connect = user_connect
            return perms

        channel.permissions_for.side_effect = permissions_for
        return channel

    def test_allowed(self):
        """Should allow when the bot can connect and speak and the user can connect."""
        assert DiscordPermissionOracle().can_connect_and_speak(MagicMock(), self.channel_with())

    @pytest.mark.parametrize(
        "flags",
        [
            {"bot_connect": False},
            {"bot_speak": False},
            {"user_connect": False},
        ],
    )
    def test_denied(self, flags):
        """Should deny when any required permission is missing."""
        assert not DiscordPermissionOracle().can_connect_and_speak(MagicMock(), self.channel_with(**flags))

    def test_bot_not_in_guild(self):
        """Should deny when the bot's member is unknown."""
        channel = self.channel_with()
        channel.guild.me = None
        assert not DiscordPermissionOracle().can_connect_and_speak(MagicMock(), channel)


class TestDiscordActivityDisplay:
    """Tests for presence updates."""

    @pytest.mark.asyncio
    async def test_texts_from_settings(self):
        """Should show the configured texts as a listening activity."""
        bot = MagicMock()
        bot.change_presence = AsyncMock()
        display = DiscordActivityDisplay(bot, PresenceSettings(default_text="/help", playing_text="tunes"))

        await display.set_music_playing()
        activity = bot.change_presence.await_args.kwargs["activity"]
        assert activity.type == discord.ActivityType.listening
        assert activity.name == "tunes"

        await display.set_default()
        assert bot.change_presence.await_args.kwargs["activity"].name == "/help"

    @pytest.mark.asyncio
    async def test_failure_swallowed(self):
        """Should log instead of raising when the gateway rejects the update."""
        bot = MagicMock()
        bot.change_presence = AsyncMock(side_effect=RuntimeError("not connected"))
        await DiscordActivityDisplay(bot).set_default()

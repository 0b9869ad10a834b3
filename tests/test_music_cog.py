"""
Unit Tests for MusicCog and the extension entry point

Tests for:
- Building a CommandContext from an interaction
- Mapping each slash command to its intent
- Guild-only enforcement
- Voice state updates turning into listener events
- Extension setup and unload
"""

from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from conftest import CHANNEL_ID, GUILD_ID
from guild_music_engine.application.intents import (
    ListenersChanged,
    LoopQueue,
    LoopSong,
    NowPlaying,
    Pause,
    QueuePlaylist,
    QueueTrack,
    Remove,
    Replay,
    Resume,
    ShowQueue,
    Shuffle,
    Skip,
    Stop,
)
from guild_music_engine.config.container import Container
from guild_music_engine.config.settings import Settings
from guild_music_engine.domain.shared.messages import ReplyMessages
from guild_music_engine.extension import setup
from guild_music_engine.infrastructure.discord.cogs.music_cog import MusicCog, build_context

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_bot():
    """Create a mock Discord bot."""
    bot = MagicMock()
    bot.add_cog = AsyncMock()
    return bot


@pytest.fixture
def mock_container():
    """Container whose dispatcher and registry are mocks."""
    container = MagicMock()
    container.dispatcher.handle = AsyncMock()
    container.registry.dispatch = AsyncMock()
    container.registry.shutdown = AsyncMock()
    container.registry.__len__.return_value = 2
    return container


@pytest.fixture
def cog(mock_bot, mock_container):
    return MusicCog(mock_bot, mock_container)


@pytest.fixture
def mock_member():
    """A member sitting in a voice channel."""
    member = MagicMock(spec=discord.Member)
    member.id = 333333333
    member.name = "testuser"
    member.display_name = "TestUser"
    member.bot = False
    member.voice = MagicMock()
    member.voice.channel = MagicMock()
    member.voice.channel.id = CHANNEL_ID
    return member


@pytest.fixture
def mock_interaction(mock_member):
    """Create a mock Discord Interaction from a guild member."""
    interaction = MagicMock(spec=discord.Interaction)
    interaction.response = MagicMock()
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.guild = MagicMock()
    interaction.guild.id = GUILD_ID
    interaction.user = mock_member
    return interaction


def sent_intent(container):
    context, intent = container.dispatcher.handle.await_args.args
    return intent


# =============================================================================
# build_context
# =============================================================================


class TestBuildContext:
    """Tests for turning interactions into command contexts."""

    def test_member_in_voice(self, mock_interaction, mock_member):
        """Should capture guild, requester and voice channel."""
        context = build_context(mock_interaction)

        assert context.guild_id == GUILD_ID
        assert context.requester is mock_member
        assert context.requester_name == "TestUser"
        assert context.reply_target is mock_interaction
        assert context.voice_channel is mock_member.voice.channel
        assert context.voice_channel_id == CHANNEL_ID

    def test_member_not_in_voice(self, mock_interaction, mock_member):
        """Should leave the voice channel empty."""
        mock_member.voice = None
        context = build_context(mock_interaction)

        assert context.voice_channel is None
        assert context.voice_channel_id is None

    def test_direct_message(self, mock_interaction):
        """Should return None outside a guild."""
        mock_interaction.guild = None
        assert build_context(mock_interaction) is None


# =============================================================================
# Commands
# =============================================================================


class TestCommands:
    """Tests for slash command to intent mapping."""

    @pytest.mark.asyncio
    async def test_play(self, cog, mock_interaction, mock_container):
        """/play should defer and queue the query."""
        await cog.play.callback(cog, mock_interaction, "never gonna give you up")

        mock_interaction.response.defer.assert_awaited_once()
        intent = sent_intent(mock_container)
        assert isinstance(intent, QueueTrack)
        assert intent.query == "never gonna give you up"

    @pytest.mark.asyncio
    async def test_playlist(self, cog, mock_interaction, mock_container):
        """/playlist should queue the playlist id."""
        await cog.playlist.callback(cog, mock_interaction, "PL123")

        intent = sent_intent(mock_container)
        assert isinstance(intent, QueuePlaylist)
        assert intent.playlist_id == "PL123"

    @pytest.mark.asyncio
    async def test_remove(self, cog, mock_interaction, mock_container):
        """/remove should pass the raw position through."""
        await cog.remove.callback(cog, mock_interaction, "2-4")

        intent = sent_intent(mock_container)
        assert isinstance(intent, Remove)
        assert intent.spec == "2-4"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "command, intent_type",
        [
            ("replay", Replay),
            ("skip", Skip),
            ("stop", Stop),
            ("pause", Pause),
            ("resume", Resume),
            ("loopsong", LoopSong),
            ("loopqueue", LoopQueue),
            ("shuffle", Shuffle),
            ("nowplaying", NowPlaying),
            ("queue", ShowQueue),
        ],
    )
    async def test_argument_free_commands(self, cog, mock_interaction, mock_container, command, intent_type):
        """Commands without arguments map onto their intents."""
        await getattr(cog, command).callback(cog, mock_interaction)

        context = mock_container.dispatcher.handle.await_args.args[0]
        assert context.guild_id == GUILD_ID
        assert isinstance(sent_intent(mock_container), intent_type)

    @pytest.mark.asyncio
    async def test_outside_guild(self, cog, mock_interaction, mock_container):
        """Commands in DMs get an ephemeral refusal."""
        mock_interaction.guild = None

        await cog.skip.callback(cog, mock_interaction)

        mock_interaction.response.send_message.assert_awaited_once_with(ReplyMessages.SERVER_ONLY, ephemeral=True)
        mock_container.dispatcher.handle.assert_not_awaited()


# =============================================================================
# Voice events
# =============================================================================


class TestVoiceStateUpdate:
    """Tests for turning voice state changes into listener events."""

    @pytest.fixture
    def bound_registry(self, mock_container):
        orchestrator = MagicMock()
        orchestrator.session.channel_id = CHANNEL_ID
        mock_container.registry.get.return_value = orchestrator
        return mock_container.registry

    def voice_state(self, channel_id):
        state = MagicMock(spec=discord.VoiceState)
        if channel_id is None:
            state.channel = None
        else:
            state.channel = MagicMock()
            state.channel.id = channel_id
        return state

    @pytest.mark.asyncio
    async def test_member_leaves_bound_channel(self, cog, mock_member, bound_registry):
        """Leaving the bot's channel dispatches ListenersChanged."""
        mock_member.guild = MagicMock()
        mock_member.guild.id = GUILD_ID

        await cog.on_voice_state_update(mock_member, self.voice_state(CHANNEL_ID), self.voice_state(None))

        guild_id, intent = bound_registry.dispatch.await_args.args
        assert guild_id == GUILD_ID
        assert isinstance(intent, ListenersChanged)

    @pytest.mark.asyncio
    async def test_member_moves_within_channel(self, cog, mock_member, bound_registry):
        """Mute or deafen changes inside the channel are ignored."""
        mock_member.guild = MagicMock()
        mock_member.guild.id = GUILD_ID

        await cog.on_voice_state_update(mock_member, self.voice_state(CHANNEL_ID), self.voice_state(CHANNEL_ID))

        bound_registry.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_channel_ignored(self, cog, mock_member, bound_registry):
        """Leaving some other channel is ignored."""
        mock_member.guild = MagicMock()
        mock_member.guild.id = GUILD_ID

        await cog.on_voice_state_update(mock_member, self.voice_state(999), self.voice_state(None))

        bound_registry.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bots_ignored(self, cog, mock_member, bound_registry):
        """Bot members never trigger listener checks."""
        mock_member.bot = True
        await cog.on_voice_state_update(mock_member, self.voice_state(CHANNEL_ID), self.voice_state(None))
        bound_registry.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_context(self, cog, mock_member, mock_container):
        """Guilds without a playback context are ignored."""
        mock_member.guild = MagicMock()
        mock_member.guild.id = GUILD_ID
        mock_container.registry.get.return_value = None

        await cog.on_voice_state_update(mock_member, self.voice_state(CHANNEL_ID), self.voice_state(None))

        mock_container.registry.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatch_failure_logged(self, cog, mock_member, bound_registry, caplog):
        """Errors while handling the event are logged, not raised."""
        mock_member.guild = MagicMock()
        mock_member.guild.id = GUILD_ID
        bound_registry.dispatch.side_effect = RuntimeError("boom")

        await cog.on_voice_state_update(mock_member, self.voice_state(CHANNEL_ID), self.voice_state(None))

        assert any("Failed to handle voice state update" in r.message for r in caplog.records)


# =============================================================================
# Extension lifecycle
# =============================================================================


class TestExtension:
    """Tests for loading and unloading the extension."""

    @pytest.mark.asyncio
    async def test_cog_unload_shuts_down_registry(self, cog, mock_container):
        """Unloading stops every session."""
        await cog.cog_unload()
        mock_container.registry.shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_setup_uses_existing_container(self, mock_bot):
        """A host bot's own container is reused."""
        container = Container(settings=Settings(environment="test"))
        mock_bot.container = container

        await setup(mock_bot)

        assert container.bot is mock_bot
        cog = mock_bot.add_cog.await_args.args[0]
        assert isinstance(cog, MusicCog)
        assert cog.container is container

    @pytest.mark.asyncio
    async def test_setup_builds_container(self, mock_bot):
        """Without a container one is built from settings and logging is configured."""
        settings = Settings(environment="test", log_level="WARNING")
        with (
            patch("guild_music_engine.extension.get_settings", return_value=settings),
            patch("guild_music_engine.extension.setup_logging") as setup_logging,
        ):
            await setup(mock_bot)

        setup_logging.assert_called_once_with("WARNING")
        assert isinstance(mock_bot.container, Container)
        assert mock_bot.container.settings is settings
        mock_bot.add_cog.assert_awaited_once()

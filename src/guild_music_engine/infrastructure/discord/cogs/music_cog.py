"""Slash-command cog that maps music commands onto playback intents."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from guild_music_engine.application.dispatcher import CommandContext
from guild_music_engine.application.intents import (
    BaseIntent,
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
from guild_music_engine.domain.shared.messages import LogTemplates, ReplyMessages

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


def build_context(interaction: discord.Interaction) -> CommandContext | None:
    """Describe who sent ``interaction`` and which voice channel they are in."""
    guild = interaction.guild
    if guild is None:
        return None

    user = interaction.user
    channel = None
    if isinstance(user, discord.Member) and user.voice and user.voice.channel:
        channel = user.voice.channel

    return CommandContext(
        guild_id=guild.id,
        requester=user,
        requester_name=getattr(user, "display_name", user.name),
        reply_target=interaction,
        voice_channel=channel,
        voice_channel_id=channel.id if channel else None,
    )


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_unload(self) -> None:
        registry = self.container.registry
        count = len(registry)
        await registry.shutdown()
        logger.info(LogTemplates.EXTENSION_UNLOADED, count)

    async def _run(self, interaction: discord.Interaction, intent: BaseIntent) -> None:
        context = build_context(interaction)
        if context is None:
            await interaction.response.send_message(ReplyMessages.SERVER_ONLY, ephemeral=True)
            return

        await interaction.response.defer()
        await self.container.dispatcher.handle(context, intent)

    # ─────────────────────────────────────────────────────────────────
    # Queueing
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play a song by URL or search query.")
    @app_commands.describe(query="YouTube URL or search query")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        await self._run(interaction, QueueTrack(query=query))

    @app_commands.command(name="playlist", description="Queue every song of a YouTube playlist.")
    @app_commands.describe(playlist="Playlist id or URL")
    async def playlist(self, interaction: discord.Interaction, playlist: str) -> None:
        await self._run(interaction, QueuePlaylist(playlist_id=playlist))

    @app_commands.command(name="replay", description="Play the last finished song again.")
    async def replay(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, Replay())

    @app_commands.command(name="remove", description="Remove a song or a range of songs from the queue.")
    @app_commands.describe(position='Queue position like "3" or range like "2-4"')
    async def remove(self, interaction: discord.Interaction, position: str) -> None:
        await self._run(interaction, Remove(spec=position))

    # ─────────────────────────────────────────────────────────────────
    # Playback Controls
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="skip", description="Skip the current song.")
    async def skip(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, Skip())

    @app_commands.command(name="stop", description="Stop playback and leave the voice channel.")
    async def stop(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, Stop())

    @app_commands.command(name="pause", description="Pause the current song.")
    async def pause(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, Pause())

    @app_commands.command(name="resume", description="Resume paused playback.")
    async def resume(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, Resume())

    @app_commands.command(name="loopsong", description="Toggle looping of the current song.")
    async def loopsong(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, LoopSong())

    @app_commands.command(name="loopqueue", description="Toggle looping of the whole queue.")
    async def loopqueue(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, LoopQueue())

    @app_commands.command(name="shuffle", description="Shuffle the upcoming songs.")
    async def shuffle(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, Shuffle())

    # ─────────────────────────────────────────────────────────────────
    # Info
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="nowplaying", description="Show the current song.")
    async def nowplaying(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, NowPlaying())

    @app_commands.command(name="queue", description="Show the upcoming songs.")
    async def queue(self, interaction: discord.Interaction) -> None:
        await self._run(interaction, ShowQueue())

    # ─────────────────────────────────────────────────────────────────
    # Voice Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        if member.bot:
            return

        guild_id = member.guild.id
        orchestrator = self.container.registry.get(guild_id)
        if orchestrator is None:
            return

        bound = orchestrator.session.channel_id
        left = before.channel is not None and before.channel.id == bound
        stayed = after.channel is not None and after.channel.id == bound
        if not left or stayed:
            return

        try:
            await self.container.registry.dispatch(guild_id, ListenersChanged())
        except Exception:
            logger.exception(LogTemplates.LISTENER_UPDATE_FAILED, guild_id)

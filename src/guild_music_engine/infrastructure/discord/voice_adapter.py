"""Discord voice adapter implementing VoiceAdapter for connection and playback."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from guild_music_engine.application.interfaces.voice_adapter import StreamEndCallback, VoiceAdapter
from guild_music_engine.config.settings import AudioSettings
from guild_music_engine.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import TrackMetadata

logger = logging.getLogger(__name__)


class DiscordVoiceAdapter(VoiceAdapter):
    """Voice connections and FFmpeg playback through discord.py.

    discord.py runs the player on its own thread and calls ``after`` there;
    the end signal is handed back to the bot's event loop together with the
    generation it was started with.
    """

    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._volume = self._settings.default_volume
        self._ffmpeg_options = self._settings.ffmpeg_options
        self._connect_timeout = self._settings.connect_timeout_seconds
        self._on_stream_end: StreamEndCallback | None = None

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    def _get_voice_channel(
        self, guild_id: int, channel_id: int
    ) -> tuple[discord.Guild, discord.VoiceChannel | discord.StageChannel] | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            return None

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            return None

        return guild, channel

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        found = self._get_voice_channel(guild_id, channel_id)
        if found is None:
            return False
        guild, channel = found

        try:
            async with asyncio.timeout(self._connect_timeout):
                await channel.connect(self_deaf=True)
            logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
            return True
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            return False
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False
        except Exception:
            logger.exception(LogTemplates.VOICE_CONNECT_FAILED, channel_id)
            return False

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except Exception as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    async def disconnect(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return True

        try:
            await vc.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
            return True
        except Exception:
            logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, guild_id)
            return False

    async def ensure_connected(self, guild_id: int, channel_id: int) -> bool:
        """Connect if not connected, move if in a different channel."""
        vc = self._get_voice_client(guild_id)

        if vc and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await self.disconnect(guild_id)
            vc = None

        if vc and vc.channel:
            if vc.channel.id == channel_id:
                return True
            return await self.move_to(guild_id, channel_id)

        return await self.connect(guild_id, channel_id)

    async def move_to(self, guild_id: int, channel_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return await self.connect(guild_id, channel_id)

        found = self._get_voice_channel(guild_id, channel_id)
        if found is None:
            return False
        guild, channel = found

        try:
            async with asyncio.timeout(self._connect_timeout):
                await vc.move_to(channel)
            await self._ensure_self_deaf(guild, channel)
            logger.info(LogTemplates.VOICE_MOVED, channel.name)
            return True
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            return False
        except Exception:
            logger.exception(LogTemplates.VOICE_CONNECT_FAILED, channel_id)
            return False

    async def play(self, guild_id: int, track: TrackMetadata, *, generation: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            return False

        if not track.stream_url:
            logger.error(LogTemplates.YTDLP_NO_STREAM_URL, track.display_title)
            return False

        if vc.is_playing() or vc.is_paused():
            vc.stop()

        try:
            source = discord.FFmpegPCMAudio(
                track.stream_url,
                before_options=self._ffmpeg_options.get("before_options", ""),
                options=self._ffmpeg_options.get("options", ""),
            )
            volume_source = discord.PCMVolumeTransformer(source, volume=self._volume)

            def after_callback(error: Exception | None = None) -> None:
                if error:
                    logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, error)
                asyncio.run_coroutine_threadsafe(
                    self._handle_stream_end(guild_id, generation, error),
                    self._bot.loop,
                )

            vc.play(volume_source, after=after_callback)
            logger.debug(LogTemplates.VOICE_STREAM_STARTED, track.display_title, guild_id, generation)
            return True
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False
        except Exception as e:
            logger.error(LogTemplates.VOICE_STREAM_FAILED, guild_id, e)
            return False

    async def stop(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if vc and (vc.is_playing() or vc.is_paused()):
            vc.stop()
        return True

    async def pause(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False
        if vc.is_paused():
            return True
        if not vc.is_playing():
            return False
        vc.pause()
        return True

    async def resume(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False
        if vc.is_playing():
            return True
        if not vc.is_paused():
            return False
        vc.resume()
        return True

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    async def get_listeners(self, guild_id: int) -> list[int]:
        """Return IDs of the non-bot members in the bot's voice channel."""
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.channel:
            return []
        return [member.id for member in vc.channel.members if not member.bot]

    def get_current_channel_id(self, guild_id: int) -> int | None:
        vc = self._get_voice_client(guild_id)
        if vc and vc.channel:
            return vc.channel.id
        return None

    def set_on_stream_end_callback(self, callback: StreamEndCallback) -> None:
        self._on_stream_end = callback

    async def _handle_stream_end(self, guild_id: int, generation: int, error: Exception | None) -> None:
        """Runs on the bot loop after the player thread reported the end of a stream."""
        if self._on_stream_end is None:
            logger.warning(LogTemplates.VOICE_NO_STREAM_END_CALLBACK, guild_id)
            return

        try:
            await self._on_stream_end(guild_id, generation, error)
        except Exception:
            logger.exception(LogTemplates.VOICE_STREAM_END_CALLBACK_FAILED, guild_id, generation)

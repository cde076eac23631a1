"""Discord voice gateway: joins channels and plays streams through FFmpeg."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import discord

from discord_jukebox.application.interfaces.stream_provider import AudioStream
from discord_jukebox.application.interfaces.voice import (
    PlayerSession,
    TrackEndCallback,
    VoiceGateway,
    VoiceSession,
)
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import PlayerRuntimeError, VoiceConnectionError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)


def _header_option(headers: dict[str, str]) -> str:
    if not headers:
        return ""
    joined = "".join(f"{key}: {value}\r\n" for key, value in headers.items())
    return f' -headers "{joined}"'


class DiscordPlayerSession(PlayerSession):
    """Plays one FFmpeg source at a time on a connected VoiceClient."""

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        *,
        guild_id: int,
        loop: asyncio.AbstractEventLoop,
        settings: AudioSettings,
    ) -> None:
        self._vc = voice_client
        self._guild_id = guild_id
        self._loop = loop
        self._volume = settings.default_volume
        self._ffmpeg_options = settings.ffmpeg_options

    def _build_source(self, stream: AudioStream) -> discord.AudioSource:
        before_opts = self._ffmpeg_options.get("before_options", "") + _header_option(
            stream.http_headers
        )
        opts = self._ffmpeg_options.get("options", "")

        if stream.is_opus and self._volume == 1.0:
            return discord.FFmpegOpusAudio(
                stream.stream_url, codec="copy", before_options=before_opts, options=opts
            )
        source = discord.FFmpegPCMAudio(
            stream.stream_url, before_options=before_opts, options=opts
        )
        return discord.PCMVolumeTransformer(source, volume=self._volume)

    async def _dispatch_end(self, on_end: TrackEndCallback, error: Exception | None) -> None:
        try:
            await on_end(error)
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_END_CALLBACK_ERROR, self._guild_id)

    def play(self, stream: AudioStream, on_end: TrackEndCallback) -> None:
        if not self._vc.is_connected():
            raise PlayerRuntimeError(ErrorMessages.PLAYER_NOT_CONNECTED)

        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

        def after_callback(error: Exception | None = None) -> None:
            asyncio.run_coroutine_threadsafe(self._dispatch_end(on_end, error), self._loop)

        try:
            self._vc.play(self._build_source(stream), after=after_callback)
        except (discord.ClientException, OSError) as e:
            raise PlayerRuntimeError(ErrorMessages.PLAYER_START_FAILED.format(error=e)) from e

    def stop(self) -> None:
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

    def pause(self) -> None:
        if self._vc.is_playing():
            self._vc.pause()

    def resume(self) -> None:
        if self._vc.is_paused():
            self._vc.resume()


class DiscordVoiceSession(VoiceSession):
    def __init__(
        self,
        voice_client: discord.VoiceClient,
        *,
        guild_id: int,
        loop: asyncio.AbstractEventLoop,
        settings: AudioSettings,
    ) -> None:
        self._vc = voice_client
        self._guild_id = guild_id
        self._loop = loop
        self._settings = settings

    @property
    def channel_id(self) -> int | None:
        channel = self._vc.channel
        return channel.id if channel is not None else None

    def is_connected(self) -> bool:
        # The bot member's voice state is updated before voice events are
        # dispatched; the voice client may lag behind a forced disconnect.
        if not self._vc.is_connected():
            return False
        me = self._vc.guild.me
        return me is not None and me.voice is not None and me.voice.channel is not None

    def create_player(self) -> PlayerSession:
        return DiscordPlayerSession(
            self._vc, guild_id=self._guild_id, loop=self._loop, settings=self._settings
        )

    async def disconnect(self) -> None:
        try:
            await self._vc.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, self._guild_id)
        except Exception:
            logger.exception(LogTemplates.VOICE_DISCONNECT_ERROR, self._guild_id)


class DiscordVoiceGateway(VoiceGateway):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()

    async def connect(self, guild_id: int, channel_id: int) -> VoiceSession:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            raise VoiceConnectionError(channel_id, f"Guild {guild_id} not found")

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise VoiceConnectionError(channel_id, f"Channel {channel_id} is not a voice channel")

        stale: Any = guild.voice_client
        if stale is not None:
            await stale.disconnect(force=True)

        try:
            async with asyncio.timeout(self._settings.voice_connect_timeout_s):
                vc = await channel.connect(self_deaf=True)
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise VoiceConnectionError(channel_id) from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise VoiceConnectionError(channel_id) from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            raise VoiceConnectionError(channel_id) from e

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild_id)
        return DiscordVoiceSession(
            vc, guild_id=guild_id, loop=asyncio.get_running_loop(), settings=self._settings
        )

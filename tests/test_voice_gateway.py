"""Tests for the discord.py voice gateway, voice session and player session."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from discord_jukebox.application.interfaces.stream_provider import AudioStream
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import PlayerRuntimeError, VoiceConnectionError
from discord_jukebox.infrastructure.discord import voice_gateway as vg

OPUS_STREAM = AudioStream(stream_url="https://rr1.googlevideo.com/a", codec="opus")
AAC_STREAM = AudioStream(
    stream_url="https://rr1.googlevideo.com/b", codec="mp4a.40.2", http_headers={"Referer": "x"}
)


class FakeVoiceChannel:
    def __init__(self) -> None:
        self.name = "voice"
        self.connect = AsyncMock()


class FakeStageChannel:
    pass


@pytest.fixture
def fake_channels(monkeypatch):
    monkeypatch.setattr(vg.discord, "VoiceChannel", FakeVoiceChannel)
    monkeypatch.setattr(vg.discord, "StageChannel", FakeStageChannel)


@pytest.fixture
def voice_client():
    vc = MagicMock()
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.disconnect = AsyncMock()
    return vc


@pytest.fixture
def ffmpeg():
    with (
        patch.object(vg.discord, "FFmpegOpusAudio") as opus,
        patch.object(vg.discord, "FFmpegPCMAudio") as pcm,
        patch.object(vg.discord, "PCMVolumeTransformer") as volume,
    ):
        yield opus, pcm, volume


def _player(voice_client, **audio) -> vg.DiscordPlayerSession:
    return vg.DiscordPlayerSession(
        voice_client,
        guild_id=1,
        loop=asyncio.get_running_loop(),
        settings=AudioSettings(**audio),
    )


class TestDiscordVoiceGateway:
    """Tests for joining voice channels."""

    async def test_connect_joins_self_deafened(self, fake_channels):
        channel = FakeVoiceChannel()
        guild = MagicMock()
        guild.get_channel.return_value = channel
        guild.voice_client = None
        bot = MagicMock()
        bot.get_guild.return_value = guild

        session = await vg.DiscordVoiceGateway(bot).connect(123, 456)

        assert isinstance(session, vg.DiscordVoiceSession)
        assert channel.connect.await_args.kwargs.get("self_deaf") is True

    async def test_unknown_guild(self):
        bot = MagicMock()
        bot.get_guild.return_value = None

        with pytest.raises(VoiceConnectionError):
            await vg.DiscordVoiceGateway(bot).connect(123, 456)

    async def test_not_a_voice_channel(self, fake_channels):
        guild = MagicMock()
        guild.get_channel.return_value = object()
        bot = MagicMock()
        bot.get_guild.return_value = guild

        with pytest.raises(VoiceConnectionError):
            await vg.DiscordVoiceGateway(bot).connect(123, 456)

    async def test_stale_voice_client_is_dropped(self, fake_channels):
        stale = MagicMock()
        stale.disconnect = AsyncMock()
        guild = MagicMock()
        guild.get_channel.return_value = FakeVoiceChannel()
        guild.voice_client = stale
        bot = MagicMock()
        bot.get_guild.return_value = guild

        await vg.DiscordVoiceGateway(bot).connect(123, 456)

        stale.disconnect.assert_awaited_once_with(force=True)

    @pytest.mark.parametrize(
        "error",
        [
            TimeoutError(),
            discord.ClientException("Already connected"),
            discord.Forbidden(MagicMock(status=403), "Missing Permissions"),
        ],
    )
    async def test_connect_errors_are_mapped(self, fake_channels, error):
        channel = FakeVoiceChannel()
        channel.connect.side_effect = error
        guild = MagicMock()
        guild.get_channel.return_value = channel
        guild.voice_client = None
        bot = MagicMock()
        bot.get_guild.return_value = guild

        with pytest.raises(VoiceConnectionError):
            await vg.DiscordVoiceGateway(bot).connect(123, 456)


class TestDiscordVoiceSession:
    async def test_disconnect(self, voice_client):
        session = vg.DiscordVoiceSession(
            voice_client, guild_id=1, loop=asyncio.get_running_loop(), settings=AudioSettings()
        )

        await session.disconnect()

        voice_client.disconnect.assert_awaited_once_with(force=True)

    async def test_disconnect_errors_are_logged_not_raised(self, voice_client):
        voice_client.disconnect.side_effect = RuntimeError("socket closed")
        session = vg.DiscordVoiceSession(
            voice_client, guild_id=1, loop=asyncio.get_running_loop(), settings=AudioSettings()
        )

        await session.disconnect()

    async def test_create_player(self, voice_client):
        session = vg.DiscordVoiceSession(
            voice_client, guild_id=1, loop=asyncio.get_running_loop(), settings=AudioSettings()
        )

        assert isinstance(session.create_player(), vg.DiscordPlayerSession)

    async def test_connected_while_bot_member_in_voice(self, voice_client):
        voice_client.channel.id = 456
        session = vg.DiscordVoiceSession(
            voice_client, guild_id=1, loop=asyncio.get_running_loop(), settings=AudioSettings()
        )

        assert session.is_connected() is True
        assert session.channel_id == 456

    async def test_not_connected_once_bot_member_left_voice(self, voice_client):
        """The member state flips before the voice client notices a forced disconnect."""
        voice_client.guild.me.voice = None
        session = vg.DiscordVoiceSession(
            voice_client, guild_id=1, loop=asyncio.get_running_loop(), settings=AudioSettings()
        )

        assert session.is_connected() is False

    async def test_not_connected_when_voice_client_closed(self, voice_client):
        voice_client.is_connected.return_value = False
        session = vg.DiscordVoiceSession(
            voice_client, guild_id=1, loop=asyncio.get_running_loop(), settings=AudioSettings()
        )

        assert session.is_connected() is False


class TestDiscordPlayerSession:
    """Tests for FFmpeg source selection and end callbacks."""

    async def test_opus_passthrough_at_full_volume(self, voice_client, ffmpeg):
        opus, pcm, _ = ffmpeg

        _player(voice_client, default_volume=1.0).play(OPUS_STREAM, AsyncMock())

        assert opus.call_args.kwargs["codec"] == "copy"
        pcm.assert_not_called()

    async def test_pcm_with_volume_otherwise(self, voice_client, ffmpeg):
        opus, pcm, volume = ffmpeg

        _player(voice_client, default_volume=0.5).play(AAC_STREAM, AsyncMock())

        opus.assert_not_called()
        assert "-headers" in pcm.call_args.kwargs["before_options"]
        assert volume.call_args.kwargs["volume"] == 0.5

    async def test_play_requires_connection(self, voice_client, ffmpeg):
        voice_client.is_connected.return_value = False

        with pytest.raises(PlayerRuntimeError):
            _player(voice_client).play(OPUS_STREAM, AsyncMock())

    async def test_client_exception_becomes_player_error(self, voice_client, ffmpeg):
        voice_client.play.side_effect = discord.ClientException("Already playing audio.")

        with pytest.raises(PlayerRuntimeError):
            _player(voice_client).play(OPUS_STREAM, AsyncMock())

    async def test_after_callback_reaches_event_loop(self, voice_client, ffmpeg):
        received = asyncio.Event()
        errors = []

        async def on_end(error):
            errors.append(error)
            received.set()

        _player(voice_client).play(OPUS_STREAM, on_end)
        after = voice_client.play.call_args.kwargs["after"]

        # discord.py calls this from its audio thread.
        await asyncio.to_thread(after, None)
        await asyncio.wait_for(received.wait(), timeout=1)

        assert errors == [None]

    async def test_stop_pause_resume_respect_state(self, voice_client):
        player = _player(voice_client)

        player.stop()
        player.resume()
        voice_client.stop.assert_not_called()
        voice_client.resume.assert_not_called()

        voice_client.is_playing.return_value = True
        player.pause()
        player.stop()
        voice_client.pause.assert_called_once()
        voice_client.stop.assert_called_once()

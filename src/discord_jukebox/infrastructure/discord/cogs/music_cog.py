"""Slash-command cog for the music queue: play, skip, stop, queue, pause, resume, help."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from discord_jukebox.domain.shared.events import NowPlaying, PlaybackFailed
from discord_jukebox.domain.shared.exceptions import CommandPreconditionError
from discord_jukebox.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)
from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    get_member,
    send_ephemeral,
    voice_channel_id,
)
from discord_jukebox.utils.reply import EMBED_TITLE_LIMIT, escape_link_text, truncate

if TYPE_CHECKING:
    from ....application.services.playback_models import QueueSnapshot
    from ....config.container import Container
    from ....domain.music.entities import Song

logger = logging.getLogger(__name__)

QUEUE_COLOR = discord.Color.from_str("#0099ff")
NOW_PLAYING_COLOR = discord.Color.from_str("#00ff00")


def build_song_embed(
    song: Song, *, title: str, color: discord.Color, position: int | None = None
) -> discord.Embed:
    embed = discord.Embed(
        title=title,
        description=f"[{escape_link_text(truncate(song.title, EMBED_TITLE_LIMIT))}]({song.source_url})",
        color=color,
    )
    if position is None:
        embed.add_field(name=DiscordUIMessages.FIELD_DURATION, value=song.duration, inline=True)
    else:
        embed.add_field(name=DiscordUIMessages.FIELD_POSITION, value=str(position), inline=True)
    if song.thumbnail_url:
        embed.set_thumbnail(url=song.thumbnail_url)
    if song.requested_by:
        embed.set_footer(
            text=DiscordUIMessages.FOOTER_REQUESTED_BY.format(requester=song.requested_by)
        )
    return embed


def build_queue_embed(snapshot: QueueSnapshot) -> discord.Embed:
    lines = [
        DiscordUIMessages.QUEUE_ENTRY_LINE.format(
            index=index,
            title=escape_link_text(truncate(song.title)),
            url=song.source_url,
            duration=song.duration,
        )
        for index, song in enumerate(snapshot.songs, start=1)
    ]
    embed = discord.Embed(
        title=DiscordUIMessages.EMBED_QUEUE, description="\n".join(lines), color=QUEUE_COLOR
    )
    if snapshot.remaining:
        embed.set_footer(text=DiscordUIMessages.QUEUE_MORE_LINE.format(count=snapshot.remaining))
    return embed


def build_help_embed() -> discord.Embed:
    embed = discord.Embed(
        title=DiscordUIMessages.EMBED_HELP,
        description=DiscordUIMessages.EMBED_HELP_DESCRIPTION,
        color=QUEUE_COLOR,
    )
    for name, value in DiscordUIMessages.HELP_COMMANDS:
        embed.add_field(name=name, value=value, inline=False)
    embed.set_footer(text=DiscordUIMessages.EMBED_HELP_FOOTER)
    return embed


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        # Guild ID -> text channel of the guild's most recent music command.
        self._announce_channels: dict[int, int] = {}

    async def cog_load(self) -> None:
        event_bus = self.container.event_bus
        event_bus.subscribe(NowPlaying, self._on_now_playing)
        event_bus.subscribe(PlaybackFailed, self._on_playback_failed)

    async def cog_unload(self) -> None:
        event_bus = self.container.event_bus
        event_bus.unsubscribe(NowPlaying, self._on_now_playing)
        event_bus.unsubscribe(PlaybackFailed, self._on_playback_failed)

    # ─────────────────────────────────────────────────────────────────
    # Notifications
    # ─────────────────────────────────────────────────────────────────

    def _remember_channel(self, interaction: discord.Interaction) -> None:
        if interaction.guild is not None and interaction.channel_id is not None:
            self._announce_channels[interaction.guild.id] = interaction.channel_id

    def _announce_channel(self, guild_id: int) -> discord.abc.Messageable | None:
        channel_id = self._announce_channels.get(guild_id)
        if channel_id is not None:
            channel = self.bot.get_channel(channel_id)
            if isinstance(channel, discord.abc.Messageable):
                return channel

        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return None
        for text_channel in guild.text_channels:
            if text_channel.permissions_for(guild.me).send_messages:
                return text_channel
        return None

    async def _announce(self, guild_id: int, kind: str, **send_kwargs: object) -> None:
        channel = self._announce_channel(guild_id)
        if channel is None:
            return
        try:
            await channel.send(**send_kwargs)  # type: ignore[arg-type]
        except discord.HTTPException:
            logger.warning(LogTemplates.EVENT_NOTIFY_FAILED, kind, guild_id)

    async def _on_now_playing(self, event: NowPlaying) -> None:
        embed = build_song_embed(
            event.song, title=DiscordUIMessages.EMBED_NOW_PLAYING, color=NOW_PLAYING_COLOR
        )
        await self._announce(event.guild_id, "now playing", embed=embed)

    async def _on_playback_failed(self, event: PlaybackFailed) -> None:
        content = DiscordUIMessages.ERROR_PLAYBACK_ABANDONED.format(message=event.message)
        await self._announce(event.guild_id, "playback failed", content=content)

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        """Drop the guild's queue when the bot is kicked or disconnected from voice."""
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is not None and after.channel is None:
            await self.container.jukebox_service.handle_voice_disconnect(
                member.guild.id, before.channel.id
            )

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play a song from YouTube, Spotify or a search.")
    @app_commands.describe(query="YouTube URL, Spotify track URL or search query")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        member = await get_member(interaction)
        if member is None:
            return

        channel_id = voice_channel_id(member)
        if channel_id is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOT_IN_VOICE)
            return

        await interaction.response.defer()
        self._remember_channel(interaction)

        result = await self.container.jukebox_service.play(
            member.guild.id, channel_id, member.display_name, query
        )
        if not result.ok or result.song is None:
            await interaction.followup.send(
                DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(reason=result.message)
            )
            return

        embed = build_song_embed(
            result.song,
            title=DiscordUIMessages.EMBED_ADDED_TO_QUEUE,
            color=QUEUE_COLOR,
            position=result.position,
        )
        await interaction.followup.send(embed=embed)

    @app_commands.command(name="skip", description="Skip the current song.")
    async def skip(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return
        self._remember_channel(interaction)
        try:
            await self.container.jukebox_service.skip(interaction.guild.id)
        except CommandPreconditionError as e:
            await send_ephemeral(interaction, e.message)
            return
        await interaction.response.send_message(DiscordUIMessages.ACTION_SKIPPED)

    @app_commands.command(name="stop", description="Stop playing and clear the queue.")
    async def stop(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return
        try:
            await self.container.jukebox_service.stop(interaction.guild.id)
        except CommandPreconditionError as e:
            await send_ephemeral(interaction, e.message)
            return
        await interaction.response.send_message(DiscordUIMessages.ACTION_STOPPED)

    @app_commands.command(name="queue", description="Show the current queue.")
    async def queue(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return
        snapshot = self.container.jukebox_service.peek_queue(interaction.guild.id)
        if snapshot.is_empty:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_QUEUE_EMPTY)
            return
        await interaction.response.send_message(embed=build_queue_embed(snapshot))

    @app_commands.command(name="nowplaying", description="Show the currently playing song.")
    async def nowplaying(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return
        song = self.container.jukebox_service.now_playing(interaction.guild.id)
        if song is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING)
            return
        embed = build_song_embed(
            song, title=DiscordUIMessages.EMBED_NOW_PLAYING, color=NOW_PLAYING_COLOR
        )
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="pause", description="Pause the current song.")
    async def pause(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return
        try:
            await self.container.jukebox_service.pause(interaction.guild.id)
        except CommandPreconditionError as e:
            await send_ephemeral(interaction, e.message)
            return
        await interaction.response.send_message(DiscordUIMessages.ACTION_PAUSED)

    @app_commands.command(name="resume", description="Resume the paused song.")
    async def resume(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return
        try:
            await self.container.jukebox_service.resume(interaction.guild.id)
        except CommandPreconditionError as e:
            await send_ephemeral(interaction, e.message)
            return
        await interaction.response.send_message(DiscordUIMessages.ACTION_RESUMED)

    @app_commands.command(name="help", description="Show all music commands.")
    async def help(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(embed=build_help_embed())


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))

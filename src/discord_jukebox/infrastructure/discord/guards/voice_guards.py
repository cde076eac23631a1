"""Precondition helpers shared by slash commands and the bot's error handler."""

from __future__ import annotations

import discord

from discord_jukebox.domain.shared.messages import DiscordUIMessages


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Reply privately, using the followup webhook once the interaction was answered or deferred."""
    send = (
        interaction.followup.send
        if interaction.response.is_done()
        else interaction.response.send_message
    )
    await send(message, ephemeral=True)


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """The invoking guild member, or None after telling the user the command is server-only."""
    member = interaction.user if interaction.guild else None
    if isinstance(member, discord.Member):
        return member

    await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
    return None


def voice_channel_id(member: discord.Member) -> int | None:
    voice = member.voice
    if voice is None or voice.channel is None:
        return None
    return voice.channel.id

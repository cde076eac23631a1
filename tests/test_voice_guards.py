"""Tests for the voice guard helpers used by slash commands."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord

from discord_jukebox.domain.shared.messages import DiscordUIMessages
from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    get_member,
    send_ephemeral,
    voice_channel_id,
)


def _make_interaction(*, user_is_member: bool = True, in_guild: bool = True, done: bool = False):
    interaction = MagicMock(spec=discord.Interaction)
    interaction.response = MagicMock()
    interaction.response.is_done.return_value = done
    interaction.response.send_message = AsyncMock()
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    interaction.guild = MagicMock() if in_guild else None
    interaction.user = MagicMock(spec=discord.Member if user_is_member else discord.User)
    return interaction


class TestSendEphemeral:
    async def test_fresh_interaction(self):
        interaction = _make_interaction()

        await send_ephemeral(interaction, "hi")

        interaction.response.send_message.assert_awaited_once_with("hi", ephemeral=True)

    async def test_already_responded_uses_followup(self):
        interaction = _make_interaction(done=True)

        await send_ephemeral(interaction, "hi")

        interaction.followup.send.assert_awaited_once_with("hi", ephemeral=True)


class TestGetMember:
    async def test_member_returned(self):
        interaction = _make_interaction()

        assert await get_member(interaction) is interaction.user

    async def test_dm_rejected(self):
        interaction = _make_interaction(in_guild=False)

        assert await get_member(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_SERVER_ONLY, ephemeral=True
        )

    async def test_non_member_rejected(self):
        interaction = _make_interaction(user_is_member=False)

        assert await get_member(interaction) is None


class TestVoiceChannelId:
    def test_in_voice(self):
        member = MagicMock()
        member.voice.channel.id = 100

        assert voice_channel_id(member) == 100

    def test_not_in_voice(self):
        member = MagicMock()
        member.voice = None

        assert voice_channel_id(member) is None

    def test_voice_state_without_channel(self):
        member = MagicMock()
        member.voice.channel = None

        assert voice_channel_id(member) is None

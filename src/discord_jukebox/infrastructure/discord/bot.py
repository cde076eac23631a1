"""Discord client for the jukebox.

``JukeboxBot`` owns the container lifecycle: the container is built in
``setup_hook`` before any cog loads and torn down in ``close`` before the
gateway connection drops, so every guild queue leaves voice cleanly.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discord_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates
from discord_jukebox.infrastructure.discord.guards.voice_guards import send_ephemeral

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COG_EXTENSIONS: tuple[str, ...] = ("discord_jukebox.infrastructure.discord.cogs.music_cog",)

_PRESENCE = discord.Activity(type=discord.ActivityType.listening, name="/play")


def _jukebox_intents() -> discord.Intents:
    # Slash commands need no message content; voice state drives disconnect handling.
    intents = discord.Intents.default()
    intents.guilds = True
    intents.voice_states = True
    intents.message_content = False
    return intents


class JukeboxBot(commands.Bot):
    """Slash-command-only bot that routes every command through the container."""

    def __init__(self, container: Container, settings: Settings, **kwargs) -> None:
        kwargs.setdefault("intents", _jukebox_intents())
        super().__init__(command_prefix=commands.when_mentioned, help_command=None, **kwargs)

        self.container = container
        self.settings = settings
        self._shutdown_event = asyncio.Event()
        container.set_bot(self)

    # === Startup ===

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)
        await self._init_container()
        await self._load_cogs()
        self.tree.on_error = self._on_app_command_error

        if self.settings.discord.sync_on_startup:
            try:
                await self._sync_commands()
            except Exception as e:
                logger.warning(LogTemplates.BOT_SYNC_ON_STARTUP_FAILED, e)
        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def _init_container(self) -> None:
        try:
            await self.container.initialize()
        except Exception as e:
            logger.exception(LogTemplates.BOT_CONTAINER_INIT_FAILED, e)
            raise
        logger.info(LogTemplates.BOT_CONTAINER_INITIALIZED)

    async def _load_cogs(self) -> None:
        failures = 0
        for extension in COG_EXTENSIONS:
            try:
                await self.load_extension(extension)
            except Exception as e:
                failures += 1
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, extension, e)
            else:
                logger.info(LogTemplates.BOT_COG_LOADED, extension)

        logger.info(LogTemplates.BOT_COGS_LOADED_SUMMARY, len(COG_EXTENSIONS) - failures, failures)

    async def _sync_commands(self) -> None:
        """Sync to each test guild for instant availability, then globally."""
        for guild_id in self.settings.discord.test_guild_ids:
            await self._sync_to_guild(guild_id)

        try:
            synced = await self.tree.sync()
        except discord.HTTPException as e:
            logger.warning(LogTemplates.BOT_SYNC_GLOBAL_FAILED, e)
            return
        logger.info(LogTemplates.BOT_SYNCED_GLOBAL, len(synced))

    async def _sync_to_guild(self, guild_id: int) -> None:
        guild = discord.Object(id=guild_id)
        self.tree.copy_global_to(guild=guild)
        try:
            synced = await self.tree.sync(guild=guild)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.BOT_SYNC_GUILD_FAILED, guild_id, e)
            return
        logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), guild_id)

    # === Events ===

    async def on_ready(self) -> None:
        logger.info(LogTemplates.BOT_READY, self.user, getattr(self.user, "id", None))
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))
        await self.change_presence(activity=_PRESENCE)

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: Exception
    ) -> None:
        """Log the failure and tell only the invoking user."""
        cause = getattr(error, "original", error)
        command_name = getattr(interaction.command, "name", "<unknown>")
        logger.error(LogTemplates.BOT_SLASH_COMMAND_ERROR, command_name, cause, exc_info=cause)

        try:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_COMMAND_FAILED_SEE_LOGS)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    # === Shutdown ===

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)
        try:
            # Closing the queues also releases their voice connections.
            await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)
        else:
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)

        await super().close()
        self._shutdown_event.set()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    async def _close_within(self, timeout: float) -> None:
        try:
            async with asyncio.timeout(timeout):
                await self.close()
        except TimeoutError:
            logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, timeout)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT/SIGTERM, then close with a bounded grace period."""

        async def _main() -> None:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(
                    sig, lambda: asyncio.ensure_future(self._close_within(shutdown_timeout))
                )
            async with self:
                await self.start(token)

        asyncio.run(_main())


def create_bot(container: Container, settings: Settings) -> JukeboxBot:
    return JukeboxBot(container=container, settings=settings)

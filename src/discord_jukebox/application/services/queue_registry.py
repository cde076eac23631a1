"""Registry of live guild queues - owns their creation and teardown."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import GuildQueue
from ...domain.shared.events import GuildQueueCreated, GuildQueueRemoved
from ...domain.shared.messages import LogTemplates
from .playback_engine import DEFAULT_MAX_CONSECUTIVE_FAILURES, PlaybackEngine

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ...domain.shared.types import DiscordSnowflake
    from ..interfaces.stream_provider import StreamProvider
    from ..interfaces.voice import VoiceGateway

logger = logging.getLogger(__name__)


class GuildQueueRegistry:
    """Maps guild IDs to their playback engines.

    A registered engine always holds a voice session. An idle, empty queue
    stays registered until it is stopped, the bot is disconnected from voice,
    or the registry is closed.
    """

    def __init__(
        self,
        *,
        voice_gateway: VoiceGateway,
        stream_provider: StreamProvider,
        event_bus: EventBus,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        self._voice_gateway = voice_gateway
        self._stream_provider = stream_provider
        self._event_bus = event_bus
        self._max_failures = max_consecutive_failures

        self._engines: dict[int, PlaybackEngine] = {}
        self._creation_locks: dict[int, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._engines

    @property
    def guild_ids(self) -> list[int]:
        return list(self._engines)

    def get(self, guild_id: DiscordSnowflake) -> PlaybackEngine | None:
        return self._engines.get(guild_id)

    async def get_or_create(
        self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake
    ) -> PlaybackEngine:
        """Return the guild's engine, joining voice and creating it if needed.

        Concurrent calls for the same guild join voice exactly once.
        Raises VoiceConnectionError if the voice channel cannot be joined.
        """
        engine = self._engines.get(guild_id)
        if engine is not None:
            return engine

        lock = self._creation_locks.setdefault(guild_id, asyncio.Lock())
        async with lock:
            engine = self._engines.get(guild_id)
            if engine is not None:
                return engine

            voice_session = await self._voice_gateway.connect(guild_id, channel_id)
            try:
                player = voice_session.create_player()
            except Exception:
                await voice_session.disconnect()
                raise
            queue = GuildQueue(guild_id=guild_id, voice_session=voice_session, player=player)
            engine = PlaybackEngine(
                queue=queue,
                stream_provider=self._stream_provider,
                event_bus=self._event_bus,
                max_consecutive_failures=self._max_failures,
            )
            self._engines[guild_id] = engine

        logger.info(LogTemplates.QUEUE_CREATED, guild_id)
        await self._event_bus.publish(GuildQueueCreated(guild_id=guild_id, channel_id=channel_id))
        return engine

    async def remove(self, guild_id: DiscordSnowflake) -> bool:
        """Unregister and close the guild's engine. Returns False if there was none."""
        engine = self._engines.pop(guild_id, None)
        if engine is None:
            return False

        lock = self._creation_locks.get(guild_id)
        if lock is not None and not lock.locked():
            del self._creation_locks[guild_id]

        await engine.close()
        logger.info(LogTemplates.QUEUE_REMOVED, guild_id)
        await self._event_bus.publish(GuildQueueRemoved(guild_id=guild_id))
        return True

    async def close_all(self) -> int:
        """Close every engine, e.g. on shutdown. Returns how many were closed."""
        guild_ids = list(self._engines)
        for guild_id in guild_ids:
            await self.remove(guild_id)
        return len(guild_ids)

"""Domain events raised by guild queues, and the bus that delivers them."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.entities import Song
from discord_jukebox.domain.shared.messages import LogTemplates
from discord_jukebox.domain.shared.types import DiscordSnowflake, NonEmptyStr, QueuePositionInt

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


class DomainEvent(BaseModel):
    """Immutable record of something that happened to a guild queue."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


# === Queue Events ===


class SongQueued(DomainEvent):
    guild_id: DiscordSnowflake
    song: Song
    position: QueuePositionInt


class NowPlaying(DomainEvent):
    guild_id: DiscordSnowflake
    song: Song


class PlaybackFailed(DomainEvent):
    """The queue was abandoned because too many songs in a row failed."""

    guild_id: DiscordSnowflake
    message: str
    dropped: int = 0


class QueueExhausted(DomainEvent):
    guild_id: DiscordSnowflake


# === Registry Events ===


class GuildQueueCreated(DomainEvent):
    guild_id: DiscordSnowflake
    channel_id: DiscordSnowflake


class GuildQueueRemoved(DomainEvent):
    guild_id: DiscordSnowflake


# === Event Bus ===


class EventBus:
    """Fan-out of domain events to async handlers, keyed by exact event type.

    A handler that raises is logged; the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._subscribers: defaultdict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(
            list
        )

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._subscribers[event_type].append(handler)
        logger.debug("Handler subscribed to %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        try:
            self._subscribers[event_type].remove(handler)
        except ValueError:
            return
        logger.debug("Handler unsubscribed from %s", event_type.__name__)

    async def _deliver(self, handler: EventHandler[Any], event: DomainEvent) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception(LogTemplates.EVENT_HANDLER_ERROR, type(event).__name__)

    async def publish(self, event: DomainEvent) -> None:
        # Snapshot so handlers may (un)subscribe while being called.
        handlers = tuple(self._subscribers.get(type(event), ()))
        if not handlers:
            return

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(self._deliver(handler, event))

    async def publish_all(self, events: list[DomainEvent]) -> None:
        """Publish events one after another, preserving their order."""
        for event in events:
            await self.publish(event)

    def clear(self) -> None:
        self._subscribers.clear()

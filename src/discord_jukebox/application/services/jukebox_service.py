"""Jukebox Application Service - the command-facing API for guild playback."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.shared.exceptions import (
    NothingPlayingError,
    NotInVoiceChannelError,
    QueueClosedError,
    VoiceConnectionError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from .playback_engine import QUEUE_PREVIEW_LIMIT
from .playback_models import PlayResult, QueueSnapshot

if TYPE_CHECKING:
    from ...domain.music.entities import Song
    from ...domain.shared.types import DiscordSnowflake
    from .playback_engine import PlaybackEngine
    from .playback_models import ResolutionOutcome
    from .queue_registry import GuildQueueRegistry
    from .resolution_service import SongResolutionService

logger = logging.getLogger(__name__)


class JukeboxService:
    """Entry point the command layer calls for every music command."""

    def __init__(
        self,
        *,
        resolver: SongResolutionService,
        registry: GuildQueueRegistry,
    ) -> None:
        self._resolver = resolver
        self._registry = registry
        self._lookups: dict[int, set[asyncio.Task[ResolutionOutcome]]] = {}
        # Bumped on every teardown so a lookup that finished just before it is discarded.
        self._stop_epochs: dict[int, int] = {}

    async def _resolve(
        self, guild_id: DiscordSnowflake, query: str, requested_by: str
    ) -> ResolutionOutcome | None:
        """Run a lookup that ``stop`` can cancel. Returns None if it was cancelled."""
        task = asyncio.ensure_future(self._resolver.resolve(query, requested_by))
        pending = self._lookups.setdefault(guild_id, set())
        pending.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None
        finally:
            pending.discard(task)
            if not pending and self._lookups.get(guild_id) is pending:
                del self._lookups[guild_id]

    def _cancel_lookups(self, guild_id: DiscordSnowflake) -> int:
        self._stop_epochs[guild_id] = self._stop_epochs.get(guild_id, 0) + 1
        pending = self._lookups.pop(guild_id, set())
        for task in pending:
            task.cancel()
        if pending:
            logger.info(LogTemplates.RESOLUTION_CANCELLED, len(pending), guild_id)
        return len(pending)

    async def play(
        self,
        guild_id: DiscordSnowflake,
        voice_channel_id: DiscordSnowflake | None,
        requested_by: str,
        query: str,
    ) -> PlayResult:
        """Resolve a query and enqueue it in the guild's queue.

        Resolution happens before any queue is created, so a failed lookup
        leaves the guild untouched. A ``stop`` issued while the lookup is
        still running wins: the song is dropped and no queue is created.
        """
        if voice_channel_id is None:
            raise NotInVoiceChannelError()

        epoch = self._stop_epochs.get(guild_id, 0)
        outcome = await self._resolve(guild_id, query, requested_by)
        if outcome is None or self._stop_epochs.get(guild_id, 0) != epoch:
            return PlayResult(ok=False, message=ErrorMessages.PLAY_CANCELLED.format(query=query))
        if not outcome.ok or outcome.song is None:
            return PlayResult(ok=False, message=outcome.error or "")

        song = outcome.song
        for attempt in range(2):
            try:
                engine = await self._registry.get_or_create(guild_id, voice_channel_id)
                result = await engine.enqueue(song)
            except VoiceConnectionError as e:
                return PlayResult(ok=False, song=song, message=e.message)
            except QueueClosedError:
                if attempt:
                    raise
                logger.info(LogTemplates.QUEUE_CLOSED_RETRY, guild_id)
                continue
            return PlayResult(
                ok=True, song=song, position=result.position, started=result.started
            )

        raise QueueClosedError(guild_id)

    async def skip(self, guild_id: DiscordSnowflake) -> Song:
        return await self._require_engine(guild_id).skip()

    async def stop(self, guild_id: DiscordSnowflake) -> None:
        """Drop the guild's queue along with any lookups still in flight."""
        cancelled = self._cancel_lookups(guild_id)
        removed = await self._registry.remove(guild_id)
        if not removed and not cancelled:
            raise NothingPlayingError()

    async def pause(self, guild_id: DiscordSnowflake) -> Song:
        return await self._require_engine(guild_id).pause()

    async def resume(self, guild_id: DiscordSnowflake) -> bool:
        return await self._require_engine(guild_id).resume()

    def peek_queue(
        self, guild_id: DiscordSnowflake, limit: int = QUEUE_PREVIEW_LIMIT
    ) -> QueueSnapshot:
        engine = self._registry.get(guild_id)
        if engine is None:
            return QueueSnapshot()
        return engine.snapshot(limit)

    def now_playing(self, guild_id: DiscordSnowflake) -> Song | None:
        engine = self._registry.get(guild_id)
        return engine.now_playing if engine is not None else None

    async def handle_voice_disconnect(
        self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake | None = None
    ) -> bool:
        """The bot left ``channel_id``; drop the guild's queue if it lost its voice session.

        Disconnect events are delivered late. One that belongs to an older
        session (a different channel, or a session Discord still reports as
        connected) is ignored so the current queue survives.
        """
        engine = self._registry.get(guild_id)
        if engine is None:
            return False

        session = engine.voice_session
        if session is not None and (
            session.is_connected()
            or (channel_id is not None and session.channel_id != channel_id)
        ):
            logger.debug(LogTemplates.VOICE_DISCONNECT_STALE, guild_id, channel_id)
            return False

        self._cancel_lookups(guild_id)
        removed = await self._registry.remove(guild_id)
        if removed:
            logger.info(LogTemplates.VOICE_LOST, guild_id)
        return removed

    async def shutdown(self) -> None:
        await self._registry.close_all()

    def _require_engine(self, guild_id: DiscordSnowflake) -> PlaybackEngine:
        engine = self._registry.get(guild_id)
        if engine is None:
            raise NothingPlayingError()
        return engine

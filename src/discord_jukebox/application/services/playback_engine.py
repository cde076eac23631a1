"""Playback engine - the queue and playback state machine for one guild."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.value_objects import PlaybackState
from ...domain.shared.events import (
    DomainEvent,
    NowPlaying,
    PlaybackFailed,
    QueueExhausted,
    SongQueued,
)
from ...domain.shared.exceptions import (
    NothingPlayingError,
    PlayerRuntimeError,
    QueueClosedError,
    StreamOpenError,
)
from ...domain.shared.messages import LogTemplates
from .playback_models import EnqueueResult, QueueSnapshot

if TYPE_CHECKING:
    from ...domain.music.entities import GuildQueue, Song
    from ...domain.shared.events import EventBus
    from ..interfaces.stream_provider import AudioStream, StreamProvider
    from ..interfaces.voice import PlayerSession, TrackEndCallback, VoiceSession

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONSECUTIVE_FAILURES = 5
QUEUE_PREVIEW_LIMIT = 10


class PlaybackEngine:
    """Drives one guild's queue through IDLE, PLAYING and PAUSED.

    Commands and player end signals are serialized by a per-engine lock, so
    queue mutations never interleave. Events raised while the lock is held are
    published after it is released, in the order they were raised.

    Each bound song gets a new generation number. An end signal carrying an
    older generation belongs to a song that is no longer bound and is ignored.
    """

    def __init__(
        self,
        *,
        queue: GuildQueue,
        stream_provider: StreamProvider,
        event_bus: EventBus,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        self._queue = queue
        self._stream_provider = stream_provider
        self._event_bus = event_bus
        self._max_failures = max_consecutive_failures

        self._lock = asyncio.Lock()
        self._outbox: list[DomainEvent] = []
        self._generation = 0
        self._consecutive_failures = 0
        self._open_task: asyncio.Task[AudioStream] | None = None
        self._closed = False

    # ── Read-only views ─────────────────────────────────────────────

    @property
    def guild_id(self) -> int:
        return self._queue.guild_id

    @property
    def state(self) -> PlaybackState:
        return self._queue.playback_state

    @property
    def songs(self) -> list[Song]:
        return list(self._queue.songs)

    @property
    def now_playing(self) -> Song | None:
        return self._queue.head if self._queue.is_active else None

    @property
    def voice_session(self) -> VoiceSession | None:
        return self._queue.voice_session

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def snapshot(self, limit: int = QUEUE_PREVIEW_LIMIT) -> QueueSnapshot:
        songs = self._queue.songs
        return QueueSnapshot(
            songs=list(songs[:limit]),
            now_playing=self.now_playing,
            total=len(songs),
            remaining=max(0, len(songs) - limit),
        )

    @property
    def _player(self) -> PlayerSession:
        return self._queue.player

    # ── Commands ────────────────────────────────────────────────────

    async def enqueue(self, song: Song) -> EnqueueResult:
        """Append a song, starting playback when the queue is idle."""
        try:
            async with self._lock:
                if self._closed:
                    raise QueueClosedError(self.guild_id)

                was_idle = self._queue.playback_state is PlaybackState.IDLE
                position = self._queue.enqueue(song)
                logger.info(LogTemplates.QUEUE_ENQUEUED, song.title, position, self.guild_id)
                self._emit(SongQueued(guild_id=self.guild_id, song=song, position=position))

                if was_idle:
                    self._consecutive_failures = 0
                    await self._play_next()

                started = was_idle and self._queue.is_active and self._queue.head is song
        finally:
            await self._flush()

        return EnqueueResult(song=song, position=position, started=started)

    async def skip(self) -> Song:
        """Stop the bound song; its end signal advances the queue."""
        async with self._lock:
            song = self._require_active()
            self._player.stop()
            logger.info(LogTemplates.PLAYBACK_SKIPPED, song.title, self.guild_id)
            return song

    async def pause(self) -> Song:
        async with self._lock:
            song = self._require_active()
            if self._queue.playback_state is not PlaybackState.PLAYING:
                raise NothingPlayingError()
            self._player.pause()
            self._queue.mark_paused()
            logger.info(LogTemplates.PLAYBACK_PAUSED, self.guild_id)
            return song

    async def resume(self) -> bool:
        """Resume the player. Returns True if a paused song was resumed."""
        async with self._lock:
            if self._closed:
                raise NothingPlayingError()
            self._player.resume()
            if self._queue.playback_state is PlaybackState.PAUSED:
                self._queue.mark_playing()
                logger.info(LogTemplates.PLAYBACK_RESUMED, self.guild_id)
                return True
            return False

    async def close(self) -> None:
        """Tear the queue down: cancel any stream open, stop, and leave voice.

        Closing is terminal. Later enqueues raise QueueClosedError.
        """
        if self._closed:
            return
        self._closed = True
        if self._open_task is not None:
            self._open_task.cancel()

        async with self._lock:
            dropped = self._queue.clear()
            self._generation += 1
            if self._queue.playback_state is not PlaybackState.IDLE:
                self._player.stop()
                self._queue.mark_idle()
            logger.info(LogTemplates.QUEUE_CLOSED, self.guild_id, dropped)

        if self._queue.voice_session is not None:
            await self._queue.voice_session.disconnect()

    # ── Player signals ──────────────────────────────────────────────

    def _end_callback(self, generation: int) -> TrackEndCallback:
        async def on_end(error: Exception | None) -> None:
            await self.handle_track_end(generation, error)

        return on_end

    async def handle_track_end(self, generation: int, error: Exception | None = None) -> None:
        """React to the player finishing (or failing) the song of ``generation``."""
        try:
            async with self._lock:
                if (
                    self._closed
                    or generation != self._generation
                    or not self._queue.is_active
                ):
                    logger.debug(LogTemplates.PLAYBACK_STALE_SIGNAL, self.guild_id, generation)
                    return

                finished = self._queue.pop_head()
                if error is None:
                    self._consecutive_failures = 0
                else:
                    title = finished.title if finished else "?"
                    logger.warning(
                        LogTemplates.PLAYBACK_TRACK_ERROR, title, self.guild_id, error
                    )
                    if self._record_failure():
                        return

                await self._play_next()
        finally:
            await self._flush()

    # ── Internals ───────────────────────────────────────────────────

    def _require_active(self) -> Song:
        if self._closed or not self._queue.is_active:
            raise NothingPlayingError()
        return self._queue.songs[0]

    def _emit(self, event: DomainEvent) -> None:
        self._outbox.append(event)

    async def _flush(self) -> None:
        if not self._outbox:
            return
        events, self._outbox = self._outbox, []
        await self._event_bus.publish_all(events)

    def _record_failure(self) -> bool:
        """Count a failed song. Returns True if the queue was abandoned."""
        self._consecutive_failures += 1
        if self._consecutive_failures < self._max_failures:
            return False

        logger.error(LogTemplates.PLAYBACK_FAILURE_LIMIT, self._consecutive_failures, self.guild_id)
        dropped = self._queue.clear()
        self._queue.mark_idle()
        self._emit(
            PlaybackFailed(
                guild_id=self.guild_id,
                message=(
                    f"Stopped after {self._consecutive_failures} songs in a row failed to play."
                ),
                dropped=dropped,
            )
        )
        self._consecutive_failures = 0
        return True

    async def _play_next(self) -> None:
        """Bind the head song to the player, dropping songs that fail to start.

        Must be called with the lock held.
        """
        while self._queue.songs and not self._closed:
            song = self._queue.songs[0]
            try:
                stream = await self._open_stream(song.source_url)
                if stream is None:
                    return
                self._generation += 1
                self._player.play(stream, self._end_callback(self._generation))
            except (StreamOpenError, PlayerRuntimeError) as e:
                logger.warning(LogTemplates.PLAYBACK_BIND_FAILED, song.title, self.guild_id, e)
                self._queue.pop_head()
                if self._record_failure():
                    return
                continue

            self._queue.mark_playing()
            logger.info(LogTemplates.PLAYBACK_STARTED, song.title, self.guild_id)
            self._emit(NowPlaying(guild_id=self.guild_id, song=song))
            return

        if not self._closed:
            self._queue.mark_idle()
            logger.info(LogTemplates.QUEUE_EXHAUSTED, self.guild_id)
            self._emit(QueueExhausted(guild_id=self.guild_id))

    async def _open_stream(self, source_url: str) -> AudioStream | None:
        """Open a stream in a task that :meth:`close` can cancel.

        Returns None when the engine was closed while the open was in flight.
        """
        task = asyncio.create_task(self._stream_provider.open(source_url))
        self._open_task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._open_task = None

        if task.cancelled():
            return None
        error = task.exception()
        if self._closed:
            return None
        if error is None:
            return task.result()
        if isinstance(error, StreamOpenError):
            raise error
        logger.error(LogTemplates.STREAM_OPEN_FAILED, source_url, error, exc_info=error)
        raise StreamOpenError(source_url, str(error)) from error

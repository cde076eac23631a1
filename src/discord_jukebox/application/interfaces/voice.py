"""Port interfaces for voice connections and audio players."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from discord_jukebox.application.interfaces.stream_provider import AudioStream
from discord_jukebox.domain.shared.types import DiscordSnowflake

TrackEndCallback = Callable[[Exception | None], Awaitable[None]]
"""Awaited on the event loop when a source ends; receives the error, if any."""


class PlayerSession(ABC):
    """Streams one audio source at a time into a voice session."""

    @abstractmethod
    def play(self, stream: AudioStream, on_end: TrackEndCallback) -> None:
        """Start playing a stream, raising PlayerRuntimeError if it cannot start."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the current source. Its end callback still fires."""
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def resume(self) -> None:
        ...


class VoiceSession(ABC):
    """A joined voice channel."""

    @property
    @abstractmethod
    def channel_id(self) -> int | None:
        """The voice channel this session is in, if any."""
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        """Whether Discord still has the bot in this session's channel."""
        ...

    @abstractmethod
    def create_player(self) -> PlayerSession:
        """Create the player session bound to this voice connection."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the voice channel."""
        ...


class VoiceGateway(ABC):
    """Interface for joining voice channels."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> VoiceSession:
        """Join a voice channel, raising VoiceConnectionError on failure."""
        ...

"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class ResolutionError(DomainError):
    """Raised when a query cannot be turned into a playable song."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"No results found for '{query}'"
        super().__init__(msg, code="RESOLUTION_FAILED")
        self.query = query


class StreamOpenError(DomainError):
    """Raised when a live audio stream cannot be obtained for a source URL."""

    def __init__(self, source_url: str, message: str | None = None) -> None:
        msg = message or f"Could not open a stream for {source_url}"
        super().__init__(msg, code="STREAM_OPEN_FAILED")
        self.source_url = source_url


class PlayerRuntimeError(DomainError):
    """Raised when the audio player cannot start or keep playing a source."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="PLAYER_RUNTIME_ERROR")


class VoiceConnectionError(DomainError):
    """Raised when the bot cannot join a voice channel."""

    def __init__(self, channel_id: int, message: str | None = None) -> None:
        msg = message or f"Could not connect to voice channel {channel_id}"
        super().__init__(msg, code="VOICE_CONNECTION_FAILED")
        self.channel_id = channel_id


class QueueClosedError(DomainError):
    """Raised when a song is enqueued on a queue that was already stopped."""

    def __init__(self, guild_id: int) -> None:
        super().__init__(f"Queue for guild {guild_id} is closed", code="QUEUE_CLOSED")
        self.guild_id = guild_id


class CommandPreconditionError(DomainError):
    """Raised when a user command cannot run in the current situation."""


class NothingPlayingError(CommandPreconditionError):
    def __init__(self, message: str = "Nothing is playing!") -> None:
        super().__init__(message, code="NOTHING_PLAYING")


class NotInVoiceChannelError(CommandPreconditionError):
    def __init__(self, message: str = "You need to be in a voice channel!") -> None:
        super().__init__(message, code="NOT_IN_VOICE_CHANNEL")

"""
Shared Domain Kernel

Contains the exceptions, constrained types and messages used by every layer.
"""

from discord_jukebox.domain.shared.exceptions import (
    CommandPreconditionError,
    DomainError,
    InvalidOperationError,
    NothingPlayingError,
    NotInVoiceChannelError,
    PlayerRuntimeError,
    QueueClosedError,
    ResolutionError,
    StreamOpenError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "InvalidOperationError",
    "ResolutionError",
    "StreamOpenError",
    "PlayerRuntimeError",
    "VoiceConnectionError",
    "QueueClosedError",
    "CommandPreconditionError",
    "NothingPlayingError",
    "NotInVoiceChannelError",
]

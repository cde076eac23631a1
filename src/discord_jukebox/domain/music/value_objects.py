"""Immutable value objects for the music bounded context."""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

UNKNOWN_DURATION = "Unknown"


class PlaybackState(Enum):
    """Where a guild queue is in its play/pause cycle.

    IDLE only ever moves to PLAYING. PLAYING re-enters itself when the queue
    advances. PAUSED can only resume or drop back to IDLE.
    """

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"

    def can_transition_to(self, target: PlaybackState) -> bool:
        return target in _ALLOWED_TRANSITIONS[self]

    @property
    def is_active(self) -> bool:
        """A song is bound to the player (playing or paused)."""
        return self is not PlaybackState.IDLE

    @property
    def is_playing(self) -> bool:
        return self is PlaybackState.PLAYING


_ALLOWED_TRANSITIONS: dict[PlaybackState, frozenset[PlaybackState]] = {
    PlaybackState.IDLE: frozenset({PlaybackState.IDLE, PlaybackState.PLAYING}),
    PlaybackState.PLAYING: frozenset(PlaybackState),
    PlaybackState.PAUSED: frozenset({PlaybackState.PLAYING, PlaybackState.IDLE}),
}


def format_duration(seconds: Any) -> str:
    """Format a duration in seconds as ``H:MM:SS``, or ``M:SS`` under an hour.

    Anything that is not a finite, non-negative number yields ``"Unknown"``.
    """
    if isinstance(seconds, bool) or not isinstance(seconds, int | float):
        return UNKNOWN_DURATION
    if math.isnan(seconds) or math.isinf(seconds) or seconds < 0:
        return UNKNOWN_DURATION

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"

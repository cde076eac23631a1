"""Core domain entities for the music bounded context."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from discord_jukebox.domain.music.value_objects import UNKNOWN_DURATION, PlaybackState
from discord_jukebox.domain.shared.exceptions import InvalidOperationError
from discord_jukebox.domain.shared.types import DiscordSnowflake, HttpUrlStr, SongTitleStr

UNKNOWN_TITLE = "Unknown Title"


class Song(BaseModel):
    """Immutable descriptor of a playable song, created once by the resolver."""

    model_config = ConfigDict(frozen=True)

    title: SongTitleStr = UNKNOWN_TITLE
    source_url: HttpUrlStr
    duration: str = UNKNOWN_DURATION
    thumbnail_url: str = ""
    requested_by: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_TITLE
        if isinstance(v, str) and len(v) > 500:
            return v[:500]
        return v

    @field_validator("duration", "thumbnail_url", mode="before")
    @classmethod
    def _none_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return UNKNOWN_DURATION if info.field_name == "duration" else ""
        return v

    @property
    def display_title(self) -> str:
        """Title with duration when known."""
        if self.duration != UNKNOWN_DURATION:
            return f"{self.title} [{self.duration}]"
        return self.title


class GuildQueue(BaseModel):
    """Ordered play queue and playback state for a single Discord guild.

    The head of ``songs`` is the song bound to the player while the queue is
    PLAYING or PAUSED, and the next song to play while it is IDLE.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=False)

    guild_id: DiscordSnowflake
    songs: list[Song] = Field(default_factory=list)
    playback_state: PlaybackState = PlaybackState.IDLE
    voice_session: Any = None
    player: Any = None

    @property
    def head(self) -> Song | None:
        return self.songs[0] if self.songs else None

    @property
    def is_active(self) -> bool:
        return self.playback_state.is_active

    @property
    def is_empty(self) -> bool:
        return not self.songs

    def __len__(self) -> int:
        return len(self.songs)

    def enqueue(self, song: Song) -> int:
        """Append a song and return its one-based position."""
        self.songs.append(song)
        return len(self.songs)

    def pop_head(self) -> Song | None:
        """Drop the head of the queue and return it."""
        if not self.songs:
            return None
        return self.songs.pop(0)

    def clear(self) -> int:
        """Remove every song and return the count removed."""
        count = len(self.songs)
        self.songs.clear()
        return count

    def transition_to(self, new_state: PlaybackState) -> None:
        """Transition to a new playback state."""
        if not self.playback_state.can_transition_to(new_state):
            raise InvalidOperationError(
                operation=f"transition to {new_state.value}",
                current_state=self.playback_state.value,
                message=(
                    f"Cannot transition from {self.playback_state.value} to {new_state.value}"
                ),
            )
        self.playback_state = new_state

    def mark_playing(self) -> None:
        """The head song is now bound to the player."""
        if not self.songs:
            raise InvalidOperationError(
                operation="mark playing",
                current_state=self.playback_state.value,
                message="Cannot play from an empty queue",
            )
        self.transition_to(PlaybackState.PLAYING)

    def mark_paused(self) -> None:
        self.transition_to(PlaybackState.PAUSED)

    def mark_idle(self) -> None:
        self.transition_to(PlaybackState.IDLE)

"""DTOs returned by the playback application services."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ...domain.music.entities import Song
from ...domain.shared.types import NonNegativeInt


class ResolutionOutcome(BaseModel):
    song: Song | None = None
    error: str | None = None
    strategy: str | None = None

    @property
    def ok(self) -> bool:
        return self.song is not None and self.error is None


class EnqueueResult(BaseModel):
    song: Song
    position: NonNegativeInt
    started: bool = False


class PlayResult(BaseModel):
    ok: bool
    song: Song | None = None
    position: NonNegativeInt = 0
    started: bool = False
    message: str = ""


class QueueSnapshot(BaseModel):
    """Read-only view of the first few songs in a guild queue."""

    songs: list[Song] = Field(default_factory=list)
    now_playing: Song | None = None
    total: NonNegativeInt = 0
    remaining: NonNegativeInt = 0

    @property
    def is_empty(self) -> bool:
        return self.total == 0

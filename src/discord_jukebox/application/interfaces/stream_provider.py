"""Port interface for obtaining live audio streams."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.shared.types import HttpUrlStr


class AudioStream(BaseModel):
    """A live audio stream plus the hints the player needs to decode it."""

    model_config = ConfigDict(frozen=True)

    stream_url: HttpUrlStr
    codec: str | None = None
    http_headers: dict[str, str] = Field(default_factory=dict)

    @property
    def is_opus(self) -> bool:
        return self.codec == "opus"


class StreamProvider(ABC):
    """Interface for opening audio streams for resolved songs."""

    @abstractmethod
    async def open(self, source_url: str) -> AudioStream:
        """Open a stream for a song's source URL, raising StreamOpenError on failure."""
        ...

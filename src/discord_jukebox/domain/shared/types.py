"""Reusable Pydantic Annotated types shared by the domain models.

Models annotate their fields with these instead of repeating constraints::

    from discord_jukebox.domain.shared.types import DiscordSnowflake, HttpUrlStr

    class MyModel(BaseModel):
        guild_id: DiscordSnowflake
        url: HttpUrlStr
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]
"""Positive integer that fits a Discord snowflake (1 … 2^64-1)."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

SongTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Song title: 1-500 characters."""

HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]
"""String that starts with http:// or https://."""

QueuePositionInt = Annotated[int, Field(ge=1)]
"""One-based position of a song in a guild queue."""

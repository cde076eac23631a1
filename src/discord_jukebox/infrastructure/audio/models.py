"""Typed views over the raw dictionaries yt-dlp returns, plus its option set."""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_jukebox.domain.shared.types import HttpUrlStr, NonEmptyStr, PositiveInt

METADATA_CACHE_LIMIT: Final[int] = 500
LOG_URL_MAX: Final[int] = 60
UNKNOWN_TITLE: Final[str] = "Unknown Title"


def _text_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


class AudioFormatInfo(BaseModel):
    """One playable format: direct media URL, codec and the headers it needs."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None
    http_headers: dict[str, str] = Field(default_factory=dict)


class ThumbnailInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = ""


class YtDlpVideoInfo(BaseModel):
    """The subset of a yt-dlp info dict this bot reads.

    yt-dlp output varies by extractor, so blank strings, wrong types and
    non-dict list items are normalised away instead of failing validation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    webpage_url: HttpUrlStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr = UNKNOWN_TITLE
    duration: float | None = None
    thumbnail: HttpUrlStr | None = None
    thumbnails: list[ThumbnailInfo] = Field(default_factory=list)
    acodec: NonEmptyStr | None = None
    http_headers: dict[str, str] = Field(default_factory=dict)
    formats: list[AudioFormatInfo] = Field(default_factory=list)

    @field_validator("id", "webpage_url", "url", "thumbnail", "acodec", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        return _text_or_none(value)

    @field_validator("title", mode="before")
    @classmethod
    def _title_or_default(cls, value: Any) -> str:
        return _text_or_none(value) or UNKNOWN_TITLE

    @field_validator("duration", mode="before")
    @classmethod
    def _numeric_duration(cls, value: Any) -> float | None:
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        return float(value)

    @field_validator("thumbnails", "formats", mode="before")
    @classmethod
    def _dict_items_only(cls, value: Any) -> list[Any]:
        return [item for item in value if isinstance(item, dict)] if isinstance(value, list) else []

    @property
    def canonical_url(self) -> str | None:
        """Watch-page URL; flat search entries only carry it in ``url``."""
        if self.webpage_url:
            return self.webpage_url
        if self.url and self.url.startswith("http"):
            return self.url
        return None

    @property
    def thumbnail_url(self) -> str:
        if self.thumbnail:
            return self.thumbnail
        return self.thumbnails[0].url if self.thumbnails else ""


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    info: YtDlpVideoInfo
    cached_at: float


class YtDlpParams(BaseModel):
    """Options handed to ``YoutubeDL(params=...)``. Nothing is ever downloaded."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    skip_download: bool = True
    default_search: NonEmptyStr = "ytsearch"
    forceipv4: bool = True
    retries: PositiveInt = 3
    socket_timeout: PositiveInt = 10
    format: NonEmptyStr | None = None
    extract_flat: NonEmptyStr | bool = False

    def as_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

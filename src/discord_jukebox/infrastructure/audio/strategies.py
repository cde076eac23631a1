"""Resolver strategies: Spotify bridge, direct YouTube link and YouTube search."""

from __future__ import annotations

import logging
import re
from typing import Final

from discord_jukebox.application.interfaces.song_resolver import ResolverStrategy
from discord_jukebox.domain.music.entities import Song
from discord_jukebox.domain.music.value_objects import format_duration
from discord_jukebox.domain.shared.exceptions import ResolutionError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates
from discord_jukebox.infrastructure.audio.models import YtDlpVideoInfo
from discord_jukebox.infrastructure.audio.spotify_catalog import SpotifyCatalog, is_spotify_link
from discord_jukebox.infrastructure.audio.ytdlp_client import YtDlpClient

logger = logging.getLogger(__name__)

YOUTUBE_LINK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:https?://)?(?:www\.|m\.|music\.)?(?:youtube\.com|youtu\.be)/", re.IGNORECASE
)


def song_from_info(info: YtDlpVideoInfo, query: str, requested_by: str) -> Song:
    url = info.canonical_url
    if not url:
        raise ResolutionError(query, ErrorMessages.RESOLVED_WITHOUT_URL.format(query=query))
    return Song(
        title=info.title,
        source_url=url,
        duration=format_duration(info.duration),
        thumbnail_url=info.thumbnail_url,
        requested_by=requested_by,
    )


class YouTubeSearchStrategy(ResolverStrategy):
    """Top-1 YouTube search. Accepts any query, so it belongs last."""

    name = "youtube-search"

    def __init__(self, client: YtDlpClient) -> None:
        self._client = client

    def matches(self, query: str) -> bool:
        return bool(query.strip())

    async def resolve(self, query: str, requested_by: str) -> Song:
        hit = await self._client.search_top(query)
        if hit is None or not hit.canonical_url:
            raise ResolutionError(query, ErrorMessages.NO_SEARCH_RESULTS.format(query=query))

        info = await self._client.extract_video(hit.canonical_url)
        if info is None:
            raise ResolutionError(
                query, ErrorMessages.VIDEO_INFO_UNAVAILABLE.format(url=hit.canonical_url)
            )
        return song_from_info(info, query, requested_by)


class YouTubeLinkStrategy(ResolverStrategy):
    """Direct youtube.com / youtu.be links. Never searches."""

    name = "youtube-link"

    def __init__(self, client: YtDlpClient) -> None:
        self._client = client

    def matches(self, query: str) -> bool:
        return YOUTUBE_LINK_PATTERN.match(query.strip()) is not None

    async def resolve(self, query: str, requested_by: str) -> Song:
        url = query.strip()
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        info = await self._client.extract_video(url)
        if info is None:
            raise ResolutionError(query, ErrorMessages.VIDEO_INFO_UNAVAILABLE.format(url=url))
        return song_from_info(info, query, requested_by)


class SpotifyBridgeStrategy(ResolverStrategy):
    """Spotify track links, resolved by searching YouTube for "<name> <artist>"."""

    name = "spotify-bridge"

    def __init__(self, catalog: SpotifyCatalog, search: YouTubeSearchStrategy) -> None:
        self._catalog = catalog
        self._search = search

    def matches(self, query: str) -> bool:
        return is_spotify_link(query.strip())

    async def resolve(self, query: str, requested_by: str) -> Song:
        track = await self._catalog.lookup_track(query.strip())
        logger.info(LogTemplates.SPOTIFY_BRIDGED, track.track_id, track.search_query)
        return await self._search.resolve(track.search_query, requested_by)

"""Spotify Web API lookups used to bridge Spotify links to YouTube searches."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Final

import spotipy
from pydantic import BaseModel, ConfigDict
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from discord_jukebox.config.settings import SpotifySettings
from discord_jukebox.domain.shared.exceptions import ResolutionError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

SPOTIFY_LINK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:https?://)?(?:open|play)\.spotify\.com/(?:intl-[a-z]{2}/)?(?P<kind>[a-z]+)/(?P<id>[A-Za-z0-9]+)"
)
SPOTIFY_URI_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"spotify:(?P<kind>[a-z]+):(?P<id>[A-Za-z0-9]+)"
)
# Any Spotify web host, including spotify.link share links that cannot be parsed offline.
SPOTIFY_HOST_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:https?://)?(?:[a-z0-9-]+\.)*spotify\.(?:com|link)(?:[/?#]|$)", re.IGNORECASE
)


class SpotifyTrack(BaseModel):
    model_config = ConfigDict(frozen=True)

    track_id: str
    name: str
    artist: str = ""

    @property
    def search_query(self) -> str:
        return f"{self.name} {self.artist}".strip()


def parse_spotify_link(query: str) -> tuple[str, str] | None:
    """Return ``(kind, id)`` for a Spotify link or URI, else None."""
    match = SPOTIFY_LINK_PATTERN.search(query) or SPOTIFY_URI_PATTERN.search(query)
    if match is None:
        return None
    return match.group("kind"), match.group("id")


def is_spotify_link(query: str) -> bool:
    """Whether ``query`` points at Spotify, even if it is not a track we can play."""
    return query.startswith("spotify:") or SPOTIFY_HOST_PATTERN.match(query) is not None


class SpotifyCatalog:
    """Looks up Spotify track names using client-credential auth."""

    def __init__(self, settings: SpotifySettings | None = None, client: Any = None) -> None:
        self._settings = settings or SpotifySettings()
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None or self._settings.enabled

    def _get_client(self) -> Any:
        if self._client is None:
            auth_manager = SpotifyClientCredentials(
                client_id=self._settings.client_id,
                client_secret=self._settings.client_secret.get_secret_value(),
            )
            self._client = spotipy.Spotify(auth_manager=auth_manager)
        return self._client

    def _fetch_track_sync(self, track_id: str) -> dict[str, Any]:
        return self._get_client().track(track_id, market=self._settings.market)

    async def lookup_track(self, query: str) -> SpotifyTrack:
        """Fetch the name and first artist of the single track behind ``query``.

        Raises ResolutionError for non-track links or failed lookups.
        """
        if not self.enabled:
            raise ResolutionError(query, ErrorMessages.SPOTIFY_NOT_CONFIGURED)

        parsed = parse_spotify_link(query)
        if parsed is None or parsed[0] != "track":
            raise ResolutionError(query, ErrorMessages.SPOTIFY_NOT_A_TRACK)

        track_id = parsed[1]
        try:
            data = await asyncio.to_thread(self._fetch_track_sync, track_id)
        except (spotipy.SpotifyException, SpotifyOauthError) as e:
            logger.warning(LogTemplates.SPOTIFY_LOOKUP_FAILED, track_id, e)
            raise ResolutionError(
                query, ErrorMessages.SPOTIFY_LOOKUP_FAILED.format(url=query)
            ) from e

        if not isinstance(data, dict) or not data.get("name"):
            raise ResolutionError(query, ErrorMessages.SPOTIFY_LOOKUP_FAILED.format(url=query))

        artists = data.get("artists") or []
        artist = artists[0].get("name", "") if artists and isinstance(artists[0], dict) else ""
        return SpotifyTrack(track_id=track_id, name=data["name"], artist=artist)

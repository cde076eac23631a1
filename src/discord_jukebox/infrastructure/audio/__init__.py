"""Audio infrastructure: metadata lookup, link bridging and stream opening."""

from discord_jukebox.infrastructure.audio.spotify_catalog import SpotifyCatalog
from discord_jukebox.infrastructure.audio.strategies import (
    SpotifyBridgeStrategy,
    YouTubeLinkStrategy,
    YouTubeSearchStrategy,
)
from discord_jukebox.infrastructure.audio.stream_provider import YtDlpStreamProvider
from discord_jukebox.infrastructure.audio.ytdlp_client import YtDlpClient

__all__ = [
    "SpotifyCatalog",
    "SpotifyBridgeStrategy",
    "YouTubeLinkStrategy",
    "YouTubeSearchStrategy",
    "YtDlpStreamProvider",
    "YtDlpClient",
]

"""Dependency Injection Container

Builds the resolver, stream, voice and queue components on first access and
owns their shutdown. The voice gateway needs the Discord bot, so ``set_bot``
must be called before anything that joins voice is requested.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.song_resolver import ResolverStrategy
    from ..application.interfaces.stream_provider import StreamProvider
    from ..application.interfaces.voice import VoiceGateway
    from ..application.services.jukebox_service import JukeboxService
    from ..application.services.queue_registry import GuildQueueRegistry
    from ..application.services.resolution_service import SongResolutionService
    from ..domain.shared.events import EventBus
    from ..infrastructure.audio.spotify_catalog import SpotifyCatalog
    from ..infrastructure.audio.ytdlp_client import YtDlpClient
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed and cached.
    """

    settings: Settings
    _bot: Bot | None = None

    _event_bus: EventBus | None = None

    # Infrastructure adapters
    _ytdlp_client: YtDlpClient | None = None
    _spotify_catalog: SpotifyCatalog | None = None
    _resolver_strategies: list[ResolverStrategy] | None = None
    _stream_provider: StreamProvider | None = None
    _voice_gateway: VoiceGateway | None = None

    # Application services
    _resolution_service: SongResolutionService | None = None
    _queue_registry: GuildQueueRegistry | None = None
    _jukebox_service: JukeboxService | None = None

    def set_bot(self, bot: Bot) -> None:
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    # === Audio ===

    @property
    def ytdlp_client(self) -> YtDlpClient:
        if self._ytdlp_client is None:
            from ..infrastructure.audio.ytdlp_client import YtDlpClient

            self._ytdlp_client = YtDlpClient(self.settings.audio)
        return self._ytdlp_client

    @property
    def spotify_catalog(self) -> SpotifyCatalog:
        if self._spotify_catalog is None:
            from ..infrastructure.audio.spotify_catalog import SpotifyCatalog

            self._spotify_catalog = SpotifyCatalog(self.settings.spotify)
        return self._spotify_catalog

    @property
    def resolver_strategies(self) -> list[ResolverStrategy]:
        """Strategies in priority order; the catch-all search goes last."""
        if self._resolver_strategies is None:
            from ..infrastructure.audio.strategies import (
                SpotifyBridgeStrategy,
                YouTubeLinkStrategy,
                YouTubeSearchStrategy,
            )

            search = YouTubeSearchStrategy(self.ytdlp_client)
            self._resolver_strategies = [
                SpotifyBridgeStrategy(self.spotify_catalog, search),
                YouTubeLinkStrategy(self.ytdlp_client),
                search,
            ]
        return self._resolver_strategies

    @property
    def stream_provider(self) -> StreamProvider:
        if self._stream_provider is None:
            from ..infrastructure.audio.stream_provider import YtDlpStreamProvider

            self._stream_provider = YtDlpStreamProvider(self.ytdlp_client, self.settings.audio)
        return self._stream_provider

    # === Voice ===

    @property
    def voice_gateway(self) -> VoiceGateway:
        if self._voice_gateway is None:
            from ..infrastructure.discord.voice_gateway import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(self.bot, self.settings.audio)
        return self._voice_gateway

    # === Application Services ===

    @property
    def resolution_service(self) -> SongResolutionService:
        if self._resolution_service is None:
            from ..application.services.resolution_service import SongResolutionService

            self._resolution_service = SongResolutionService(self.resolver_strategies)
        return self._resolution_service

    @property
    def queue_registry(self) -> GuildQueueRegistry:
        if self._queue_registry is None:
            from ..application.services.queue_registry import GuildQueueRegistry

            self._queue_registry = GuildQueueRegistry(
                voice_gateway=self.voice_gateway,
                stream_provider=self.stream_provider,
                event_bus=self.event_bus,
                max_consecutive_failures=self.settings.audio.max_consecutive_failures,
            )
        return self._queue_registry

    @property
    def jukebox_service(self) -> JukeboxService:
        if self._jukebox_service is None:
            from ..application.services.jukebox_service import JukeboxService

            self._jukebox_service = JukeboxService(
                resolver=self.resolution_service,
                registry=self.queue_registry,
            )
        return self._jukebox_service

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Build the service graph eagerly so wiring errors surface at startup."""
        _ = self.jukebox_service

    async def shutdown(self) -> None:
        """Close every guild queue and drop event subscriptions."""
        if self._jukebox_service is not None:
            await self._jukebox_service.shutdown()
        if self._ytdlp_client is not None:
            self._ytdlp_client.clear_cache()
        if self._event_bus is not None:
            self._event_bus.clear()


def create_container(settings: Settings) -> Container:
    return Container(settings)

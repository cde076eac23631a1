"""StreamProvider implementation backed by yt-dlp."""

from __future__ import annotations

import asyncio
import logging

from discord_jukebox.application.interfaces.stream_provider import AudioStream, StreamProvider
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import StreamOpenError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates
from discord_jukebox.infrastructure.audio.ytdlp_client import YtDlpClient

logger = logging.getLogger(__name__)


class YtDlpStreamProvider(StreamProvider):
    """Resolves the best audio stream for a watch URL, bounded by a timeout."""

    def __init__(self, client: YtDlpClient, settings: AudioSettings | None = None) -> None:
        self._client = client
        self._timeout = (settings or AudioSettings()).stream_open_timeout_s

    async def open(self, source_url: str) -> AudioStream:
        try:
            async with asyncio.timeout(self._timeout):
                selected = await self._client.extract_stream(source_url)
        except TimeoutError as e:
            raise StreamOpenError(
                source_url, ErrorMessages.STREAM_OPEN_TIMEOUT.format(url=source_url)
            ) from e
        except Exception as e:
            logger.warning(LogTemplates.STREAM_OPEN_FAILED, source_url, e)
            raise StreamOpenError(source_url, str(e)) from e

        if selected is None or not selected.url:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, source_url)
            raise StreamOpenError(source_url, ErrorMessages.NO_STREAM_URL.format(url=source_url))

        stream = AudioStream(
            stream_url=selected.url,
            codec=selected.acodec,
            http_headers=selected.http_headers,
        )
        logger.debug(LogTemplates.STREAM_OPENED, source_url, stream.codec)
        return stream

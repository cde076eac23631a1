"""Thin async wrapper around yt-dlp for video metadata, search and stream URLs."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, cast

from yt_dlp import YoutubeDL

from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.messages import LogTemplates
from discord_jukebox.infrastructure.audio.models import (
    LOG_URL_MAX,
    METADATA_CACHE_LIMIT,
    AudioFormatInfo,
    CacheEntry,
    YtDlpParams,
    YtDlpVideoInfo,
)

logger = logging.getLogger(__name__)


class YtDlpClient:
    """Runs yt-dlp extractions in worker threads.

    Video metadata is cached per URL for ``metadata_cache_ttl_s`` seconds.
    Stream URLs are never cached because they expire.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._cache_ttl = self._settings.metadata_cache_ttl_s
        self._cache: dict[str, CacheEntry] = {}
        self._base_opts = YtDlpParams()
        self._stream_opts = YtDlpParams(format=self._settings.ytdlp_format)
        self._search_opts = YtDlpParams(extract_flat="in_playlist")

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpVideoInfo:
        return YtDlpVideoInfo.model_validate(data)

    @staticmethod
    def _run(opts: YtDlpParams, target: str) -> Any:
        with YoutubeDL(params=cast(Any, opts.as_params())) as ydl:
            return ydl.extract_info(target, download=False)

    # ── Cache ───────────────────────────────────────────────────────

    def _cache_get(self, url: str, now: float) -> YtDlpVideoInfo | None:
        cached = self._cache.get(url)
        if cached is None:
            return None
        if now - cached.cached_at < self._cache_ttl:
            logger.debug(LogTemplates.CACHE_HIT, url[:LOG_URL_MAX])
            return cached.info
        self._cache.pop(url, None)
        return None

    def _cache_put(self, url: str, info: YtDlpVideoInfo, now: float) -> None:
        if self._cache_ttl <= 0:
            return
        self._cache[url] = CacheEntry(info=info, cached_at=now)
        if len(self._cache) > METADATA_CACHE_LIMIT:
            expired = [k for k, e in self._cache.items() if now - e.cached_at >= self._cache_ttl]
            for k in expired:
                self._cache.pop(k, None)

    def clear_cache(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        logger.debug(LogTemplates.CACHE_CLEARED, count)
        return count

    # ── Sync extraction (run in threads) ────────────────────────────

    def _extract_video_sync(self, url: str) -> YtDlpVideoInfo | None:
        now = time.time()
        cached = self._cache_get(url, now)
        if cached is not None:
            return cached

        try:
            data = self._run(self._base_opts, url)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return None

        if not isinstance(data, dict):
            return None
        if data.get("_type") == "playlist":
            entries = [e for e in data.get("entries") or [] if isinstance(e, dict)]
            if not entries:
                return None
            data = entries[0]

        info = self._parse_info(dict(data))
        self._cache_put(url, info, now)
        return info

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpVideoInfo]:
        try:
            data = self._run(self._search_opts, f"ytsearch{limit}:{query}")
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return []

        if not isinstance(data, dict):
            return []
        entries = data.get("entries", [])
        if not isinstance(entries, list):
            return []
        return [self._parse_info(dict(e)) for e in entries if isinstance(e, dict)]

    def _extract_stream_sync(self, url: str) -> YtDlpVideoInfo | None:
        data = self._run(self._stream_opts, url)
        if not isinstance(data, dict):
            return None
        return self._parse_info(dict(data))

    @staticmethod
    def select_audio_format(info: YtDlpVideoInfo) -> AudioFormatInfo | None:
        """The format yt-dlp selected, else the last audio-bearing format listed."""
        if info.url:
            return AudioFormatInfo(url=info.url, acodec=info.acodec, http_headers=info.http_headers)
        audio_formats = [f for f in info.formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1]
        return None

    # ── Async API ───────────────────────────────────────────────────

    async def extract_video(self, url: str) -> YtDlpVideoInfo | None:
        """Canonical metadata for one video link, or None if it cannot be read."""
        return await asyncio.to_thread(self._extract_video_sync, url)

    async def search_top(self, query: str) -> YtDlpVideoInfo | None:
        """The first search hit for ``query``, or None when there are no results."""
        results = await asyncio.to_thread(self._search_sync, query, 1)
        return results[0] if results else None

    async def extract_stream(self, url: str) -> AudioFormatInfo | None:
        """Resolve the direct audio URL for a video. Extraction errors propagate."""
        info = await asyncio.to_thread(self._extract_stream_sync, url)
        if info is None:
            return None
        return self.select_audio_format(info)

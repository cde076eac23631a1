"""Tests for YtDlpClient with YoutubeDL patched out."""

from unittest.mock import MagicMock, patch

import pytest

from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.infrastructure.audio.models import YtDlpVideoInfo
from discord_jukebox.infrastructure.audio.ytdlp_client import YtDlpClient

WATCH_URL = "https://www.youtube.com/watch?v=abc"

VIDEO_DATA = {
    "id": "abc",
    "webpage_url": WATCH_URL,
    "title": "A Song",
    "duration": 200,
    "url": "https://rr1.googlevideo.com/audio",
    "acodec": "opus",
    "http_headers": {"User-Agent": "yt-dlp"},
}


@pytest.fixture
def mock_ydl():
    """Patch YoutubeDL so extract_info returns whatever the test configures."""
    with patch("discord_jukebox.infrastructure.audio.ytdlp_client.YoutubeDL") as ydl_cls:
        ydl = MagicMock()
        ydl_cls.return_value.__enter__.return_value = ydl
        ydl.extract_info.return_value = VIDEO_DATA
        yield ydl_cls, ydl


class TestExtractVideo:
    """Tests for metadata extraction and caching."""

    async def test_extract_video(self, mock_ydl):
        _, ydl = mock_ydl
        client = YtDlpClient()

        info = await client.extract_video(WATCH_URL)

        assert info.title == "A Song"
        assert info.canonical_url == WATCH_URL
        ydl.extract_info.assert_called_once_with(WATCH_URL, download=False)

    async def test_results_are_cached(self, mock_ydl):
        _, ydl = mock_ydl
        client = YtDlpClient()

        await client.extract_video(WATCH_URL)
        await client.extract_video(WATCH_URL)

        assert ydl.extract_info.call_count == 1

    async def test_cache_disabled_with_zero_ttl(self, mock_ydl):
        _, ydl = mock_ydl
        client = YtDlpClient(AudioSettings(metadata_cache_ttl_s=0))

        await client.extract_video(WATCH_URL)
        await client.extract_video(WATCH_URL)

        assert ydl.extract_info.call_count == 2

    async def test_clear_cache(self, mock_ydl):
        client = YtDlpClient()
        await client.extract_video(WATCH_URL)

        assert client.clear_cache() == 1
        assert client.clear_cache() == 0

    async def test_playlist_result_uses_first_entry(self, mock_ydl):
        _, ydl = mock_ydl
        ydl.extract_info.return_value = {"_type": "playlist", "entries": [VIDEO_DATA]}

        info = await YtDlpClient().extract_video(WATCH_URL)

        assert info.title == "A Song"

    async def test_extraction_error_returns_none(self, mock_ydl):
        _, ydl = mock_ydl
        ydl.extract_info.side_effect = Exception("Video unavailable")

        assert await YtDlpClient().extract_video(WATCH_URL) is None


class TestSearchTop:
    """Tests for top-1 search."""

    async def test_search_uses_flat_extraction(self, mock_ydl):
        ydl_cls, ydl = mock_ydl
        ydl.extract_info.return_value = {"entries": [{"url": WATCH_URL, "title": "Hit"}]}

        hit = await YtDlpClient().search_top("some song")

        assert hit.canonical_url == WATCH_URL
        ydl.extract_info.assert_called_once_with("ytsearch1:some song", download=False)
        params = ydl_cls.call_args.kwargs["params"]
        assert params["extract_flat"] == "in_playlist"

    async def test_no_results(self, mock_ydl):
        _, ydl = mock_ydl
        ydl.extract_info.return_value = {"entries": []}

        assert await YtDlpClient().search_top("zzzz") is None

    async def test_search_error_returns_none(self, mock_ydl):
        _, ydl = mock_ydl
        ydl.extract_info.side_effect = Exception("network down")

        assert await YtDlpClient().search_top("zzzz") is None


class TestExtractStream:
    """Tests for stream URL extraction."""

    async def test_uses_selected_format(self, mock_ydl):
        ydl_cls, _ = mock_ydl

        selected = await YtDlpClient(AudioSettings(ytdlp_format="bestaudio")).extract_stream(WATCH_URL)

        assert selected.url == "https://rr1.googlevideo.com/audio"
        assert selected.acodec == "opus"
        assert selected.http_headers == {"User-Agent": "yt-dlp"}
        assert ydl_cls.call_args.kwargs["params"]["format"] == "bestaudio"

    async def test_errors_propagate(self, mock_ydl):
        _, ydl = mock_ydl
        ydl.extract_info.side_effect = RuntimeError("403")

        with pytest.raises(RuntimeError):
            await YtDlpClient().extract_stream(WATCH_URL)


class TestSelectAudioFormat:
    def test_falls_back_to_last_audio_format(self):
        info = YtDlpVideoInfo.model_validate(
            {
                "formats": [
                    {"url": "https://a/1", "acodec": "mp4a"},
                    {"url": "https://a/2", "acodec": "opus"},
                    {"url": "https://v/3", "acodec": "none"},
                ]
            }
        )

        selected = YtDlpClient.select_audio_format(info)

        assert selected.url == "https://a/2"

    def test_nothing_playable(self):
        info = YtDlpVideoInfo.model_validate({"formats": [{"url": "https://v/1", "acodec": "none"}]})

        assert YtDlpClient.select_audio_format(info) is None

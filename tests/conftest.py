import asyncio

import pytest

from discord_jukebox.application.interfaces.stream_provider import AudioStream, StreamProvider
from discord_jukebox.application.interfaces.voice import PlayerSession, VoiceGateway, VoiceSession
from discord_jukebox.domain.music.entities import Song
from discord_jukebox.domain.shared.events import EventBus
from discord_jukebox.domain.shared.exceptions import (
    PlayerRuntimeError,
    StreamOpenError,
    VoiceConnectionError,
)

# ============================================================================
# Voice / Player Fakes
# ============================================================================


class FakePlayer(PlayerSession):
    """In-memory player. ``finish()`` simulates the source ending on its own."""

    def __init__(self) -> None:
        self.played: list[AudioStream] = []
        self.on_end = None
        self.stop_calls = 0
        self.pause_calls = 0
        self.resume_calls = 0
        self.fail_next_play = False
        self._pending: list[asyncio.Task] = []

    def play(self, stream, on_end) -> None:
        if self.fail_next_play:
            self.fail_next_play = False
            raise PlayerRuntimeError("player refused")
        self.played.append(stream)
        self.on_end = on_end

    def stop(self) -> None:
        self.stop_calls += 1
        # Like discord.py, stopping still fires the end callback, from elsewhere.
        on_end, self.on_end = self.on_end, None
        if on_end is not None:
            self._pending.append(asyncio.get_running_loop().create_task(on_end(None)))

    def pause(self) -> None:
        self.pause_calls += 1

    def resume(self) -> None:
        self.resume_calls += 1

    async def finish(self, error: Exception | None = None) -> None:
        on_end, self.on_end = self.on_end, None
        assert on_end is not None, "nothing is bound to the player"
        await on_end(error)

    async def settle(self) -> None:
        """Wait for end callbacks scheduled by ``stop()``."""
        while self._pending:
            pending, self._pending = self._pending, []
            await asyncio.gather(*pending)

    @property
    def played_urls(self) -> list[str]:
        return [s.stream_url for s in self.played]


class FakeVoiceSession(VoiceSession):
    def __init__(self, guild_id: int, channel_id: int) -> None:
        self.guild_id = guild_id
        self._channel_id = channel_id
        self.player = FakePlayer()
        self.disconnected = False
        # Flip to False to simulate Discord dropping the bot from voice.
        self.connected = True

    @property
    def channel_id(self) -> int | None:
        return self._channel_id

    def is_connected(self) -> bool:
        return self.connected and not self.disconnected

    def create_player(self) -> PlayerSession:
        return self.player

    async def disconnect(self) -> None:
        self.disconnected = True


class FakeVoiceGateway(VoiceGateway):
    def __init__(self) -> None:
        self.connect_calls = 0
        self.sessions: list[FakeVoiceSession] = []
        self.fail_channels: set[int] = set()

    async def connect(self, guild_id: int, channel_id: int) -> VoiceSession:
        self.connect_calls += 1
        # Yield so concurrent callers can interleave.
        await asyncio.sleep(0)
        if channel_id in self.fail_channels:
            raise VoiceConnectionError(channel_id)
        session = FakeVoiceSession(guild_id, channel_id)
        self.sessions.append(session)
        return session

    @property
    def last_session(self) -> FakeVoiceSession:
        return self.sessions[-1]


class FakeStreamProvider(StreamProvider):
    """Opens streams instantly unless the URL is marked failing or gated."""

    def __init__(self) -> None:
        self.opened: list[str] = []
        self.failing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, source_url: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[source_url] = event
        return event

    async def open(self, source_url: str) -> AudioStream:
        self.opened.append(source_url)
        gate = self.gates.get(source_url)
        if gate is not None:
            await gate.wait()
        if source_url in self.failing:
            raise StreamOpenError(source_url, "boom")
        return AudioStream(stream_url=f"{source_url}/stream", codec="opus")


# ============================================================================
# Fixtures
# ============================================================================


def make_song(n: int | str = 1, **overrides) -> Song:
    data = {
        "title": f"Song {n}",
        "source_url": f"https://www.youtube.com/watch?v=song{n}",
        "duration": "3:00",
        "requested_by": "alice",
    }
    data.update(overrides)
    return Song(**data)


class RecordingBus(EventBus):
    """EventBus that also keeps every published event in order."""

    def __init__(self) -> None:
        super().__init__()
        self.published = []

    async def publish(self, event) -> None:
        self.published.append(event)
        await super().publish(event)

    def of_type(self, event_type):
        return [e for e in self.published if isinstance(e, event_type)]


@pytest.fixture
def song_factory():
    return make_song


@pytest.fixture
def event_bus():
    return RecordingBus()


@pytest.fixture
def stream_provider():
    return FakeStreamProvider()


@pytest.fixture
def voice_gateway():
    return FakeVoiceGateway()

"""Runtime configuration.

Every value comes from the environment (or a ``.env`` file) and is validated
once at startup. Nested groups use a double underscore, so
``AUDIO__MAX_CONSECUTIVE_FAILURES=3`` sets ``settings.audio.max_consecutive_failures``.
The resulting objects are frozen.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages

_MAX_SNOWFLAKE = 2**64
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

class DiscordSettings(BaseModel):
    """Gateway credentials and slash-command registration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    test_guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("test_guild_ids", "test_guilds")
    )
    sync_on_startup: bool = True

    @field_validator("test_guild_ids", mode="before")
    @classmethod
    def _check_guild_ids(cls, value: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        ids = tuple(value)
        bad = [guild_id for guild_id in ids if not 0 < int(guild_id) < _MAX_SNOWFLAKE]
        if bad:
            raise ValueError(f"Invalid Discord snowflake ID: {bad[0]}")
        return ids

class AudioSettings(BaseModel):
    """FFmpeg, yt-dlp and playback-engine tuning."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: float = Field(default=0.5, ge=0.0, le=2.0)
    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            # Stream URLs expire and drop mid-song; let FFmpeg reconnect.
            "before_options": "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5",
            "options": "-vn",
        }
    )
    ytdlp_format: str = "251/140/bestaudio[protocol^=http]/bestaudio/best"
    stream_open_timeout_s: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        validation_alias=AliasChoices("stream_open_timeout_s", "stream_timeout"),
    )
    voice_connect_timeout_s: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        validation_alias=AliasChoices("voice_connect_timeout_s", "voice_timeout"),
    )
    max_consecutive_failures: int = Field(default=5, ge=1, le=100)
    metadata_cache_ttl_s: int = Field(default=3600, ge=0)

class SpotifySettings(BaseModel):
    """Spotify Web API credentials used to bridge Spotify links to YouTube."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    client_id: str = Field(
        default="", validation_alias=AliasChoices("client_id", "spotify_client_id")
    )
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_secret", "spotify_client_secret"),
    )
    market: str = Field(default="US", min_length=2, max_length=2)

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret.get_secret_value())

class Settings(BaseSettings):
    """Top-level settings.

    Variables: ``ENVIRONMENT``, ``DEBUG``, ``LOG_LEVEL``, then ``DISCORD__*``
    (``DISCORD__TOKEN``, ``DISCORD__TEST_GUILD_IDS``, ``DISCORD__SYNC_ON_STARTUP``),
    ``AUDIO__*`` and ``SPOTIFY__*`` (``SPOTIFY__CLIENT_ID``, ``SPOTIFY__CLIENT_SECRET``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=value, valid_levels=sorted(_LOG_LEVELS))
            )
        return level

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read from ``.env`` and the environment on first call."""
    return Settings()

def clear_settings_cache() -> None:
    """Force the next ``get_settings()`` to re-read the environment."""
    get_settings.cache_clear()

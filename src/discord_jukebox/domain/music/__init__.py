"""Music bounded context: songs, guild queues and playback state."""

from discord_jukebox.domain.music.entities import GuildQueue, Song
from discord_jukebox.domain.music.value_objects import PlaybackState, format_duration

__all__ = ["Song", "GuildQueue", "PlaybackState", "format_duration"]

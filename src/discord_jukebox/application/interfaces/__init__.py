"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from discord_jukebox.application.interfaces.song_resolver import ResolverStrategy
from discord_jukebox.application.interfaces.stream_provider import AudioStream, StreamProvider
from discord_jukebox.application.interfaces.voice import (
    PlayerSession,
    TrackEndCallback,
    VoiceGateway,
    VoiceSession,
)

__all__ = [
    "ResolverStrategy",
    "AudioStream",
    "StreamProvider",
    "VoiceGateway",
    "VoiceSession",
    "PlayerSession",
    "TrackEndCallback",
]

"""Discord voice infrastructure."""

from room_playback.infrastructure.discord.voice_transport import (
    DiscordPlaybackStream,
    DiscordVoiceConnection,
    DiscordVoiceTransport,
)

__all__ = [
    "DiscordPlaybackStream",
    "DiscordVoiceConnection",
    "DiscordVoiceTransport",
]

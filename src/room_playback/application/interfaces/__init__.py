"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the playback core
and the collaborators it drives: stream resolution, voice transport,
recommendations, room lifecycle and user-facing notifications.
"""

from room_playback.application.interfaces.notifier import Notifier
from room_playback.application.interfaces.recommendation_service import RecommendationService
from room_playback.application.interfaces.room_lifecycle import RoomLifecycleOwner
from room_playback.application.interfaces.stream_source import AudioSource, StreamSource
from room_playback.application.interfaces.voice_transport import (
    PlaybackStream,
    VoiceConnection,
    VoiceTransport,
)

__all__ = [
    "AudioSource",
    "StreamSource",
    "VoiceTransport",
    "VoiceConnection",
    "PlaybackStream",
    "RecommendationService",
    "RoomLifecycleOwner",
    "Notifier",
]

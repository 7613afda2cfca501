"""Application services: state machine, room facade and registry."""

from room_playback.application.services.idle_timer import IdleTimer
from room_playback.application.services.playback_state_machine import PlaybackStateMachine
from room_playback.application.services.room_models import NowPlaying, PlayResult, PlayStatus
from room_playback.application.services.room_player import RoomPlayer
from room_playback.application.services.room_registry import RoomRegistry

__all__ = [
    "IdleTimer",
    "PlaybackStateMachine",
    "RoomPlayer",
    "RoomRegistry",
    "PlayResult",
    "PlayStatus",
    "NowPlaying",
]

"""
Playback Bounded Context

Domain logic for tracks, queue entries, the room queue and autoplay history.
"""

from room_playback.domain.playback.autoplay_history import MAX_HISTORY, AutoplayHistory
from room_playback.domain.playback.entities import (
    AUTOPLAY_REQUESTER,
    HumanRequester,
    QueueEntry,
    Requester,
    SystemRequester,
    Track,
    format_duration,
)
from room_playback.domain.playback.queue import PlaybackQueue, QueuePage
from room_playback.domain.playback.value_objects import (
    RoomState,
    StreamEndReason,
    StreamOutcome,
    TrackId,
)

__all__ = [
    # Entities
    "Track",
    "QueueEntry",
    "HumanRequester",
    "SystemRequester",
    "Requester",
    "AUTOPLAY_REQUESTER",
    "format_duration",
    # Aggregates
    "PlaybackQueue",
    "QueuePage",
    "AutoplayHistory",
    "MAX_HISTORY",
    # Value Objects
    "TrackId",
    "RoomState",
    "StreamEndReason",
    "StreamOutcome",
]

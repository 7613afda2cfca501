"""DTOs for the room player facade."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from ...domain.playback.entities import QueueEntry
from ...domain.playback.value_objects import RoomState
from ...domain.shared.types import NonNegativeInt, VolumeFloat


class PlayStatus(Enum):
    STARTED = "started"
    ENQUEUED = "enqueued"
    JOIN_FAILED = "join_failed"
    CLOSED = "closed"


class PlayResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PlayStatus
    entry: QueueEntry
    position: NonNegativeInt = 0
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status in (PlayStatus.STARTED, PlayStatus.ENQUEUED)


class NowPlaying(BaseModel):
    """Point-in-time view of a room."""

    model_config = ConfigDict(frozen=True)

    state: RoomState
    current: QueueEntry | None
    autoplay_enabled: bool
    volume: VolumeFloat
    queue_length: NonNegativeInt

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

"""Immutable value objects for the playback bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import PlainSerializer, PlainValidator

from room_playback.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class TrackId:
    """Catalog identifier of a track, typically a YouTube video ID."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)


# Serializes as plain string in JSON, stores as TrackId in the model.
TrackIdField = Annotated[
    TrackId,
    PlainValidator(lambda v: TrackId(v) if isinstance(v, str) else v),
    PlainSerializer(lambda v: v.value, return_type=str),
]


class RoomState(Enum):
    """Room playback state.

    Triggers:
    - IDLE/PENDING_LEAVE -> PLAYING (start playing)
    - PLAYING -> PLAYING (advance to the next track)
    - PLAYING -> PENDING_LEAVE (nothing left to play, idle timer armed)
    - IDLE/PENDING_LEAVE -> PENDING_LEAVE (start playing found nothing playable)
    - any -> IDLE (join failed, or an advance lost its connection)
    """

    IDLE = "idle"
    PLAYING = "playing"
    PENDING_LEAVE = "pending_leave"

    @property
    def is_playing(self) -> bool:
        return self == RoomState.PLAYING

    @property
    def is_pending_leave(self) -> bool:
        return self == RoomState.PENDING_LEAVE


class StreamEndReason(Enum):
    """Reasons a stream can end without error."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    STOPPED = "stopped"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class StreamOutcome:
    """The single terminal event of a playback stream.

    Exactly one of ``reason`` (ended) or ``error`` (errored) is set.
    """

    reason: StreamEndReason | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if (self.reason is None) == (self.error is None):
            raise ValueError(ErrorMessages.INVALID_STREAM_OUTCOME)

    @classmethod
    def ended(cls, reason: StreamEndReason = StreamEndReason.COMPLETED) -> StreamOutcome:
        return cls(reason=reason)

    @classmethod
    def errored(cls, error: BaseException) -> StreamOutcome:
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

"""Core domain entities for the playback bounded context."""

from __future__ import annotations

from typing import Annotated, Final, Literal

from pydantic import BaseModel, ConfigDict, Field

from room_playback.domain.playback.value_objects import TrackIdField
from room_playback.domain.shared.datetime_utils import utcnow
from room_playback.domain.shared.types import (
    DurationSeconds,
    NonEmptyStr,
    TrackTitleStr,
    UserIdField,
    UtcDatetimeField,
)

AUTOPLAY_LABEL: Final[str] = "Autoplay"


def format_duration(seconds: int) -> str:
    """Format a duration as M:SS, or H:MM:SS once it reaches an hour."""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class Track(BaseModel):
    """Immutable value object representing a playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: TrackIdField
    title: TrackTitleStr
    duration_seconds: DurationSeconds = 0
    source_label: str = ""
    thumbnail_ref: str = ""

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.duration_seconds)

    @property
    def display_title(self) -> str:
        """Get display title with duration if available."""
        if self.duration_seconds:
            return f"{self.title} [{self.duration_formatted}]"
        return self.title


# === Requester identity ===


class HumanRequester(BaseModel):
    """A user who asked for a track."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["human"] = "human"
    user_id: UserIdField
    display_name: NonEmptyStr

    @property
    def label(self) -> str:
        return self.display_name


class SystemRequester(BaseModel):
    """The room itself, queueing on a user's behalf (autoplay)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["system"] = "system"
    source: Literal["autoplay"] = "autoplay"

    @property
    def label(self) -> str:
        return AUTOPLAY_LABEL


Requester = Annotated[HumanRequester | SystemRequester, Field(discriminator="kind")]

AUTOPLAY_REQUESTER: Final[SystemRequester] = SystemRequester()


class QueueEntry(BaseModel):
    """A track paired with who requested it and when."""

    model_config = ConfigDict(frozen=True)

    track: Track
    requester: Requester
    enqueued_at: UtcDatetimeField = Field(default_factory=utcnow)

    @classmethod
    def autoplay(cls, track: Track) -> QueueEntry:
        return cls(track=track, requester=AUTOPLAY_REQUESTER)

    @property
    def requester_id(self) -> int | None:
        if isinstance(self.requester, HumanRequester):
            return self.requester.user_id
        return None

    @property
    def requester_label(self) -> str:
        return self.requester.label

    @property
    def is_autoplay(self) -> bool:
        return isinstance(self.requester, SystemRequester)

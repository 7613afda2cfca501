"""Port interface for turning a track id into a playable audio source."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from room_playback.domain.playback.value_objects import TrackIdField
from room_playback.domain.shared.types import NonEmptyStr


class AudioSource(BaseModel):
    """A resolved, directly streamable location for a track."""

    model_config = ConfigDict(frozen=True)

    track_id: TrackIdField
    stream_url: NonEmptyStr
    title: str = ""


class StreamSource(ABC):
    """Interface for resolving tracks to audio sources."""

    @abstractmethod
    async def open_stream(self, track_id: TrackIdField) -> AudioSource:
        """Resolve a track to an audio source.

        Raises:
            StreamUnavailableError: The track cannot be resolved.
        """
        ...

"""Port interfaces for voice connections and the streams they play."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from room_playback.domain.shared.types import ChannelIdField, RoomIdField

if TYPE_CHECKING:
    from ...domain.playback.value_objects import StreamEndReason, StreamOutcome
    from .stream_source import AudioSource


class PlaybackStream(ABC):
    """A stream being played on a voice connection.

    A stream reaches exactly one terminal outcome, either ended (with a
    reason) or errored (with a cause), observed through ``wait_finished``.
    """

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        ...

    @abstractmethod
    def stop(self, reason: StreamEndReason) -> None:
        """Ask the stream to end; the outcome carries ``reason``.

        Stopping an already finished or already stopping stream is a no-op.
        """
        ...

    @abstractmethod
    async def wait_finished(self) -> StreamOutcome:
        """Wait for and return the stream's terminal outcome."""
        ...


class VoiceConnection(ABC):
    """An established connection to a voice channel."""

    @property
    @abstractmethod
    def channel_id(self) -> ChannelIdField:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    async def play(self, source: AudioSource, *, volume: float) -> PlaybackStream:
        """Start playing a source at the given volume.

        Raises:
            StreamUnavailableError: The source could not be started.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...


class VoiceTransport(ABC):
    """Interface for joining voice channels."""

    @abstractmethod
    async def join(self, room_id: RoomIdField, channel_id: ChannelIdField) -> VoiceConnection:
        """Join (or move to) a voice channel in a room.

        Raises:
            JoinFailedError: The channel could not be joined.
        """
        ...

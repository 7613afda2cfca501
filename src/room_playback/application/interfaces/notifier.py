"""Port interface for user-facing playback notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from room_playback.domain.shared.types import RoomIdField

if TYPE_CHECKING:
    from ...domain.playback.entities import QueueEntry
    from ...domain.shared.exceptions import PlaybackError


class Notifier(ABC):
    """Receives playback events for rendering.

    Calls are fire-and-forget from the playback core; a failing notifier
    never affects playback.
    """

    @abstractmethod
    async def track_started(self, room_id: RoomIdField, entry: QueueEntry) -> None:
        ...

    @abstractmethod
    async def track_enqueued(self, room_id: RoomIdField, entry: QueueEntry, position: int) -> None:
        ...

    @abstractmethod
    async def autoplay_toggled(self, room_id: RoomIdField, enabled: bool) -> None:
        ...

    @abstractmethod
    async def skip_requested(self, room_id: RoomIdField, entry: QueueEntry | None) -> None:
        ...

    @abstractmethod
    async def playback_failed(
        self, room_id: RoomIdField, error: PlaybackError, entry: QueueEntry | None = None
    ) -> None:
        ...

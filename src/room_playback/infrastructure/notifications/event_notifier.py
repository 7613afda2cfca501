"""Notifier that republishes playback notifications as domain events."""

from __future__ import annotations

from room_playback.application.interfaces.notifier import Notifier
from room_playback.domain.playback.entities import QueueEntry
from room_playback.domain.shared.events import (
    AutoplayToggled,
    EventBus,
    PlaybackFailed,
    SkipRequested,
    TrackEnqueued,
    TrackStarted,
    get_event_bus,
)
from room_playback.domain.shared.exceptions import PlaybackError
from room_playback.domain.shared.types import RoomIdField


class EventBusNotifier(Notifier):
    """Publishes each notification on the in-process event bus.

    Presentation layers (embeds, chat messages) subscribe to the events.
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus

    @property
    def _bus(self) -> EventBus:
        return self._event_bus or get_event_bus()

    async def track_started(self, room_id: RoomIdField, entry: QueueEntry) -> None:
        await self._bus.publish(
            TrackStarted(
                room_id=room_id,
                track_id=entry.track.id,
                track_title=entry.track.title,
                duration_seconds=entry.track.duration_seconds,
                requester_label=entry.requester_label,
                is_autoplay=entry.is_autoplay,
            )
        )

    async def track_enqueued(self, room_id: RoomIdField, entry: QueueEntry, position: int) -> None:
        await self._bus.publish(
            TrackEnqueued(
                room_id=room_id,
                track_id=entry.track.id,
                track_title=entry.track.title,
                requester_label=entry.requester_label,
                queue_position=position,
            )
        )

    async def autoplay_toggled(self, room_id: RoomIdField, enabled: bool) -> None:
        await self._bus.publish(AutoplayToggled(room_id=room_id, enabled=enabled))

    async def skip_requested(self, room_id: RoomIdField, entry: QueueEntry | None) -> None:
        await self._bus.publish(
            SkipRequested(
                room_id=room_id,
                track_id=entry.track.id if entry else None,
                track_title=entry.track.title if entry else "",
            )
        )

    async def playback_failed(
        self, room_id: RoomIdField, error: PlaybackError, entry: QueueEntry | None = None
    ) -> None:
        await self._bus.publish(
            PlaybackFailed(
                room_id=room_id,
                error_code=error.code,
                message=error.message,
                track_id=entry.track.id if entry else None,
            )
        )

"""Room Registry - creates, tracks and drops one RoomPlayer per room."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...config.settings import PlaybackSettings
from ...domain.shared.events import EventBus, RoomDropped, get_event_bus
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import RoomIdField
from ..interfaces.room_lifecycle import RoomLifecycleOwner
from .room_player import RoomPlayer

if TYPE_CHECKING:
    from ..interfaces.notifier import Notifier
    from ..interfaces.recommendation_service import RecommendationService
    from ..interfaces.stream_source import StreamSource
    from ..interfaces.voice_transport import VoiceTransport

logger = logging.getLogger(__name__)

IDLE_TIMEOUT_REASON = "idle timeout"


class RoomRegistry(RoomLifecycleOwner):
    """Process-wide map of room id to player.

    Rooms are independent; the registry only creates them on first use and
    forgets them when their idle timeout drops them.
    """

    def __init__(
        self,
        *,
        stream_source: StreamSource,
        voice_transport: VoiceTransport,
        recommendation_service: RecommendationService,
        notifier: Notifier,
        settings: PlaybackSettings | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._stream_source = stream_source
        self._transport = voice_transport
        self._recommendations = recommendation_service
        self._notifier = notifier
        self._settings = settings or PlaybackSettings()
        self._event_bus = event_bus
        self._rooms: dict[int, RoomPlayer] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    @property
    def room_ids(self) -> list[int]:
        return list(self._rooms)

    def get(self, room_id: RoomIdField) -> RoomPlayer | None:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: RoomIdField) -> RoomPlayer:
        player = self._rooms.get(room_id)
        if player is None or player.is_closed:
            player = RoomPlayer(
                room_id=room_id,
                stream_source=self._stream_source,
                voice_transport=self._transport,
                recommendation_service=self._recommendations,
                lifecycle_owner=self,
                notifier=self._notifier,
                settings=self._settings,
            )
            self._rooms[room_id] = player
            logger.debug(LogTemplates.ROOM_CREATED, room_id)
        return player

    async def drop_room(self, room_id: RoomIdField, reason: str = IDLE_TIMEOUT_REASON) -> None:
        """Close and forget a room. Unknown rooms are ignored."""
        player = self._rooms.pop(room_id, None)
        if player is None:
            logger.debug(LogTemplates.ROOM_DROP_UNKNOWN, room_id)
            return

        await player.close()
        logger.info(LogTemplates.ROOM_DROPPED, room_id, reason)
        await self._bus.publish(RoomDropped(room_id=room_id, reason=reason))

    async def disconnect_all(self) -> int:
        """Disconnect every room from voice, keeping queues and history."""
        players = list(self._rooms.values())
        for player in players:
            await player.disconnect()
        logger.info(LogTemplates.ROOMS_DISCONNECTED_ALL, len(players))
        return len(players)

    async def close_all(self) -> int:
        players = list(self._rooms.values())
        self._rooms.clear()
        for player in players:
            try:
                await player.close()
            except Exception:
                logger.exception(LogTemplates.ROOM_CLOSE_FAILED, player.room_id)
        logger.info(LogTemplates.ROOMS_CLOSED_ALL, len(players))
        return len(players)

    @property
    def _bus(self) -> EventBus:
        return self._event_bus or get_event_bus()

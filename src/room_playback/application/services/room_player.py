"""Room Player - command facade for one room's playback."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...config.settings import PlaybackSettings
from ...domain.playback.autoplay_history import AutoplayHistory
from ...domain.playback.entities import QueueEntry, Requester, Track
from ...domain.playback.queue import PlaybackQueue, QueuePage
from ...domain.shared.exceptions import InvalidOperationError, JoinFailedError, RoomClosedError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import ChannelIdField, RoomIdField
from .playback_state_machine import PlaybackStateMachine
from .room_models import NowPlaying, PlayResult, PlayStatus

if TYPE_CHECKING:
    from ..interfaces.notifier import Notifier
    from ..interfaces.recommendation_service import RecommendationService
    from ..interfaces.room_lifecycle import RoomLifecycleOwner
    from ..interfaces.stream_source import StreamSource
    from ..interfaces.voice_transport import VoiceTransport

logger = logging.getLogger(__name__)


class RoomPlayer:
    """Owns a room's queue and autoplay history and drives its state machine.

    Errors from the state machine are turned into ``PlayResult`` values;
    nothing raised by collaborators escapes this class.
    """

    def __init__(
        self,
        *,
        room_id: RoomIdField,
        stream_source: StreamSource,
        voice_transport: VoiceTransport,
        recommendation_service: RecommendationService,
        lifecycle_owner: RoomLifecycleOwner,
        notifier: Notifier,
        settings: PlaybackSettings | None = None,
    ) -> None:
        self._settings = settings or PlaybackSettings()
        self._notifier = notifier
        self._queue = PlaybackQueue()
        self._history = AutoplayHistory(self._settings.max_autoplay_history)
        self._machine = PlaybackStateMachine(
            room_id=room_id,
            queue=self._queue,
            history=self._history,
            stream_source=stream_source,
            voice_transport=voice_transport,
            recommendation_service=recommendation_service,
            lifecycle_owner=lifecycle_owner,
            notifier=notifier,
            settings=self._settings,
        )

    @property
    def room_id(self) -> RoomIdField:
        return self._machine.room_id

    @property
    def machine(self) -> PlaybackStateMachine:
        return self._machine

    @property
    def queue(self) -> PlaybackQueue:
        return self._queue

    @property
    def history(self) -> AutoplayHistory:
        return self._history

    @property
    def is_closed(self) -> bool:
        return self._machine.is_closed

    async def play(
        self, requester: Requester, track: Track, channel_id: ChannelIdField
    ) -> PlayResult:
        """Start ``track`` now if the room is silent, otherwise queue it."""
        entry = QueueEntry(track=track, requester=requester)

        if self._machine.is_streaming:
            return self._enqueue_result(entry)

        try:
            await self._machine.start_playing(entry, channel_id)
        except InvalidOperationError:
            # Another start won the lock while this one waited.
            logger.debug(LogTemplates.PLAY_FALLBACK_ENQUEUE, self.room_id, track.title)
            return self._enqueue_result(entry)
        except JoinFailedError as exc:
            self._machine.notify(self._notifier.playback_failed(self.room_id, exc, entry))
            return PlayResult(status=PlayStatus.JOIN_FAILED, entry=entry, message=exc.message)
        except RoomClosedError as exc:
            logger.info(LogTemplates.PLAY_REJECTED_CLOSED, self.room_id)
            return PlayResult(status=PlayStatus.CLOSED, entry=entry, message=exc.message)

        return PlayResult(status=PlayStatus.STARTED, entry=entry)

    async def start_playing(self, entry: QueueEntry, channel_id: ChannelIdField) -> None:
        await self._machine.start_playing(entry, channel_id)

    def enqueue(self, entry: QueueEntry) -> int:
        return self._machine.enqueue(entry)

    def skip(self) -> QueueEntry | None:
        return self._machine.skip()

    def toggle_autoplay(self) -> bool:
        return self._machine.toggle_autoplay()

    def set_volume(self, volume: float) -> float:
        return self._machine.set_volume(volume)

    async def disconnect(self) -> None:
        await self._machine.disconnect()

    async def close(self) -> None:
        await self._machine.close()

    def page(self, page_number: int = 1) -> QueuePage:
        return self._queue.page(page_number, self._settings.queue_page_size)

    def now_playing(self) -> NowPlaying:
        return NowPlaying(
            state=self._machine.state,
            current=self._machine.current_entry,
            autoplay_enabled=self._machine.autoplay_enabled,
            volume=self._machine.volume,
            queue_length=len(self._queue),
        )

    def _enqueue_result(self, entry: QueueEntry) -> PlayResult:
        try:
            position = self._machine.enqueue(entry)
        except RoomClosedError as exc:
            return PlayResult(status=PlayStatus.CLOSED, entry=entry, message=exc.message)
        return PlayResult(status=PlayStatus.ENQUEUED, entry=entry, position=position)

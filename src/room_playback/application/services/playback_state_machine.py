"""Per-room playback state machine - the one place that decides what plays next."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from ...config.settings import PlaybackSettings
from ...domain.playback.entities import QueueEntry
from ...domain.playback.value_objects import RoomState, StreamEndReason, StreamOutcome
from ...domain.shared.exceptions import (
    InvalidOperationError,
    JoinFailedError,
    NoRecommendationError,
    PlaybackError,
    RoomClosedError,
    StreamRuntimeError,
    StreamUnavailableError,
)
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import ChannelIdField, RoomIdField
from .idle_timer import IdleTimer

if TYPE_CHECKING:
    from ...domain.playback.autoplay_history import AutoplayHistory
    from ...domain.playback.queue import PlaybackQueue
    from ..interfaces.notifier import Notifier
    from ..interfaces.recommendation_service import RecommendationService
    from ..interfaces.room_lifecycle import RoomLifecycleOwner
    from ..interfaces.stream_source import StreamSource
    from ..interfaces.voice_transport import PlaybackStream, VoiceConnection, VoiceTransport

logger = logging.getLogger(__name__)


class _StartOutcome(Enum):
    STARTED = "started"
    FAILED = "failed"
    DETACHED = "detached"


class PlaybackStateMachine:
    """Coordinates current track, queue, autoplay, volume and idle timeout for one room.

    ``start_playing``, the advance that follows a stream's end, and the idle
    timeout handler all run under one per-room ``asyncio.Lock``, so at most one
    "what plays next" decision is in flight. Each stream yields exactly one
    outcome, consumed by a single watcher task; outcomes for a stream that is
    no longer current are ignored.

    ``enqueue``, ``toggle_autoplay`` and ``set_volume`` are synchronous and do
    not take the lock. The advance only touches the queue and the autoplay
    history between await points, which keeps them atomic with respect to it.
    """

    def __init__(
        self,
        *,
        room_id: RoomIdField,
        queue: PlaybackQueue,
        history: AutoplayHistory,
        stream_source: StreamSource,
        voice_transport: VoiceTransport,
        recommendation_service: RecommendationService,
        lifecycle_owner: RoomLifecycleOwner,
        notifier: Notifier,
        settings: PlaybackSettings | None = None,
    ) -> None:
        self._room_id = room_id
        self._queue = queue
        self._history = history
        self._stream_source = stream_source
        self._transport = voice_transport
        self._recommendations = recommendation_service
        self._lifecycle_owner = lifecycle_owner
        self._notifier = notifier
        self._settings = settings or PlaybackSettings()

        self._state = RoomState.IDLE
        self._autoplay_enabled = False
        self._current: QueueEntry | None = None
        self._volume = self._settings.default_volume

        self._connection: VoiceConnection | None = None
        self._stream: PlaybackStream | None = None
        self._skipped_stream: PlaybackStream | None = None
        self._watcher: asyncio.Task[None] | None = None

        self._advance_lock = asyncio.Lock()
        self._idle_timer = IdleTimer(self._settings.idle_timeout_seconds, self._on_idle_timeout)
        self._closed = False
        self._notifications: set[asyncio.Task[None]] = set()

    # ── Read-only state ────────────────────────────────────────────────

    @property
    def room_id(self) -> RoomIdField:
        return self._room_id

    @property
    def queue(self) -> PlaybackQueue:
        return self._queue

    @property
    def history(self) -> AutoplayHistory:
        return self._history

    @property
    def state(self) -> RoomState:
        return self._state

    @property
    def current_entry(self) -> QueueEntry | None:
        return self._current

    @property
    def autoplay_enabled(self) -> bool:
        return self._autoplay_enabled

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def is_streaming(self) -> bool:
        """True while a stream is live on the voice connection."""
        return self._stream is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_leave_deadline(self) -> datetime | None:
        if not self._state.is_pending_leave:
            return None
        return self._idle_timer.deadline

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_connected()

    # ── Commands ───────────────────────────────────────────────────────

    async def start_playing(self, entry: QueueEntry, channel_id: ChannelIdField) -> None:
        """Join ``channel_id`` if needed and start streaming ``entry``.

        If the entry's stream cannot be opened, it is skipped and the room
        advances as if the track had errored.

        Raises:
            JoinFailedError: The channel could not be joined. The room goes IDLE
                unless it was already counting down to leave.
            InvalidOperationError: A stream is already live.
            RoomClosedError: The room is being dropped.
        """
        async with self._advance_lock:
            if self._closed:
                raise RoomClosedError(self._room_id)
            if self._stream is not None:
                raise InvalidOperationError(
                    operation="start_playing", current_state=self._state.value
                )

            try:
                await self._ensure_connection(channel_id)
            except JoinFailedError as exc:
                logger.warning(LogTemplates.JOIN_FAILED, channel_id, self._room_id, exc.message)
                # A pending leave keeps counting down.
                if not self._state.is_pending_leave:
                    self._current = None
                    self._set_state(RoomState.IDLE)
                raise

            self._idle_timer.cancel()
            self._current = entry

            outcome = await self._begin_stream(entry)
            if outcome is _StartOutcome.FAILED:
                await self._advance_locked(entry)
            elif outcome is _StartOutcome.DETACHED:
                self._current = None
                self._set_state(RoomState.IDLE)
                logger.warning(LogTemplates.START_DETACHED, self._room_id, entry.track.title)

    def enqueue(self, entry: QueueEntry) -> int:
        """Append to the queue and return the one-based position.

        Never interrupts the current track. Clears the autoplay history.
        """
        if self._closed:
            raise RoomClosedError(self._room_id)

        position = self._queue.enqueue(entry)
        self._history.clear()
        logger.info(LogTemplates.QUEUE_ENQUEUED, entry.track.title, position, self._room_id)
        self.notify(self._notifier.track_enqueued(self._room_id, entry, position))
        return position

    def skip(self) -> QueueEntry | None:
        """Stop the live stream; its end triggers the advance.

        Returns the skipped entry, or None when nothing was streaming (or the
        stream is already being skipped).
        """
        stream = self._stream
        if not self._state.is_playing or stream is None or stream is self._skipped_stream:
            logger.debug(LogTemplates.SKIP_IGNORED, self._room_id, self._state.value)
            return None

        entry = self._current
        self._skipped_stream = stream
        logger.info(LogTemplates.SKIP_REQUESTED, entry.track.title if entry else "?", self._room_id)
        self.notify(self._notifier.skip_requested(self._room_id, entry))
        stream.stop(StreamEndReason.SKIPPED)
        return entry

    def toggle_autoplay(self) -> bool:
        """Flip autoplay mode, clear the autoplay history and return the new mode."""
        self._autoplay_enabled = not self._autoplay_enabled
        self._history.clear()
        logger.info(LogTemplates.AUTOPLAY_TOGGLED, self._autoplay_enabled, self._room_id)
        self.notify(self._notifier.autoplay_toggled(self._room_id, self._autoplay_enabled))
        return self._autoplay_enabled

    def set_volume(self, volume: float) -> float:
        """Clamp and store the volume, applying it to the live stream if any."""
        clamped = max(0.0, min(1.0, float(volume)))
        self._volume = clamped

        stream = self._stream
        if stream is not None:
            try:
                stream.set_volume(clamped)
            except Exception as e:
                logger.warning(LogTemplates.VOLUME_APPLY_FAILED, self._room_id, e)

        logger.debug(LogTemplates.VOLUME_CHANGED, clamped, self._room_id)
        return clamped

    async def disconnect(self) -> None:
        """Tear down the voice connection, keeping queue and history.

        This is an operator action, not a track end: it never advances.
        """
        self._detach_stream(StreamEndReason.DISCONNECTED)

        connection, self._connection = self._connection, None
        if connection is None:
            return

        try:
            await connection.disconnect()
            logger.info(LogTemplates.ROOM_DISCONNECTED, self._room_id)
        except Exception:
            logger.exception(LogTemplates.DISCONNECT_FAILED, self._room_id)

    async def close(self) -> None:
        """Release everything the room holds; the room accepts no more commands."""
        self._closed = True
        self._idle_timer.cancel()

        watcher, self._watcher = self._watcher, None
        self._detach_stream(StreamEndReason.STOPPED)
        if watcher is not None and watcher is not asyncio.current_task():
            watcher.cancel()

        await self.disconnect()
        logger.debug(LogTemplates.ROOM_CLOSED, self._room_id)

    # ── Stream outcome handlers ────────────────────────────────────────

    async def on_track_end(
        self,
        reason: StreamEndReason = StreamEndReason.COMPLETED,
        *,
        stream: PlaybackStream | None = None,
    ) -> None:
        """Advance after the current track ended (naturally or by skip).

        ``stream`` identifies which stream ended; an outcome for a stream that
        is no longer current is ignored. Without ``stream`` the live stream is
        assumed.
        """
        async with self._advance_lock:
            if not self._accepts_outcome(stream):
                return

            finished = self._current
            logger.info(
                LogTemplates.TRACK_FINISHED,
                finished.track.title if finished else "?",
                self._room_id,
                reason.value,
            )
            self._release_stream(stream, reason)
            await self._advance_locked(finished)

    async def on_track_error(
        self,
        error: BaseException,
        *,
        stream: PlaybackStream | None = None,
    ) -> None:
        """Report a mid-playback failure, then advance exactly as on a normal end.

        The failed track is not retried.
        """
        async with self._advance_lock:
            if not self._accepts_outcome(stream):
                return

            finished = self._current
            failure = (
                error
                if isinstance(error, PlaybackError)
                else StreamRuntimeError(str(error) or error.__class__.__name__, cause=error)
            )
            logger.warning(
                LogTemplates.TRACK_ERRORED,
                finished.track.title if finished else "?",
                self._room_id,
                failure.message,
            )
            self.notify(self._notifier.playback_failed(self._room_id, failure, finished))
            self._release_stream(stream, StreamEndReason.STOPPED)
            await self._advance_locked(finished)

    # ── Internals (call with the advance lock held) ────────────────────

    def _accepts_outcome(self, stream: PlaybackStream | None) -> bool:
        if self._closed or self._stream is None or not self._state.is_playing:
            logger.debug(LogTemplates.OUTCOME_IGNORED_NOT_PLAYING, self._room_id)
            return False
        if stream is not None and stream is not self._stream:
            logger.debug(LogTemplates.OUTCOME_IGNORED_STALE, self._room_id)
            return False
        return True

    def _release_stream(self, ended: PlaybackStream | None, reason: StreamEndReason) -> None:
        live, self._stream = self._stream, None
        self._skipped_stream = None
        if ended is None and live is not None:
            # Externally reported end: make sure the stream really is done.
            live.stop(reason)

    async def _advance_locked(self, finished: QueueEntry | None) -> None:
        """Pick and start the next entry, or enter PENDING_LEAVE.

        Queue head first; otherwise, with autoplay on, a recommendation
        seeded by the finished track. Entries whose stream cannot be opened
        are skipped.
        """
        autoplay_failures = 0

        while not self._closed:
            entry = self._queue.dequeue_front()

            if entry is None:
                if (
                    not self._autoplay_enabled
                    or finished is None
                    or autoplay_failures >= self._settings.max_autoplay_attempts
                ):
                    break
                entry = await self._recommend(finished)
                queued = self._queue.dequeue_front()
                if queued is not None:
                    # A user enqueued while the lookup was in flight.
                    if entry is not None:
                        logger.debug(LogTemplates.AUTOPLAY_DISCARDED, self._room_id)
                    entry = queued
                if entry is None:
                    break

            outcome = await self._begin_stream(entry)
            if outcome is _StartOutcome.STARTED:
                return
            if outcome is _StartOutcome.DETACHED:
                self._queue.restore_front(entry)
                self._current = None
                self._set_state(RoomState.IDLE)
                logger.warning(LogTemplates.ADVANCE_DETACHED, self._room_id)
                return

            if entry.is_autoplay:
                autoplay_failures += 1
            finished = entry

        if not self._closed:
            self._enter_pending_leave()

    async def _recommend(self, finished: QueueEntry) -> QueueEntry | None:
        seed = finished.track.id
        self._history.record(seed)
        exclude = self._history.exclusion_set()

        try:
            track = await self._recommendations.related_track(seed, exclude)
        except NoRecommendationError as exc:
            logger.info(LogTemplates.AUTOPLAY_EXHAUSTED, self._room_id, exc.message)
            return None
        except Exception:
            logger.exception(LogTemplates.AUTOPLAY_LOOKUP_FAILED, seed, self._room_id)
            return None

        if not self._autoplay_enabled:
            logger.debug(LogTemplates.AUTOPLAY_DISABLED_DURING_LOOKUP, self._room_id)
            return None

        logger.info(LogTemplates.AUTOPLAY_PICKED, track.title, seed, self._room_id)
        return QueueEntry.autoplay(track)

    async def _ensure_connection(self, channel_id: ChannelIdField) -> VoiceConnection:
        connection = self._connection
        if (
            connection is not None
            and connection.is_connected()
            and connection.channel_id == channel_id
        ):
            return connection

        try:
            connection = await self._transport.join(self._room_id, channel_id)
        except JoinFailedError:
            raise
        except Exception as exc:
            raise JoinFailedError(channel_id, str(exc)) from exc

        self._connection = connection
        return connection

    async def _begin_stream(self, entry: QueueEntry) -> _StartOutcome:
        connection = self._connection
        if self._closed or connection is None or not connection.is_connected():
            return _StartOutcome.DETACHED

        try:
            source = await self._stream_source.open_stream(entry.track.id)
            if self._closed or self._connection is not connection or not connection.is_connected():
                return _StartOutcome.DETACHED
            stream = await connection.play(source, volume=self._volume)
        except PlaybackError as exc:
            return self._stream_failed(entry, exc)
        except Exception as exc:
            return self._stream_failed(entry, StreamUnavailableError(str(entry.track.id), str(exc)))

        self._idle_timer.cancel()
        self._current = entry
        self._stream = stream
        self._skipped_stream = None
        self._set_state(RoomState.PLAYING)
        self._watcher = asyncio.create_task(self._watch(stream))

        logger.info(
            LogTemplates.TRACK_STARTED, entry.track.title, self._room_id, entry.requester_label
        )
        self.notify(self._notifier.track_started(self._room_id, entry))
        return _StartOutcome.STARTED

    def _stream_failed(self, entry: QueueEntry, error: PlaybackError) -> _StartOutcome:
        logger.warning(
            LogTemplates.STREAM_OPEN_FAILED, entry.track.title, self._room_id, error.message
        )
        self.notify(self._notifier.playback_failed(self._room_id, error, entry))
        return _StartOutcome.FAILED

    def _enter_pending_leave(self) -> None:
        self._current = None
        self._set_state(RoomState.PENDING_LEAVE)
        self._idle_timer.arm()
        logger.info(
            LogTemplates.ROOM_PENDING_LEAVE, self._room_id, self._idle_timer.timeout_seconds
        )

    def _set_state(self, state: RoomState) -> None:
        if state is not self._state:
            logger.debug(
                LogTemplates.ROOM_STATE_CHANGED, self._room_id, self._state.value, state.value
            )
        self._state = state

    # ── Background tasks ───────────────────────────────────────────────

    async def _watch(self, stream: PlaybackStream) -> None:
        try:
            outcome = await stream.wait_finished()
        except Exception as exc:
            outcome = StreamOutcome.errored(exc)

        if outcome.error is not None:
            await self.on_track_error(outcome.error, stream=stream)
        else:
            await self.on_track_end(outcome.reason or StreamEndReason.COMPLETED, stream=stream)

    async def _on_idle_timeout(self, token: int) -> None:
        async with self._advance_lock:
            if (
                self._closed
                or not self._state.is_pending_leave
                or token != self._idle_timer.token
            ):
                logger.debug(LogTemplates.IDLE_TIMER_STALE, self._room_id)
                return
            self._closed = True

        logger.info(LogTemplates.ROOM_IDLE_TIMEOUT, self._room_id)
        try:
            await self._lifecycle_owner.drop_room(self._room_id)
        except Exception:
            logger.exception(LogTemplates.DROP_ROOM_FAILED, self._room_id)

    def _detach_stream(self, reason: StreamEndReason) -> None:
        """Forget the live stream without advancing, then stop it."""
        stream, self._stream = self._stream, None
        self._skipped_stream = None
        if stream is None:
            return

        watcher, self._watcher = self._watcher, None
        if watcher is not None and watcher is not asyncio.current_task():
            watcher.cancel()

        try:
            stream.stop(reason)
        except Exception as e:
            logger.warning(LogTemplates.STREAM_STOP_FAILED, self._room_id, e)

    def notify(self, notification: Coroutine[Any, Any, None]) -> None:
        """Deliver a notifier call in the background; failures are only logged."""
        task = asyncio.create_task(notification)
        self._notifications.add(task)
        task.add_done_callback(self._notification_done)

    def _notification_done(self, task: asyncio.Task[None]) -> None:
        self._notifications.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(LogTemplates.NOTIFICATION_FAILED, self._room_id, exc)

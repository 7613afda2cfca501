import asyncio
from collections.abc import Set
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from room_playback.application.interfaces import (
    AudioSource,
    Notifier,
    PlaybackStream,
    RecommendationService,
    RoomLifecycleOwner,
    StreamSource,
    VoiceConnection,
    VoiceTransport,
)
from room_playback.config.settings import PlaybackSettings
from room_playback.domain.playback.entities import HumanRequester, QueueEntry, Track
from room_playback.domain.playback.value_objects import StreamEndReason, StreamOutcome, TrackId
from room_playback.domain.shared.events import reset_event_bus
from room_playback.domain.shared.exceptions import (
    JoinFailedError,
    NoRecommendationError,
    StreamUnavailableError,
)

ROOM_ID = 987654321
CHANNEL_ID = 555000111
OTHER_CHANNEL_ID = 555000222

# Short enough to keep timer tests fast, long enough that a few event loop
# turns never reach it.
TEST_IDLE_TIMEOUT = 0.05


# ============================================================================
# Helpers
# ============================================================================


def make_track(track_id: str = "track-1", title: str | None = None, duration: int = 180) -> Track:
    return Track(
        id=TrackId(track_id),
        title=title or f"Title {track_id}",
        duration_seconds=duration,
        source_label="Test Artist",
    )


def make_entry(
    track_id: str = "track-1", user_id: int = 111, display_name: str = "alice"
) -> QueueEntry:
    return QueueEntry(
        track=make_track(track_id),
        requester=HumanRequester(user_id=user_id, display_name=display_name),
    )


async def drain(turns: int = 25) -> None:
    """Let pending callbacks and tasks run without advancing the clock much."""
    for _ in range(turns):
        await asyncio.sleep(0)


# ============================================================================
# Collaborator fakes
# ============================================================================


class FakeStream(PlaybackStream):
    """Stream whose single outcome is resolved by the test."""

    def __init__(self, source: AudioSource, volume: float) -> None:
        self.source = source
        self.volume = volume
        self.stop_calls: list[StreamEndReason] = []
        self._outcome: asyncio.Future[StreamOutcome] = asyncio.get_running_loop().create_future()

    @property
    def track_id(self) -> TrackId:
        return self.source.track_id

    @property
    def is_finished(self) -> bool:
        return self._outcome.done()

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def stop(self, reason: StreamEndReason) -> None:
        self.stop_calls.append(reason)
        self._resolve(StreamOutcome.ended(reason))

    def finish(self, reason: StreamEndReason = StreamEndReason.COMPLETED) -> None:
        self._resolve(StreamOutcome.ended(reason))

    def fail(self, error: BaseException) -> None:
        self._resolve(StreamOutcome.errored(error))

    def _resolve(self, outcome: StreamOutcome) -> None:
        if not self._outcome.done():
            self._outcome.set_result(outcome)

    async def wait_finished(self) -> StreamOutcome:
        return await asyncio.shield(self._outcome)


class FakeConnection(VoiceConnection):
    def __init__(self, channel_id: int) -> None:
        self._channel_id = channel_id
        self.connected = True
        self.streams: list[FakeStream] = []
        self.disconnect_calls = 0

    @property
    def channel_id(self) -> int:
        return self._channel_id

    def is_connected(self) -> bool:
        return self.connected

    async def play(self, source: AudioSource, *, volume: float) -> FakeStream:
        if not self.connected:
            raise StreamUnavailableError(source.track_id.value, "Not connected to voice.")
        stream = FakeStream(source, volume)
        self.streams.append(stream)
        return stream

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False


class FakeTransport(VoiceTransport):
    def __init__(self) -> None:
        self.joins: list[tuple[int, int]] = []
        self.connections: list[FakeConnection] = []
        self.fail_with: Exception | None = None
        self.join_disconnected = False

    @property
    def last_connection(self) -> FakeConnection:
        return self.connections[-1]

    @property
    def streams(self) -> list[FakeStream]:
        return [s for c in self.connections for s in c.streams]

    @property
    def last_stream(self) -> FakeStream:
        return self.streams[-1]

    async def join(self, room_id: int, channel_id: int) -> FakeConnection:
        self.joins.append((room_id, channel_id))
        if self.fail_with is not None:
            raise self.fail_with
        connection = FakeConnection(channel_id)
        connection.connected = not self.join_disconnected
        self.connections.append(connection)
        return connection


class FakeStreamSource(StreamSource):
    """Opens every track except those in ``unavailable``.

    A track id in ``gates`` waits for its event before opening.
    """

    def __init__(self) -> None:
        self.opened: list[TrackId] = []
        self.unavailable: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}

    async def open_stream(self, track_id: TrackId) -> AudioSource:
        self.opened.append(track_id)
        gate = self.gates.get(track_id.value)
        if gate is not None:
            await gate.wait()
        if track_id.value in self.unavailable:
            raise StreamUnavailableError(track_id.value)
        return AudioSource(
            track_id=track_id,
            stream_url=f"https://stream.test/{track_id.value}",
            title=track_id.value,
        )


class FakeRecommendations(RecommendationService):
    """Returns queued responses in order; raises NoRecommendationError when empty.

    Set ``gate`` to an unset ``asyncio.Event`` to hold lookups in flight.
    """

    def __init__(self) -> None:
        self.responses: list[Track | Exception] = []
        self.calls: list[tuple[TrackId, frozenset[TrackId]]] = []
        self.gate: asyncio.Event | None = None

    async def related_track(self, seed_id: TrackId, exclude_ids: Set[TrackId]) -> Track:
        self.calls.append((seed_id, frozenset(exclude_ids)))
        if self.gate is not None:
            await self.gate.wait()
        if not self.responses:
            raise NoRecommendationError(str(seed_id))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingOwner(RoomLifecycleOwner):
    def __init__(self) -> None:
        self.dropped: list[int] = []

    async def drop_room(self, room_id: int) -> None:
        self.dropped.append(room_id)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_event_bus():
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def playback_settings():
    return PlaybackSettings(idle_timeout_seconds=TEST_IDLE_TIMEOUT)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def stream_source():
    return FakeStreamSource()


@pytest.fixture
def recommendations():
    return FakeRecommendations()


@pytest.fixture
def owner():
    return RecordingOwner()


@pytest.fixture
def notifier():
    return AsyncMock(spec=Notifier)


@pytest_asyncio.fixture
async def machine(
    transport, stream_source, recommendations, owner, notifier, playback_settings
):
    """A state machine wired to fakes, with its own queue and history."""
    from room_playback.application.services.playback_state_machine import PlaybackStateMachine
    from room_playback.domain.playback.autoplay_history import AutoplayHistory
    from room_playback.domain.playback.queue import PlaybackQueue

    sm = PlaybackStateMachine(
        room_id=ROOM_ID,
        queue=PlaybackQueue(),
        history=AutoplayHistory(playback_settings.max_autoplay_history),
        stream_source=stream_source,
        voice_transport=transport,
        recommendation_service=recommendations,
        lifecycle_owner=owner,
        notifier=notifier,
        settings=playback_settings,
    )
    yield sm
    await sm.close()
    await drain()


@pytest_asyncio.fixture
async def player(transport, stream_source, recommendations, owner, notifier, playback_settings):
    from room_playback.application.services.room_player import RoomPlayer

    room = RoomPlayer(
        room_id=ROOM_ID,
        stream_source=stream_source,
        voice_transport=transport,
        recommendation_service=recommendations,
        lifecycle_owner=owner,
        notifier=notifier,
        settings=playback_settings,
    )
    yield room
    await room.close()
    await drain()

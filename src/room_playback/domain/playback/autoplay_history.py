"""Bounded record of recently autoplayed tracks."""

from __future__ import annotations

from collections import deque
from typing import Final

from room_playback.domain.playback.value_objects import TrackId
from room_playback.domain.shared.exceptions import ValidationError
from room_playback.domain.shared.messages import ErrorMessages

MAX_HISTORY: Final[int] = 25


class AutoplayHistory:
    """FIFO-evicted set of track ids recently played by autoplay.

    Passed to the recommendation service as an exclusion filter so that
    autoplay does not get stuck cycling between a handful of tracks.
    """

    def __init__(self, max_size: int = MAX_HISTORY) -> None:
        if max_size < 1:
            raise ValidationError(ErrorMessages.INVALID_HISTORY_SIZE, field="max_size")
        self._max_size = max_size
        self._ids: deque[TrackId] = deque()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._ids

    @property
    def max_size(self) -> int:
        return self._max_size

    def record(self, track_id: TrackId) -> None:
        self._ids.append(track_id)
        while len(self._ids) > self._max_size:
            self._ids.popleft()

    def exclusion_set(self) -> frozenset[TrackId]:
        return frozenset(self._ids)

    def snapshot(self) -> tuple[TrackId, ...]:
        """Recorded ids, oldest first."""
        return tuple(self._ids)

    def clear(self) -> None:
        self._ids.clear()

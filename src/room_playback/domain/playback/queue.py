"""FIFO playback queue with paginated reads."""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterator
from typing import Final

from pydantic import BaseModel, ConfigDict

from room_playback.domain.playback.entities import QueueEntry
from room_playback.domain.shared.exceptions import ValidationError
from room_playback.domain.shared.messages import ErrorMessages
from room_playback.domain.shared.types import PageNumber, PositiveInt

DEFAULT_PAGE_SIZE: Final[int] = 10


class QueuePage(BaseModel):
    """One page of the queue, positions are one-based."""

    model_config = ConfigDict(frozen=True)

    items: tuple[QueueEntry, ...]
    page_number: PageNumber
    total_pages: PageNumber
    start_position: PositiveInt

    @property
    def is_empty(self) -> bool:
        return not self.items

    def numbered(self) -> list[tuple[int, QueueEntry]]:
        return [(self.start_position + i, entry) for i, entry in enumerate(self.items)]


class PlaybackQueue:
    """Strict FIFO sequence of queue entries.

    Insertion order is playback order; there is no reordering or priority.
    """

    def __init__(self) -> None:
        self._entries: deque[QueueEntry] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[QueueEntry]:
        return iter(tuple(self._entries))

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def enqueue(self, entry: QueueEntry) -> int:
        """Append to the tail and return the entry's one-based position."""
        self._entries.append(entry)
        return len(self._entries)

    def dequeue_front(self) -> QueueEntry | None:
        """Remove and return the head, or None when empty."""
        if not self._entries:
            return None
        return self._entries.popleft()

    def peek(self) -> QueueEntry | None:
        return self._entries[0] if self._entries else None

    def restore_front(self, entry: QueueEntry) -> None:
        """Put back an entry that was just dequeued but never played."""
        self._entries.appendleft(entry)

    def snapshot(self) -> tuple[QueueEntry, ...]:
        return tuple(self._entries)

    def total_pages(self, page_size: int = DEFAULT_PAGE_SIZE) -> int:
        return max(1, math.ceil(len(self._entries) / page_size))

    def page(self, page_number: int, page_size: int = DEFAULT_PAGE_SIZE) -> QueuePage:
        """Return one page of the queue.

        Page numbers are clamped into ``[1, total_pages]``: anything below 1
        reads page 1 and anything past the end reads the last page, so a
        non-empty queue never yields an empty page.
        """
        if page_size < 1:
            raise ValidationError(ErrorMessages.INVALID_PAGE_SIZE, field="page_size")

        total_pages = self.total_pages(page_size)
        page_number = min(max(page_number, 1), total_pages)

        start = (page_number - 1) * page_size
        items = tuple(self._entries)[start : start + page_size]

        return QueuePage(
            items=items,
            page_number=page_number,
            total_pages=total_pages,
            start_position=start + 1,
        )

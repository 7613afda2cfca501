"""Unit tests for PlaybackQueue and its pagination."""

import pytest
from conftest import make_entry

from room_playback.domain.playback.queue import DEFAULT_PAGE_SIZE, PlaybackQueue
from room_playback.domain.shared.exceptions import ValidationError


def _queue_of(count: int) -> PlaybackQueue:
    queue = PlaybackQueue()
    for i in range(1, count + 1):
        queue.enqueue(make_entry(f"t{i}"))
    return queue


def _ids(entries) -> list[str]:
    return [entry.track.id.value for entry in entries]


class TestPlaybackQueue:
    """Unit tests for FIFO behaviour."""

    def test_enqueue_returns_one_based_position(self):
        queue = PlaybackQueue()
        assert queue.enqueue(make_entry("a")) == 1
        assert queue.enqueue(make_entry("b")) == 2
        assert len(queue) == 2

    def test_dequeue_front_is_fifo(self):
        queue = _queue_of(3)

        assert _ids([queue.dequeue_front() for _ in range(3)]) == ["t1", "t2", "t3"]
        assert queue.is_empty

    def test_dequeue_empty_returns_none(self):
        assert PlaybackQueue().dequeue_front() is None

    def test_peek_does_not_remove(self):
        queue = _queue_of(2)
        assert queue.peek().track.id.value == "t1"
        assert len(queue) == 2

    def test_restore_front(self):
        queue = _queue_of(2)
        head = queue.dequeue_front()

        queue.restore_front(head)

        assert _ids(queue) == ["t1", "t2"]

    def test_snapshot_is_a_copy(self):
        queue = _queue_of(2)
        snapshot = queue.snapshot()
        queue.dequeue_front()

        assert len(snapshot) == 2


class TestPagination:
    """Unit tests for PlaybackQueue.page."""

    def test_default_page_size(self):
        page = _queue_of(25).page(1)

        assert len(page.items) == DEFAULT_PAGE_SIZE == 10
        assert page.total_pages == 3

    def test_twenty_five_entries_page_three(self):
        """Page 3 of 25 entries should hold entries 21..25."""
        page = _queue_of(25).page(3)

        assert _ids(page.items) == ["t21", "t22", "t23", "t24", "t25"]
        assert page.page_number == 3
        assert page.start_position == 21
        assert [pos for pos, _ in page.numbered()] == [21, 22, 23, 24, 25]

    def test_page_beyond_total_clamps_to_last(self):
        page = _queue_of(25).page(7)

        assert page.page_number == 3
        assert _ids(page.items)[0] == "t21"

    @pytest.mark.parametrize("page_number", [0, -4])
    def test_page_below_one_clamps_to_first(self, page_number):
        page = _queue_of(25).page(page_number)

        assert page.page_number == 1
        assert _ids(page.items)[0] == "t1"

    def test_empty_queue_has_one_empty_page(self):
        page = PlaybackQueue().page(1)

        assert page.total_pages == 1
        assert page.is_empty

    @pytest.mark.parametrize(
        "count, size, expected",
        [(0, 10, 1), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 10, 3), (7, 3, 3)],
    )
    def test_total_pages(self, count, size, expected):
        assert _queue_of(count).total_pages(size) == expected

    def test_custom_page_size(self):
        page = _queue_of(7).page(2, page_size=3)
        assert _ids(page.items) == ["t4", "t5", "t6"]

    def test_invalid_page_size(self):
        with pytest.raises(ValidationError):
            _queue_of(3).page(1, page_size=0)

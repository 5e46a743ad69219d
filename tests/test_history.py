"""Tests for the sweep history buffer."""

import numpy as np
import pytest

from mdasfeed.history import SweepHistory
from mdasfeed.types import Line


def make_lines(start: int, count: int):
    return [
        Line(
            angle_degrees=(i / 10) % 360,
            angle_index=i,
            range_meters=100.0,
            intensities=np.zeros(4, dtype=np.uint8),
        )
        for i in range(start, start + count)
    ]


class TestSweepHistory:
    """Tests for bounded FIFO retention of lines."""

    def test_capacity(self):
        history = SweepHistory(persistence_sweeps=3, angle_count=2)
        assert history.capacity == 6

    def test_append_below_capacity_keeps_everything(self):
        history = SweepHistory(persistence_sweeps=3, angle_count=2)
        history.append(make_lines(0, 4))

        assert len(history) == 4
        assert [line.angle_index for line in history] == [0, 1, 2, 3]

    def test_oldest_lines_evicted(self):
        """Beyond capacity the head is dropped and the newest lines kept in order."""
        history = SweepHistory(persistence_sweeps=2, angle_count=2)
        history.append(make_lines(0, 2))
        history.append(make_lines(2, 2))
        history.append(make_lines(4, 2))

        assert len(history) == 4
        assert [line.angle_index for line in history] == [2, 3, 4, 5]

    def test_single_append_larger_than_capacity(self):
        history = SweepHistory(persistence_sweeps=1, angle_count=3)
        history.append(make_lines(0, 10))

        assert [line.angle_index for line in history] == [7, 8, 9]

    def test_never_exceeds_capacity(self):
        """Length stays within capacity after any sequence of appends."""
        history = SweepHistory(persistence_sweeps=2, angle_count=5)
        appended = []
        for start, count in [(0, 3), (3, 7), (10, 1), (11, 12), (23, 4)]:
            lines = make_lines(start, count)
            history.append(lines)
            appended.extend(lines)

            assert len(history) <= history.capacity
            assert history.snapshot() == appended[-history.capacity:]

    def test_clear(self):
        history = SweepHistory(persistence_sweeps=1, angle_count=4)
        history.append(make_lines(0, 4))
        history.clear()

        assert len(history) == 0
        assert list(history) == []

    def test_iteration_is_a_snapshot(self):
        """Appending while iterating does not disturb the iteration."""
        history = SweepHistory(persistence_sweeps=1, angle_count=2)
        history.append(make_lines(0, 2))

        seen = []
        for line in history:
            seen.append(line.angle_index)
            history.append(make_lines(10, 1))

        assert seen == [0, 1]

    def test_resize_shrinks_to_newest_lines(self):
        history = SweepHistory(persistence_sweeps=2, angle_count=5)
        history.append(make_lines(0, 10))

        history.resize(2)

        assert history.capacity == 4
        assert [line.angle_index for line in history] == [6, 7, 8, 9]

    def test_resize_grows_and_keeps_lines(self):
        history = SweepHistory(persistence_sweeps=2, angle_count=1)
        history.append(make_lines(0, 2))

        history.resize(3)
        history.append(make_lines(2, 3))

        assert history.capacity == 6
        assert [line.angle_index for line in history] == [0, 1, 2, 3, 4]

    def test_resize_rejects_zero(self):
        with pytest.raises(ValueError):
            SweepHistory().resize(0)

    @pytest.mark.parametrize("persistence, angles", [(0, 10), (3, 0), (-1, 10)])
    def test_invalid_sizes(self, persistence, angles):
        with pytest.raises(ValueError):
            SweepHistory(persistence_sweeps=persistence, angle_count=angles)

"""
Bounded store of recent sweep lines for persistence (afterglow) rendering.
"""

import threading
from collections import deque
from typing import Deque, Iterable, Iterator, List

from .types import Line

DEFAULT_ANGLE_COUNT = 3600


class SweepHistory:
    """
    FIFO buffer holding the last ``persistence_sweeps`` sweeps of lines.

    Capacity is persistence_sweeps * angle_count. Appends push onto the
    tail and evict from the head once capacity is exceeded. Appends may
    come from a transport thread while the display iterates, so mutation
    is serialized with a lock and iteration works on a snapshot.

    Example:
        history = SweepHistory(persistence_sweeps=3, angle_count=3600)
        history.append(packet.lines)
        for line in history:
            draw(line)
    """

    def __init__(self, persistence_sweeps: int = 3, angle_count: int = DEFAULT_ANGLE_COUNT):
        """
        Args:
            persistence_sweeps: Number of past sweeps to retain
            angle_count: Lines per sweep
        """
        if persistence_sweeps < 1:
            raise ValueError(f"persistence_sweeps must be at least 1, got {persistence_sweeps}")
        if angle_count < 1:
            raise ValueError(f"angle_count must be at least 1, got {angle_count}")

        self.persistence_sweeps = persistence_sweeps
        self.angle_count = angle_count
        self._lines: Deque[Line] = deque(maxlen=self.capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        """Maximum number of lines retained."""
        return self.persistence_sweeps * self.angle_count

    def resize(self, angle_count: int):
        """
        Change the lines per sweep, keeping the newest lines that still fit.

        Args:
            angle_count: Lines per sweep of the incoming feed
        """
        if angle_count < 1:
            raise ValueError(f"angle_count must be at least 1, got {angle_count}")
        with self._lock:
            if angle_count == self.angle_count:
                return
            self.angle_count = angle_count
            self._lines = deque(self._lines, maxlen=self.capacity)

    def append(self, lines: Iterable[Line]):
        """Append lines in order, dropping the oldest beyond capacity."""
        with self._lock:
            self._lines.extend(lines)

    def clear(self):
        """Drop all retained lines."""
        with self._lock:
            self._lines.clear()

    def snapshot(self) -> List[Line]:
        """Retained lines, oldest first."""
        with self._lock:
            return list(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

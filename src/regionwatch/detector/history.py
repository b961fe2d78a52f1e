"""
Frame History
=============

Fixed-capacity ring buffer of the most recent canonical frames.

This module provides the FrameHistory class, the stability window owned
by the StabilityDetector.

Design Rules:
    - Fixed capacity, preallocated slots plus a head index
    - Newest frame first on iteration
    - Drops the oldest frame on overflow
    - Does NOT process or modify frames
"""

import logging
from typing import List, Optional

from regionwatch.models.frame import Frame


logger = logging.getLogger(__name__)


# Number of consecutive samples a settled change must agree across
HISTORY_WINDOW = 3


class FrameHistory:
    """
    Bounded, newest-first window of frames.

    Slots are allocated once; pushing writes into the slot after the
    current head, overwriting the oldest frame when full.

    Attributes:
        capacity: Maximum number of retained frames
        dropped_count: Number of frames overwritten due to overflow

    Example:
        history = FrameHistory()

        history.push(frame)
        newest = history.newest()
        window = history.frames()      # newest first
    """

    def __init__(self, capacity: int = HISTORY_WINDOW) -> None:
        """
        Initialize frame history.

        Args:
            capacity: Maximum frames to retain. Must be >= 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._capacity = capacity
        self._slots: List[Optional[Frame]] = [None] * capacity
        self._head: int = -1
        self._size: int = 0
        self._dropped_count: int = 0
        self._total_pushed: int = 0

    @property
    def capacity(self) -> int:
        """Maximum number of retained frames."""
        return self._capacity

    @property
    def dropped_count(self) -> int:
        """Number of frames overwritten due to overflow."""
        return self._dropped_count

    @property
    def total_pushed(self) -> int:
        """Total frames ever pushed."""
        return self._total_pushed

    def __len__(self) -> int:
        return self._size

    def push(self, frame: Frame) -> bool:
        """
        Prepend a frame, dropping the oldest if full.

        Args:
            frame: Frame to retain

        Returns:
            True if the frame was added without dropping,
            False if the oldest frame was overwritten.
        """
        self._total_pushed += 1
        self._head = (self._head + 1) % self._capacity
        self._slots[self._head] = frame

        if self._size < self._capacity:
            self._size += 1
            return True

        self._dropped_count += 1
        return False

    def newest(self) -> Optional[Frame]:
        """Most recently pushed frame, or None if empty."""
        if self._size == 0:
            return None
        return self._slots[self._head]

    def frames(self) -> List[Frame]:
        """Retained frames, newest first."""
        return [
            self._slots[(self._head - i) % self._capacity]
            for i in range(self._size)
        ]

    def window_with(self, frame: Frame) -> List[Frame]:
        """
        The window as it would be after pushing `frame`, newest first.

        Does not modify the history.
        """
        return [frame] + self.frames()[: self._capacity - 1]

    def reset(self, frame: Frame) -> None:
        """Replace the whole history with a single frame."""
        self.clear()
        self.push(frame)

    def clear(self) -> int:
        """
        Remove all frames.

        Returns:
            Number of frames cleared.
        """
        cleared = self._size
        self._slots = [None] * self._capacity
        self._head = -1
        self._size = 0
        return cleared

    def metrics(self) -> dict:
        """
        Get history metrics for observability.

        Returns:
            Dict with size, capacity, dropped_count, total_pushed
        """
        return {
            "size": self._size,
            "capacity": self._capacity,
            "dropped_count": self._dropped_count,
            "total_pushed": self._total_pushed,
        }

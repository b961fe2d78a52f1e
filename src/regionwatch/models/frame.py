"""
Frame Data Model
=================

Internal frame representation for the capture pipeline.

This module defines the typed Frame class that is passed between the
acquisition sources, the preprocessor, the differ and the detector.

Design Rules:
    - Pixels are always RGBA, uint8, shape (height, width, 4)
    - The pixel buffer is read-only once the Frame is constructed
    - Transforms produce a new Frame, never modify an existing one
"""

import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np


CHANNELS = 4


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    Captured (or canonicalized) image region.

    Attributes:
        pixels: RGBA pixel buffer, shape (height, width, 4), dtype uint8
        timestamp: UNIX timestamp when the region was captured
        frame_id: Monotonically increasing capture counter
    """

    pixels: np.ndarray
    timestamp: float = field(default_factory=time.time)
    frame_id: int = 0

    def __post_init__(self) -> None:
        """Validate layout and freeze the buffer."""
        if self.pixels.ndim != 3 or self.pixels.shape[2] != CHANNELS:
            raise ValueError(
                f"Frame pixels must have shape (H, W, {CHANNELS}), "
                f"got {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Frame pixels must be uint8, got {self.pixels.dtype}")
        self.pixels.flags.writeable = False

    @classmethod
    def empty(cls, timestamp: Optional[float] = None, frame_id: int = 0) -> "Frame":
        """Build a zero-area frame."""
        return cls(
            pixels=np.zeros((0, 0, CHANNELS), dtype=np.uint8),
            timestamp=time.time() if timestamp is None else timestamp,
            frame_id=frame_id,
        )

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def is_empty(self) -> bool:
        """True when the frame has zero area."""
        return self.width == 0 or self.height == 0

    @property
    def size(self) -> tuple:
        """(width, height) of the frame."""
        return (self.width, self.height)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return (
            f"Frame(frame_id={self.frame_id}, "
            f"size={self.width}x{self.height}, "
            f"timestamp={self.timestamp:.3f})"
        )

"""
Test Configuration
==================

Pytest fixtures and test configuration for regionwatch.
"""

import numpy as np
import pytest

from regionwatch.models.frame import Frame


def solid_pixels(width: int, height: int, value: int, alpha: int = 255) -> np.ndarray:
    """RGBA buffer filled with one grey level."""
    pixels = np.full((height, width, 4), value, dtype=np.uint8)
    pixels[:, :, 3] = alpha
    return pixels


@pytest.fixture
def make_frame():
    """Factory for solid-colour frames with explicit ids."""

    def _make(value: int = 0, width: int = 10, height: int = 10, frame_id: int = 0) -> Frame:
        return Frame(
            pixels=solid_pixels(width, height, value),
            timestamp=1707321234.0 + frame_id,
            frame_id=frame_id,
        )

    return _make


@pytest.fixture
def black_frame(make_frame):
    """10x10 black frame (F1 in the scenarios)."""
    return make_frame(0, frame_id=1)


@pytest.fixture
def white_frame(make_frame):
    """10x10 white frame (F2 in the scenarios)."""
    return make_frame(255, frame_id=2)


@pytest.fixture
def half_frame():
    """10x10 frame, left half white, right half black (F3 in the scenarios)."""
    pixels = solid_pixels(10, 10, 0)
    pixels[:, :5, :3] = 255
    return Frame(pixels=pixels, timestamp=1707321237.0, frame_id=3)

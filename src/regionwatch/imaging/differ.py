"""
Frame Differ
============

Pixel-level comparison of canonical frames.

Two thresholds are involved:
    - pixel_threshold: per-pixel noise floor. A pixel differs when the
      largest per-channel delta, normalized to [0, 1], exceeds it.
    - equality_threshold: aggregate tolerance in percent. Two frames are
      equal when the fraction of differing pixels is strictly below it.

The first absorbs codec and sensor noise, the second tolerates a few
stray pixels without hiding real text changes.

Frames of different size are never an error: the result is simply
"not equal" with fraction DIMENSION_MISMATCH.
"""

import logging
from fractions import Fraction
from typing import Optional, Sequence

import numpy as np

from regionwatch.models.diff import (
    CHAIN_HEAD,
    DIMENSION_MISMATCH,
    ChainDiffResult,
    DiffResult,
)
from regionwatch.models.frame import Frame


logger = logging.getLogger(__name__)


DEFAULT_PIXEL_THRESHOLD = 0.1
DEFAULT_EQUALITY_THRESHOLD = 2.0


def count_differing_pixels(a: np.ndarray, b: np.ndarray, pixel_threshold: float) -> int:
    """
    Count pixels whose max channel delta exceeds the threshold.

    Args:
        a: RGBA array (H, W, 4)
        b: RGBA array of the same shape
        pixel_threshold: Noise floor in [0, 1] of the channel range

    Returns:
        Number of differing pixels
    """
    delta = np.abs(a.astype(np.int16) - b.astype(np.int16)).max(axis=2)
    return int(np.count_nonzero(delta > pixel_threshold * 255.0))


class FrameDiffer:
    """
    Compares canonical frames and reduces the difference to a scalar.

    Attributes:
        pixel_threshold: Default per-pixel noise floor in [0, 1]
        equality_threshold: Aggregate tolerance in percent

    Example:
        differ = FrameDiffer(equality_threshold=2.0)

        result = differ.compare(previous, current)
        if not result.equal:
            print(f"{result.fraction_different:.1%} of pixels changed")
    """

    def __init__(
        self,
        pixel_threshold: float = DEFAULT_PIXEL_THRESHOLD,
        equality_threshold: float = DEFAULT_EQUALITY_THRESHOLD,
    ) -> None:
        """
        Initialize frame differ.

        Args:
            pixel_threshold: Per-pixel noise floor, must be >= 0
            equality_threshold: Percentage in (0, 100]

        Raises:
            ValueError: If a threshold is out of range
        """
        if pixel_threshold < 0:
            raise ValueError(f"pixel_threshold must be >= 0, got {pixel_threshold}")
        if not 0 < equality_threshold <= 100:
            raise ValueError(
                f"equality_threshold must be in (0, 100], got {equality_threshold}"
            )

        self.pixel_threshold = pixel_threshold
        self.equality_threshold = equality_threshold
        # Exact ratio so the boundary holds for thresholds like 16.1
        self._equality_ratio = Fraction(str(equality_threshold)) / 100

        self._comparisons: int = 0
        self._mismatches: int = 0

    def compare(
        self,
        a: Frame,
        b: Frame,
        pixel_threshold: Optional[float] = None,
    ) -> DiffResult:
        """
        Compare two frames.

        Args:
            a: First frame
            b: Second frame
            pixel_threshold: Override for the per-pixel noise floor

        Returns:
            DiffResult; dimension_mismatch is set when sizes differ
        """
        if pixel_threshold is None:
            pixel_threshold = self.pixel_threshold

        self._comparisons += 1

        if a.size != b.size:
            self._mismatches += 1
            logger.debug(f"Dimension mismatch: {a.size} vs {b.size}")
            return DiffResult(
                equal=False,
                fraction_different=DIMENSION_MISMATCH,
                dimension_mismatch=True,
            )

        total = a.width * a.height
        if total == 0:
            return DiffResult(equal=True, fraction_different=0.0)

        differing = count_differing_pixels(a.pixels, b.pixels, pixel_threshold)

        equal = Fraction(differing, total) < self._equality_ratio

        return DiffResult(equal=equal, fraction_different=differing / total)

    def compare_chain(
        self,
        frames: Sequence[Frame],
        pixel_threshold: Optional[float] = None,
    ) -> ChainDiffResult:
        """
        Compare each frame with its predecessor in the sequence.

        The first frame is trivially equal to itself and reported as
        CHAIN_HEAD. The chain is equal only if every pair is equal.

        Args:
            frames: Ordered frames (e.g. a stability window, newest first)
            pixel_threshold: Override for the per-pixel noise floor

        Returns:
            ChainDiffResult with one fraction per frame
        """
        if not frames:
            return ChainDiffResult(equal=True, fraction_differences=())

        fractions = [CHAIN_HEAD]
        equal = True
        for previous, current in zip(frames, frames[1:]):
            result = self.compare(previous, current, pixel_threshold)
            fractions.append(result.fraction_different)
            equal = equal and result.equal

        return ChainDiffResult(equal=equal, fraction_differences=tuple(fractions))

    def get_metrics(self) -> dict:
        """Get differ metrics for observability."""
        return {
            "comparisons": self._comparisons,
            "dimension_mismatches": self._mismatches,
            "pixel_threshold": self.pixel_threshold,
            "equality_threshold": self.equality_threshold,
        }

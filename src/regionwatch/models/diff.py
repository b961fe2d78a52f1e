"""
Diff Models
===========

Results produced by the FrameDiffer.
"""

from dataclasses import dataclass
from typing import Tuple


# Reported when two frames cannot be compared pixel-wise
DIMENSION_MISMATCH: float = 1.0

# First entry of a chain comparison (a frame is trivially equal to itself)
CHAIN_HEAD: float = -1.0


@dataclass(frozen=True, slots=True)
class DiffResult:
    """
    Comparison of a single pair of frames.

    Attributes:
        equal: Fraction of differing pixels is below the equality threshold
        fraction_different: Differing pixels / total pixels, in [0, 1]
        dimension_mismatch: Frames had different sizes
    """

    equal: bool
    fraction_different: float
    dimension_mismatch: bool = False

    def __repr__(self) -> str:
        return (
            f"DiffResult(equal={self.equal}, "
            f"fraction={self.fraction_different:.4f}"
            f"{', mismatch' if self.dimension_mismatch else ''})"
        )


@dataclass(frozen=True, slots=True)
class ChainDiffResult:
    """
    Comparison of an ordered run of frames, each against its predecessor.

    Attributes:
        equal: Every adjacent pair compared equal
        fraction_differences: One entry per frame; the first is CHAIN_HEAD
    """

    equal: bool
    fraction_differences: Tuple[float, ...]

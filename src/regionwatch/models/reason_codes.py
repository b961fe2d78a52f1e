"""
Tick Outcome Codes
==================

Fixed set of machine-readable codes describing what happened on a tick.

Each tick of the capture loop ends with exactly ONE outcome code,
whether it was skipped, changed detector state, or triggered recognition.

Rules:
    - No free-text explanations
    - One clear cause per code
"""

from enum import Enum


class TickOutcome(str, Enum):
    """
    Machine-readable explanation of a single capture tick.

    Attributes:
        NO_FRAME: Acquisition returned nothing (or failed) this tick
        EMPTY_REGION: Captured region had zero area
        PREPROCESS_FAILED: Canonicalization raised; tick skipped
        DIFF_FAILED: Comparison raised; tick skipped
        BASELINE_CAPTURED: First frame retained as baseline
        UNCHANGED: Frame equal to the baseline; discarded
        CHANGE_DETECTED: Frame differs from the baseline; seeking stability
        STILL_CHANGING: Stability window not yet in agreement
        SETTLED: Stability window agreed; recognition triggered
    """

    # Skipped ticks
    NO_FRAME = "NO_FRAME"
    EMPTY_REGION = "EMPTY_REGION"
    PREPROCESS_FAILED = "PREPROCESS_FAILED"
    DIFF_FAILED = "DIFF_FAILED"

    # Detector outcomes
    BASELINE_CAPTURED = "BASELINE_CAPTURED"
    UNCHANGED = "UNCHANGED"
    CHANGE_DETECTED = "CHANGE_DETECTED"
    STILL_CHANGING = "STILL_CHANGING"
    SETTLED = "SETTLED"

    @property
    def skipped(self) -> bool:
        """True when the tick produced no usable frame."""
        return self in _SKIPPED


_SKIPPED = frozenset({
    TickOutcome.NO_FRAME,
    TickOutcome.EMPTY_REGION,
    TickOutcome.PREPROCESS_FAILED,
    TickOutcome.DIFF_FAILED,
})

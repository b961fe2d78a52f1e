"""
Detector State Models
=====================

This module defines the state representation of the stability detector.

Core Concepts:
    - DetectorState: Discrete detector states (IDLE, WATCHING, SEEKING_STABLE)
    - DetectorResult: What a single detector update decided

Transitions:
    IDLE → WATCHING:            first frame becomes the baseline
    WATCHING → SEEKING_STABLE:  frame differs from the baseline
    SEEKING_STABLE → WATCHING:  stability window agrees (settled change)

IDLE is only the initial state; the machine has no terminal state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from regionwatch.models.frame import Frame
from regionwatch.models.reason_codes import TickOutcome


class DetectorState(str, Enum):
    """
    Discrete states of the stability detector.

    Attributes:
        IDLE: No baseline yet
        WATCHING: Have a baseline, waiting for a change
        SEEKING_STABLE: A change was seen, waiting for it to stop changing
    """

    IDLE = "IDLE"
    WATCHING = "WATCHING"
    SEEKING_STABLE = "SEEKING_STABLE"


@dataclass(frozen=True, slots=True)
class DetectorResult:
    """
    Result of feeding one canonical frame to the detector.

    Attributes:
        previous_state: State before the update
        state: State after the update
        outcome: Machine-readable outcome code
        fraction_differences: Differences computed on this update
            (one value for a pairwise check, a chain for a window check)
        settled_frame: The frame to recognize, set only on SETTLED
    """

    previous_state: DetectorState
    state: DetectorState
    outcome: TickOutcome
    fraction_differences: Tuple[float, ...] = ()
    settled_frame: Optional[Frame] = None

    @property
    def transition_occurred(self) -> bool:
        return self.previous_state != self.state

    @property
    def settled(self) -> bool:
        return self.settled_frame is not None

    def __repr__(self) -> str:
        return (
            f"DetectorResult({self.previous_state.value} → {self.state.value}, "
            f"{self.outcome.value})"
        )

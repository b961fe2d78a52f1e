"""
Stability Detection
===================

Debouncing state machine that turns a stream of canonical frames into
"content changed and settled" events.

States:
    IDLE → WATCHING → SEEKING_STABLE → WATCHING → ...

Transition Rules:
    IDLE:
        first frame → retained as baseline → WATCHING
    WATCHING:
        equal to newest retained frame → discarded, stay WATCHING
        not equal → prepended to history → SEEKING_STABLE
    SEEKING_STABLE:
        window [f, history...] (newest first, capped at HISTORY_WINDOW)
        chain-equal → settled, history reset to [f] → WATCHING
        not chain-equal → f prepended (oldest dropped), stay SEEKING_STABLE

Key Features:
    - A single pairwise "no longer changing" check is not enough near a
      transition; the whole window must agree before a change settles
    - The window is bounded, so stability is always judged over the most
      recent samples, never over the whole unstable interval
    - Comparisons run before any mutation: if the differ raises, state
      and history are exactly as they were
"""

import logging
from typing import Optional

from regionwatch.detector.history import HISTORY_WINDOW, FrameHistory
from regionwatch.imaging.differ import FrameDiffer
from regionwatch.models.frame import Frame
from regionwatch.models.reason_codes import TickOutcome
from regionwatch.models.state import DetectorResult, DetectorState


logger = logging.getLogger(__name__)


class StabilityDetector:
    """
    Owns the detector state and the stability window.

    Attributes:
        differ: FrameDiffer used for all comparisons
        pixel_threshold: Optional override of the differ's noise floor
        state: Current DetectorState

    Example:
        detector = StabilityDetector(FrameDiffer(equality_threshold=2.0))

        for frame in canonical_frames:
            result = detector.update(frame)
            if result.settled:
                recognize(result.settled_frame)
    """

    def __init__(
        self,
        differ: Optional[FrameDiffer] = None,
        pixel_threshold: Optional[float] = None,
        log_every_n_frames: int = 60,
    ) -> None:
        """
        Initialize stability detector.

        Args:
            differ: Frame differ (default thresholds if None)
            pixel_threshold: Per-pixel noise floor override
            log_every_n_frames: Log a summary every N updates
        """
        self.differ = differ or FrameDiffer()
        self.pixel_threshold = pixel_threshold
        self.log_every_n_frames = log_every_n_frames

        self._state: DetectorState = DetectorState.IDLE
        self._history = FrameHistory(capacity=HISTORY_WINDOW)

        # Counters
        self._frame_count: int = 0
        self._changes_detected: int = 0
        self._settled_count: int = 0

        logger.info(
            f"StabilityDetector initialized: window={HISTORY_WINDOW}, "
            f"equality_threshold={self.differ.equality_threshold}%, "
            f"pixel_threshold={self._pixel_threshold}"
        )

    @property
    def state(self) -> DetectorState:
        """Current detector state."""
        return self._state

    @property
    def history(self) -> FrameHistory:
        """The stability window (read it, don't push into it)."""
        return self._history

    @property
    def _pixel_threshold(self) -> float:
        if self.pixel_threshold is None:
            return self.differ.pixel_threshold
        return self.pixel_threshold

    def update(self, frame: Frame) -> DetectorResult:
        """
        Feed one canonical frame.

        Args:
            frame: Preprocessed frame for this tick

        Returns:
            DetectorResult describing the decision

        Raises:
            Whatever the differ raises; state is unchanged in that case.
        """
        if self._state == DetectorState.IDLE:
            result = self._capture_baseline(frame)
        elif self._state == DetectorState.WATCHING:
            result = self._watch(frame)
        else:
            result = self._seek_stable(frame)

        self._frame_count += 1

        if result.transition_occurred:
            logger.info(
                f"Detector: {result.previous_state.value} → {result.state.value} "
                f"(frame={frame.frame_id}, outcome={result.outcome.value})"
            )

        if self._frame_count % self.log_every_n_frames == 0:
            logger.info(
                f"Detector [frame {self._frame_count}]: state={self._state.value}, "
                f"window={len(self._history)}, changes={self._changes_detected}, "
                f"settled={self._settled_count}"
            )

        return result

    def _capture_baseline(self, frame: Frame) -> DetectorResult:
        """IDLE: first frame becomes the baseline."""
        self._history.reset(frame)
        self._state = DetectorState.WATCHING
        return DetectorResult(
            previous_state=DetectorState.IDLE,
            state=DetectorState.WATCHING,
            outcome=TickOutcome.BASELINE_CAPTURED,
        )

    def _watch(self, frame: Frame) -> DetectorResult:
        """WATCHING: compare against the baseline only."""
        baseline = self._history.newest()
        diff = self.differ.compare(baseline, frame, self._pixel_threshold)

        if diff.equal:
            return DetectorResult(
                previous_state=DetectorState.WATCHING,
                state=DetectorState.WATCHING,
                outcome=TickOutcome.UNCHANGED,
                fraction_differences=(diff.fraction_different,),
            )

        self._history.push(frame)
        self._state = DetectorState.SEEKING_STABLE
        self._changes_detected += 1
        logger.debug(
            f"Change detected on frame {frame.frame_id}: "
            f"{diff.fraction_different:.4f} of pixels differ"
        )
        return DetectorResult(
            previous_state=DetectorState.WATCHING,
            state=DetectorState.SEEKING_STABLE,
            outcome=TickOutcome.CHANGE_DETECTED,
            fraction_differences=(diff.fraction_different,),
        )

    def _seek_stable(self, frame: Frame) -> DetectorResult:
        """SEEKING_STABLE: the whole window must agree."""
        window = self._history.window_with(frame)
        chain = self.differ.compare_chain(window, self._pixel_threshold)

        if chain.equal:
            self._history.reset(frame)
            self._state = DetectorState.WATCHING
            self._settled_count += 1
            return DetectorResult(
                previous_state=DetectorState.SEEKING_STABLE,
                state=DetectorState.WATCHING,
                outcome=TickOutcome.SETTLED,
                fraction_differences=chain.fraction_differences,
                settled_frame=frame,
            )

        self._history.push(frame)
        return DetectorResult(
            previous_state=DetectorState.SEEKING_STABLE,
            state=DetectorState.SEEKING_STABLE,
            outcome=TickOutcome.STILL_CHANGING,
            fraction_differences=chain.fraction_differences,
        )

    def reset(self) -> None:
        """Forget the baseline and return to IDLE."""
        self._history.clear()
        self._state = DetectorState.IDLE
        logger.info("StabilityDetector reset")

    def get_metrics(self) -> dict:
        """Get detector metrics for observability."""
        return {
            "state": self._state.value,
            "frames": self._frame_count,
            "changes_detected": self._changes_detected,
            "settled": self._settled_count,
            "window": self._history.metrics(),
        }

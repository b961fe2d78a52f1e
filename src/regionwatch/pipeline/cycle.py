"""
Capture Cycle Graph
===================

LangGraph workflow for one tick of the capture loop.

LangGraph is used for CONTROL FLOW only, not LLM reasoning.

Graph Structure:
    START → capture → preprocess → detect → recognize → END
                 ↘          ↘          ↘
                 END        END        END

    capture:     ask the FrameSource for the region (worker thread)
    preprocess:  canonicalize with the current PreprocessConfig
    detect:      feed the StabilityDetector
    recognize:   dispatch the settled frame (only on SETTLED)

Failure Semantics:
    Any failure before the detector commits a decision makes the tick a
    no-op: no usable frame, detector state unchanged, one TickOutcome
    code recorded. Nothing here stops the loop.
"""

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, TypedDict

from langgraph.graph import END, StateGraph

from regionwatch.capture.source import AcquisitionUnavailable, FrameSource
from regionwatch.detector.stability import StabilityDetector
from regionwatch.imaging.preprocess import FramePreprocessor
from regionwatch.models.frame import Frame
from regionwatch.models.preprocess import PreprocessConfig
from regionwatch.models.reason_codes import TickOutcome
from regionwatch.models.recognition import RecognitionEvent
from regionwatch.models.region import Region
from regionwatch.models.state import DetectorResult, DetectorState
from regionwatch.recognition.dispatcher import RecognitionDispatcher


logger = logging.getLogger(__name__)


class CycleGraphState(TypedDict):
    """
    State passed through the cycle graph for a single tick.

    Attributes:
        config: PreprocessConfig in effect for this tick
        raw_frame: Frame returned by the source
        canonical_frame: Preprocessed frame
        result: Detector decision
        event: Recognition event (SETTLED ticks only)
        outcome: Final outcome code of the tick
    """
    config: PreprocessConfig
    raw_frame: Optional[Frame]
    canonical_frame: Optional[Frame]
    result: Optional[DetectorResult]
    event: Optional[RecognitionEvent]
    outcome: Optional[TickOutcome]


@dataclass(frozen=True)
class CycleReport:
    """Summary of one executed tick."""

    tick: int
    outcome: TickOutcome
    state: DetectorState
    fraction_differences: Tuple[float, ...]
    event: Optional[RecognitionEvent]
    duration_ms: float


class CaptureCycle:
    """
    One capture session's per-tick pipeline.

    Owns the StabilityDetector; the preprocessing config can be replaced
    between ticks and is read at the start of every tick.

    Attributes:
        source: Acquisition collaborator
        preprocessor: FramePreprocessor
        detector: StabilityDetector (exclusively owned)
        dispatcher: RecognitionDispatcher
        preprocess_config: Config applied on the next tick
        last_report: Report of the most recent tick
    """

    def __init__(
        self,
        source: FrameSource,
        detector: StabilityDetector,
        dispatcher: RecognitionDispatcher,
        preprocessor: Optional[FramePreprocessor] = None,
        preprocess_config: Optional[PreprocessConfig] = None,
        log_every_n_ticks: int = 60,
    ) -> None:
        self.source = source
        self.detector = detector
        self.dispatcher = dispatcher
        self.preprocessor = preprocessor or FramePreprocessor()
        self.preprocess_config = preprocess_config or PreprocessConfig()
        self.log_every_n_ticks = log_every_n_ticks
        self.last_report: Optional[CycleReport] = None

        self._in_tick: bool = False
        self._pending_region: Optional[Region] = None

        self._tick_count: int = 0
        self._outcomes: Counter = Counter()

        self._graph = self._build_graph()

        logger.info("CaptureCycle initialized")

    def _build_graph(self):
        """Build the LangGraph workflow."""
        workflow = StateGraph(CycleGraphState)

        workflow.add_node("capture", self._capture_node)
        workflow.add_node("preprocess", self._preprocess_node)
        workflow.add_node("detect", self._detect_node)
        workflow.add_node("recognize", self._recognize_node)

        workflow.set_entry_point("capture")
        workflow.add_conditional_edges(
            "capture",
            self._route_after_capture,
            {"preprocess": "preprocess", END: END},
        )
        workflow.add_conditional_edges(
            "preprocess",
            self._route_after_preprocess,
            {"detect": "detect", END: END},
        )
        workflow.add_conditional_edges(
            "detect",
            self._route_after_detect,
            {"recognize": "recognize", END: END},
        )
        workflow.add_edge("recognize", END)

        return workflow.compile()

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    async def _capture_node(self, state: CycleGraphState) -> Dict[str, Any]:
        """Acquire the raw region frame."""
        try:
            frame = await asyncio.to_thread(self.source.capture_region)
        except AcquisitionUnavailable as e:
            logger.warning(f"Acquisition unavailable: {e}")
            return {"raw_frame": None, "outcome": TickOutcome.NO_FRAME}

        if frame is None:
            return {"raw_frame": None, "outcome": TickOutcome.NO_FRAME}
        return {"raw_frame": frame}

    async def _preprocess_node(self, state: CycleGraphState) -> Dict[str, Any]:
        """Canonicalize the raw frame."""
        raw = state["raw_frame"]
        try:
            canonical = await asyncio.to_thread(
                self.preprocessor.process, raw, state["config"]
            )
        except Exception as e:
            logger.error(f"Preprocessing error (frame={raw.frame_id}): {e}")
            return {"canonical_frame": None, "outcome": TickOutcome.PREPROCESS_FAILED}

        if canonical.is_empty:
            return {"canonical_frame": None, "outcome": TickOutcome.EMPTY_REGION}
        return {"canonical_frame": canonical}

    async def _detect_node(self, state: CycleGraphState) -> Dict[str, Any]:
        """Feed the detector."""
        canonical = state["canonical_frame"]
        try:
            result = self.detector.update(canonical)
        except Exception as e:
            logger.error(f"Diff error (frame={canonical.frame_id}): {e}")
            return {"result": None, "outcome": TickOutcome.DIFF_FAILED}

        return {"result": result, "outcome": result.outcome}

    async def _recognize_node(self, state: CycleGraphState) -> Dict[str, Any]:
        """Dispatch the settled frame for recognition."""
        event = await self.dispatcher.dispatch(state["result"].settled_frame)
        return {"event": event}

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    @staticmethod
    def _route_after_capture(state: CycleGraphState) -> str:
        return "preprocess" if state.get("raw_frame") is not None else END

    @staticmethod
    def _route_after_preprocess(state: CycleGraphState) -> str:
        return "detect" if state.get("canonical_frame") is not None else END

    @staticmethod
    def _route_after_detect(state: CycleGraphState) -> str:
        result = state.get("result")
        if result is not None and result.settled:
            return "recognize"
        return END

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def run_once(self) -> CycleReport:
        """
        Execute one tick: capture → preprocess → detect → recognize.

        Returns:
            CycleReport for the tick
        """
        self._apply_pending_region()

        started = time.perf_counter()
        self._tick_count += 1

        initial: CycleGraphState = {
            "config": self.preprocess_config,
            "raw_frame": None,
            "canonical_frame": None,
            "result": None,
            "event": None,
            "outcome": None,
        }
        self._in_tick = True
        try:
            final = await self._graph.ainvoke(initial)
        finally:
            self._in_tick = False

        outcome = final.get("outcome") or TickOutcome.NO_FRAME
        result = final.get("result")
        self._outcomes[outcome] += 1

        report = CycleReport(
            tick=self._tick_count,
            outcome=outcome,
            state=self.detector.state,
            fraction_differences=result.fraction_differences if result else (),
            event=final.get("event"),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        self.last_report = report
        self._apply_pending_region()

        if self._tick_count % self.log_every_n_ticks == 0:
            logger.info(
                f"Cycle [tick {self._tick_count}]: outcome={outcome.value}, "
                f"state={report.state.value}, {report.duration_ms:.0f}ms"
            )

        return report

    def update_region(self, region: Region) -> None:
        """
        Point the source at a new region.

        The old baseline is meaningless for a different rectangle, so the
        detector starts over from IDLE. A tick already in flight finishes
        against the old region; the change is applied when it ends.
        """
        self._pending_region = region
        if not self._in_tick:
            self._apply_pending_region()

    def _apply_pending_region(self) -> None:
        region = self._pending_region
        if region is None:
            return
        self._pending_region = None

        self.source.region = region
        self.detector.reset()
        logger.info(
            f"Region updated: x={region.x}, y={region.y}, "
            f"{region.width}x{region.height}"
        )

    def get_metrics(self) -> dict:
        """Get cycle metrics for observability."""
        return {
            "ticks": self._tick_count,
            "outcomes": {code.value: count for code, count in self._outcomes.items()},
            "last_outcome": self.last_report.outcome.value if self.last_report else None,
            "detector": self.detector.get_metrics(),
            "preprocessor": self.preprocessor.get_metrics(),
            "differ": self.detector.differ.get_metrics(),
        }

"""
Capture Cycle Tests
===================

Tests for the per-tick LangGraph workflow with scripted sources.
"""

import asyncio
import threading
from typing import List, Optional

import pytest

from regionwatch.capture import AcquisitionUnavailable
from regionwatch.detector import StabilityDetector
from regionwatch.imaging import FrameDiffer, FramePreprocessor
from regionwatch.models import DetectorState, Frame, PreprocessConfig, Region, TickOutcome
from regionwatch.pipeline import CaptureCycle
from regionwatch.recognition import MockRecognitionEngine, RecognitionDispatcher


class ScriptedSource:
    """FrameSource returning a fixed sequence of results."""

    def __init__(self, script: List[object]) -> None:
        self.region = Region(x=0, y=0, width=10, height=10)
        self._script = list(script)

    def capture_region(self) -> Optional[Frame]:
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class GatedSource(ScriptedSource):
    """ScriptedSource that blocks inside capture until released."""

    def __init__(self, script: List[object]) -> None:
        super().__init__(script)
        self.captured = threading.Event()
        self.release = threading.Event()
        self.release.set()

    def capture_region(self) -> Optional[Frame]:
        self.captured.set()
        self.release.wait(5)
        return super().capture_region()


class FailingPreprocessor(FramePreprocessor):
    def process(self, frame, config):
        raise RuntimeError("preprocess failed")


class ExplodingDiffer(FrameDiffer):
    def compare(self, a, b, pixel_threshold=None):
        raise RuntimeError("comparison failed")


def build_cycle(script, engine=None, **kwargs):
    engine = engine or MockRecognitionEngine()
    cycle = CaptureCycle(
        source=ScriptedSource(script),
        detector=StabilityDetector(),
        dispatcher=RecognitionDispatcher(engine),
        **kwargs,
    )
    return cycle, engine


async def run_ticks(cycle, count):
    return [await cycle.run_once() for _ in range(count)]


class TestCaptureCycle:
    """Tests for CaptureCycle.run_once()."""

    @pytest.mark.asyncio
    async def test_settled_change_recognized_once(self, black_frame, make_frame):
        whites = [make_frame(255, frame_id=i) for i in (2, 3, 4)]
        cycle, engine = build_cycle([black_frame] + whites)

        reports = await run_ticks(cycle, 4)

        assert [r.outcome for r in reports] == [
            TickOutcome.BASELINE_CAPTURED,
            TickOutcome.CHANGE_DETECTED,
            TickOutcome.STILL_CHANGING,
            TickOutcome.SETTLED,
        ]
        assert len(engine.calls) == 1
        assert engine.calls[0].frame_id == 4

        event = reports[-1].event
        assert event.success
        assert event.frame_id == 4
        assert event.text == "frame 4 (10x10)"
        assert cycle.dispatcher.last_event is event

    @pytest.mark.asyncio
    async def test_unchanged_region_never_recognized(self, make_frame):
        cycle, engine = build_cycle([make_frame(0, frame_id=i) for i in range(3)])

        reports = await run_ticks(cycle, 3)

        assert all(r.event is None for r in reports)
        assert engine.calls == []
        assert reports[-1].state == DetectorState.WATCHING

    @pytest.mark.asyncio
    async def test_flicker_never_recognized(self, black_frame, white_frame, half_frame, make_frame):
        cycle, engine = build_cycle(
            [black_frame, white_frame, half_frame, make_frame(255, frame_id=4)]
        )

        await run_ticks(cycle, 4)

        assert engine.calls == []
        assert cycle.detector.state == DetectorState.SEEKING_STABLE

    @pytest.mark.asyncio
    async def test_no_frame_skips_tick(self, black_frame):
        cycle, _ = build_cycle([black_frame, None])
        await cycle.run_once()

        report = await cycle.run_once()
        assert report.outcome == TickOutcome.NO_FRAME
        assert report.state == DetectorState.WATCHING

    @pytest.mark.asyncio
    async def test_acquisition_unavailable_skips_tick(self):
        cycle, _ = build_cycle([AcquisitionUnavailable("no display")])

        report = await cycle.run_once()
        assert report.outcome == TickOutcome.NO_FRAME
        assert cycle.detector.state == DetectorState.IDLE

    @pytest.mark.asyncio
    async def test_empty_region_skips_tick(self):
        cycle, _ = build_cycle([Frame.empty()])

        report = await cycle.run_once()
        assert report.outcome == TickOutcome.EMPTY_REGION
        assert cycle.detector.state == DetectorState.IDLE

    @pytest.mark.asyncio
    async def test_preprocess_failure_skips_tick(self, black_frame):
        cycle, _ = build_cycle([black_frame], preprocessor=FailingPreprocessor())

        report = await cycle.run_once()
        assert report.outcome == TickOutcome.PREPROCESS_FAILED
        assert cycle.detector.state == DetectorState.IDLE

    @pytest.mark.asyncio
    async def test_diff_failure_skips_tick(self, black_frame, white_frame):
        cycle, _ = build_cycle([black_frame, white_frame])
        await cycle.run_once()

        cycle.detector.differ = ExplodingDiffer()
        report = await cycle.run_once()

        assert report.outcome == TickOutcome.DIFF_FAILED
        assert cycle.detector.state == DetectorState.WATCHING
        assert len(cycle.detector.history) == 1

    @pytest.mark.asyncio
    async def test_recognition_failure_does_not_raise(self, black_frame, make_frame):
        engine = MockRecognitionEngine(fail_on_calls=[1])
        whites = [make_frame(255, frame_id=i) for i in (2, 3, 4)]
        cycle, _ = build_cycle([black_frame] + whites, engine=engine)

        reports = await run_ticks(cycle, 4)

        event = reports[-1].event
        assert reports[-1].outcome == TickOutcome.SETTLED
        assert not event.success
        assert "Scripted failure" in event.error
        assert cycle.detector.state == DetectorState.WATCHING

    @pytest.mark.asyncio
    async def test_preprocess_config_applied_per_tick(self, make_frame):
        # grey 100 inverts to 155, a change well above the noise floor
        frames = [make_frame(100, frame_id=i) for i in range(4)]
        cycle, engine = build_cycle(frames)

        await cycle.run_once()
        cycle.preprocess_config = PreprocessConfig(invert=True)
        reports = await run_ticks(cycle, 3)

        assert reports[0].outcome == TickOutcome.CHANGE_DETECTED
        assert reports[-1].outcome == TickOutcome.SETTLED
        assert engine.calls[0].pixels[0, 0, 0] == 155

    @pytest.mark.asyncio
    async def test_update_region_resets_detector(self, black_frame, white_frame):
        cycle, _ = build_cycle([black_frame, white_frame])
        await run_ticks(cycle, 2)
        assert cycle.detector.state == DetectorState.SEEKING_STABLE

        region = Region(x=5, y=5, width=20, height=20)
        cycle.update_region(region)

        assert cycle.source.region == region
        assert cycle.detector.state == DetectorState.IDLE

    @pytest.mark.asyncio
    async def test_update_region_during_tick_applied_after(self, black_frame, white_frame):
        source = GatedSource([black_frame, white_frame, white_frame])
        cycle = CaptureCycle(
            source=source,
            detector=StabilityDetector(),
            dispatcher=RecognitionDispatcher(MockRecognitionEngine()),
        )
        old_region = source.region
        assert (await cycle.run_once()).outcome == TickOutcome.BASELINE_CAPTURED

        source.captured.clear()
        source.release.clear()
        task = asyncio.create_task(cycle.run_once())
        assert await asyncio.to_thread(source.captured.wait, 5)

        region = Region(x=5, y=5, width=20, height=20)
        cycle.update_region(region)
        assert source.region == old_region
        assert cycle.detector.state == DetectorState.WATCHING

        source.release.set()
        report = await task

        assert report.outcome == TickOutcome.CHANGE_DETECTED
        assert source.region == region
        assert cycle.detector.state == DetectorState.IDLE

        report = await cycle.run_once()
        assert report.outcome == TickOutcome.BASELINE_CAPTURED

    @pytest.mark.asyncio
    async def test_engine_exception_becomes_failed_event(self, black_frame, make_frame):
        class TimeoutEngine(MockRecognitionEngine):
            async def recognize(self, frame, language_hints):
                raise TimeoutError("deadline exceeded")

        whites = [make_frame(255, frame_id=i) for i in (2, 3, 4)]
        cycle, _ = build_cycle([black_frame] + whites, engine=TimeoutEngine())

        reports = await run_ticks(cycle, 4)

        event = reports[-1].event
        assert reports[-1].outcome == TickOutcome.SETTLED
        assert not event.success
        assert "TimeoutError" in event.error
        assert cycle.dispatcher.last_event is event
        assert cycle.detector.state == DetectorState.WATCHING

    @pytest.mark.asyncio
    async def test_metrics(self, black_frame):
        cycle, _ = build_cycle([black_frame, None])
        await run_ticks(cycle, 2)

        metrics = cycle.get_metrics()
        assert metrics["ticks"] == 2
        assert metrics["outcomes"] == {"BASELINE_CAPTURED": 1, "NO_FRAME": 1}
        assert metrics["last_outcome"] == "NO_FRAME"

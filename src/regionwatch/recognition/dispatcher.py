"""
Recognition Dispatcher
======================

Boundary between the capture loop and the recognition engine.

The dispatcher is invoked once per settled change. It:
    - Calls the engine exactly once (no retries)
    - Converts any engine error into a failed RecognitionEvent
    - Keeps the latest event and simple counters
    - Notifies listeners (sync or async callables) of every event

A failure never propagates into the capture loop: the detector has
already moved on, and the next settled change simply tries again.
"""

import inspect
import logging
import time
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from regionwatch.models.frame import Frame
from regionwatch.models.recognition import RecognitionEvent
from regionwatch.recognition.engine import RecognitionEngine, RecognitionFailure


logger = logging.getLogger(__name__)


Listener = Callable[[RecognitionEvent], Union[None, Awaitable[None]]]


class RecognitionDispatcher:
    """
    Dispatches settled frames to a recognition engine.

    Attributes:
        engine: Recognition backend
        language_hints: Hints sent with every request
        last_event: Most recent event, or None

    Example:
        dispatcher = RecognitionDispatcher(engine, language_hints=["ja"])
        dispatcher.add_listener(lambda event: print(event.text))

        event = await dispatcher.dispatch(settled_frame)
    """

    def __init__(
        self,
        engine: RecognitionEngine,
        language_hints: Sequence[str] = ("ja",),
    ) -> None:
        self.engine = engine
        self.language_hints = list(language_hints)
        self.last_event: Optional[RecognitionEvent] = None

        self._listeners: List[Listener] = []
        self._dispatch_count: int = 0
        self._failure_count: int = 0

    def add_listener(self, listener: Listener) -> None:
        """Register a callable receiving every RecognitionEvent."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        """Unregister a listener (no-op if unknown)."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def dispatch(self, frame: Frame) -> RecognitionEvent:
        """
        Recognize a settled frame and publish the result.

        Args:
            frame: Canonical settled frame

        Returns:
            RecognitionEvent (success or failure); engine errors of any
            kind become a failed event and are never raised.
        """
        self._dispatch_count += 1
        started = time.perf_counter()

        try:
            recognized = await self.engine.recognize(frame, self.language_hints)
            event = RecognitionEvent(
                success=True,
                text=recognized.text,
                frame_id=frame.frame_id,
                timestamp=frame.timestamp,
                latency_ms=recognized.latency_ms,
            )
            logger.info(
                f"Recognized frame {frame.frame_id}: "
                f"{len(recognized.text)} chars in {recognized.latency_ms:.0f}ms"
            )
        except RecognitionFailure as e:
            event = self._failed_event(frame, str(e), started)
        except Exception as e:
            event = self._failed_event(frame, f"{type(e).__name__}: {e}", started)

        self.last_event = event
        await self._notify(event)
        return event

    def _failed_event(self, frame: Frame, error: str, started: float) -> RecognitionEvent:
        self._failure_count += 1
        logger.error(
            f"Recognition failed (frame={frame.frame_id}): {error}. "
            f"Total failures: {self._failure_count}"
        )
        return RecognitionEvent(
            success=False,
            error=error,
            frame_id=frame.frame_id,
            timestamp=frame.timestamp,
            latency_ms=(time.perf_counter() - started) * 1000.0,
        )

    async def _notify(self, event: RecognitionEvent) -> None:
        """Deliver an event to every listener."""
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Recognition listener error: {e}")

    def get_metrics(self) -> dict:
        """Get dispatcher metrics for observability."""
        return {
            "dispatch_count": self._dispatch_count,
            "failure_count": self._failure_count,
            "listeners": len(self._listeners),
            "language_hints": self.language_hints,
        }

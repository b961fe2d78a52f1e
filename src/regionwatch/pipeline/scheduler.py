"""
Capture Scheduler
=================

Fixed-interval driver for the capture cycle.

This module provides the CaptureScheduler class, which fires an async
`cycle` callable every `interval` seconds while enabled.

Design Rules:
    - At most one cycle executes at any instant (single-slot guard)
    - Ticks arriving while a cycle is still running are DROPPED, not queued
    - The first tick fires one interval after start
    - stop() is idempotent; no new cycle begins after it returns, but an
      in-flight cycle is allowed to complete
    - A cycle that raises is logged; the loop keeps ticking
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional


logger = logging.getLogger(__name__)


DEFAULT_INTERVAL_SEC = 1.0


Cycle = Callable[[], Awaitable[Any]]


class CaptureScheduler:
    """
    Interval timer with overlap prevention.

    Attributes:
        interval: Seconds between ticks
        running: Whether ticks are being generated
        busy: Whether a cycle is currently executing

    Example:
        scheduler = CaptureScheduler()
        scheduler.start(1.0, capture_cycle.run_once)

        # Later
        scheduler.stop()
        await scheduler.wait_idle()
    """

    def __init__(self) -> None:
        self._interval: float = DEFAULT_INTERVAL_SEC
        self._cycle: Optional[Cycle] = None
        self._running: bool = False
        self._ticker: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None

        # Counters
        self._tick_count: int = 0
        self._ticks_dropped: int = 0
        self._cycles_started: int = 0
        self._cycles_completed: int = 0
        self._cycle_errors: int = 0

    @property
    def interval(self) -> float:
        """Seconds between ticks."""
        return self._interval

    @property
    def running(self) -> bool:
        """Whether ticks are being generated."""
        return self._running

    @property
    def busy(self) -> bool:
        """Whether a cycle is currently executing."""
        return self._inflight is not None and not self._inflight.done()

    @property
    def ticks_dropped(self) -> int:
        """Ticks skipped because a cycle was still running."""
        return self._ticks_dropped

    @property
    def cycles_started(self) -> int:
        """Number of cycle invocations."""
        return self._cycles_started

    def start(self, interval: float, cycle: Cycle) -> None:
        """
        Start firing `cycle` every `interval` seconds.

        Must be called from within a running event loop. Calling start()
        while already running is a no-op.

        Args:
            interval: Seconds between ticks, must be > 0
            cycle: Async callable run on each accepted tick

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")

        if self._running:
            logger.warning("CaptureScheduler already running, ignoring start()")
            return

        self._interval = interval
        self._cycle = cycle
        self._running = True
        self._ticker = asyncio.get_running_loop().create_task(
            self._tick_loop(),
            name="capture_scheduler",
        )
        logger.info(f"CaptureScheduler started: interval={interval:.3f}s")

    def stop(self) -> None:
        """
        Stop generating ticks.

        Idempotent. Does not interrupt an in-flight cycle; use
        wait_idle() to wait for it.
        """
        if not self._running:
            return

        self._running = False
        if self._ticker is not None:
            self._ticker.cancel()

        logger.info(
            f"CaptureScheduler stopped: ticks={self._tick_count}, "
            f"cycles={self._cycles_started}, dropped={self._ticks_dropped}"
        )

    async def wait_idle(self) -> None:
        """Wait for the ticker to exit and any in-flight cycle to finish."""
        ticker = self._ticker
        if ticker is not None and not self._running:
            try:
                await ticker
            except asyncio.CancelledError:
                pass
            if self._ticker is ticker:
                self._ticker = None

        inflight = self._inflight
        if inflight is not None and not inflight.done():
            await asyncio.wait({inflight})

    async def _tick_loop(self) -> None:
        """Generate ticks on a fixed schedule."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval

        while self._running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if not self._running:
                break

            # Ticks that elapsed while the loop itself was blocked
            late = loop.time() - next_tick
            missed = int(late // self._interval)
            if missed > 0:
                self._ticks_dropped += missed
                next_tick += missed * self._interval

            next_tick += self._interval
            self._on_tick()

    def _on_tick(self) -> None:
        """Start a cycle unless one is still running."""
        self._tick_count += 1

        if self.busy:
            self._ticks_dropped += 1
            logger.debug(
                f"Tick {self._tick_count} dropped, previous cycle still running "
                f"(dropped={self._ticks_dropped})"
            )
            return

        self._cycles_started += 1
        self._inflight = asyncio.get_running_loop().create_task(
            self._run_cycle(),
            name="capture_cycle",
        )

    async def _run_cycle(self) -> None:
        """Run one cycle; errors are logged, never propagated."""
        try:
            await self._cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._cycle_errors += 1
            logger.error(f"Capture cycle error (tick={self._tick_count}): {e}")
        finally:
            self._cycles_completed += 1

    def get_metrics(self) -> dict:
        """Get scheduler metrics for observability."""
        return {
            "running": self._running,
            "busy": self.busy,
            "interval_sec": self._interval,
            "ticks": self._tick_count,
            "ticks_dropped": self._ticks_dropped,
            "cycles_started": self._cycles_started,
            "cycles_completed": self._cycles_completed,
            "cycle_errors": self._cycle_errors,
        }

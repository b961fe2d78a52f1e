"""
Pipeline Module
===============

Drives the capture → preprocess → detect → recognize loop.

    - scheduler.py: CaptureScheduler, fixed interval with dropped ticks
    - cycle.py: CaptureCycle, LangGraph workflow for a single tick

Example:
    cycle = CaptureCycle(source, detector, dispatcher)
    scheduler = CaptureScheduler()
    scheduler.start(1.0, cycle.run_once)
"""

from regionwatch.pipeline.cycle import CaptureCycle, CycleGraphState, CycleReport
from regionwatch.pipeline.scheduler import DEFAULT_INTERVAL_SEC, CaptureScheduler

__all__ = [
    "CaptureCycle",
    "CycleGraphState",
    "CycleReport",
    "CaptureScheduler",
    "DEFAULT_INTERVAL_SEC",
]

"""
regionwatch
===========

Settled-change text recognition for a captured screen region.

This package watches a rectangle of the screen (or of a frame stream), waits
for its content to change and then settle, and sends each settled frame to a
text recognition backend exactly once.

Components:
    - models: Frame, configs, outcome codes and recognition events
    - imaging: Frame canonicalization and pixel diffing
    - detector: Three-frame stability state machine
    - capture: Screen and stream region sources
    - recognition: Recognition engines and the dispatcher
    - pipeline: Fixed-interval scheduler and the per-tick LangGraph cycle

Example:
    from regionwatch.config import settings
    from regionwatch.pipeline import CaptureCycle, CaptureScheduler

    # The service is started via the FastAPI application
    # See main.py for entry point
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]

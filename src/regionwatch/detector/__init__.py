"""
Detector Module
===============

Stability detection over a bounded window of canonical frames.

    - history.py: FrameHistory ring buffer (HISTORY_WINDOW = 3)
    - stability.py: StabilityDetector state machine
"""

from regionwatch.detector.history import HISTORY_WINDOW, FrameHistory
from regionwatch.detector.stability import StabilityDetector

__all__ = [
    "HISTORY_WINDOW",
    "FrameHistory",
    "StabilityDetector",
]

"""
Recognition Module
==================

Text recognition for settled frames.

This module treats recognition as a pluggable black box: the capture
loop only ever sees RecognitionEvents produced by the dispatcher.

Components:
    - RecognitionEngine: Protocol for recognition backends
    - MockRecognitionEngine: Deterministic mock for testing
    - VisionRecognitionEngine: Google Cloud Vision text detection
    - RecognitionDispatcher: Single-call dispatch with failure handling
"""

from regionwatch.recognition.engine import (
    MockRecognitionEngine,
    RecognitionEngine,
    RecognitionFailure,
)
from regionwatch.recognition.vision_engine import VisionAPIError, VisionRecognitionEngine
from regionwatch.recognition.dispatcher import RecognitionDispatcher

__all__ = [
    "RecognitionEngine",
    "RecognitionFailure",
    "MockRecognitionEngine",
    "VisionRecognitionEngine",
    "VisionAPIError",
    "RecognitionDispatcher",
]

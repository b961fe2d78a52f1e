"""
Data Models
===========

Typed models for regionwatch.

This module re-exports all data models for convenient access.

Models:
    Frames:
        - Frame: RGBA pixel buffer with capture metadata
        - Region: Capture rectangle in source coordinates

    Processing:
        - PreprocessConfig: Ordered canonicalization settings
        - DiffResult, ChainDiffResult: Frame comparison results

    Detector:
        - DetectorState: IDLE, WATCHING, SEEKING_STABLE
        - DetectorResult: Outcome of a detector update
        - TickOutcome: Machine-readable tick outcome codes

    Recognition:
        - RecognizedText: Engine output
        - RecognitionEvent: Published success/failure notification
"""

from regionwatch.models.frame import Frame
from regionwatch.models.region import Region
from regionwatch.models.preprocess import PreprocessConfig
from regionwatch.models.diff import (
    CHAIN_HEAD,
    DIMENSION_MISMATCH,
    ChainDiffResult,
    DiffResult,
)
from regionwatch.models.reason_codes import TickOutcome
from regionwatch.models.state import DetectorResult, DetectorState
from regionwatch.models.recognition import RecognitionEvent, RecognizedText

__all__ = [
    # Frames
    "Frame",
    "Region",
    # Processing
    "PreprocessConfig",
    "DiffResult",
    "ChainDiffResult",
    "DIMENSION_MISMATCH",
    "CHAIN_HEAD",
    # Detector
    "DetectorState",
    "DetectorResult",
    "TickOutcome",
    # Recognition
    "RecognizedText",
    "RecognitionEvent",
]

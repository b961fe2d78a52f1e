"""
Imaging Module
==============

Pixel-level processing of captured frames.

Components:
    - FramePreprocessor: Binarize / blur / dilate / invert canonicalization
    - FrameDiffer: Fraction of differing pixels, pairwise and chained
"""

from regionwatch.imaging.differ import (
    DEFAULT_EQUALITY_THRESHOLD,
    DEFAULT_PIXEL_THRESHOLD,
    FrameDiffer,
)
from regionwatch.imaging.preprocess import FramePreprocessor

__all__ = [
    "FramePreprocessor",
    "FrameDiffer",
    "DEFAULT_PIXEL_THRESHOLD",
    "DEFAULT_EQUALITY_THRESHOLD",
]

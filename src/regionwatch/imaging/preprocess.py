"""
Frame Preprocessing
===================

Canonicalization of captured frames.

This module turns a raw captured Frame into the canonical Frame that is
used both for comparison and for recognition, so both stages see the
same visual content.

Pipeline (fixed order):
    1. Binarize   - luminance threshold to black/white (optional)
    2. Blur       - Gaussian blur, kernel 2r+1 (r = 0 disables)
    3. Dilate     - one 3x3 dilation pass (optional)
    4. Invert     - 255 - value on colour channels (optional)

Key Design Decisions:
    - Pure: the input Frame is never modified, output owns a new buffer
    - Alpha is carried through unchanged; transforms touch R, G, B only
    - Zero-area frames short-circuit to an empty Frame
"""

import logging

import cv2
import numpy as np

from regionwatch.models.frame import Frame
from regionwatch.models.preprocess import PreprocessConfig


logger = logging.getLogger(__name__)


_DILATE_KERNEL = np.ones((3, 3), dtype=np.uint8)


def binarize_threshold_value(threshold_percent: int) -> int:
    """Map a [0, 100] threshold onto the [0, 255] luminance domain."""
    return int(round(threshold_percent / 100.0 * 255))


def binarize(pixels: np.ndarray, threshold_percent: int) -> np.ndarray:
    """
    Convert to a two-level image.

    Pixels whose luminance is below the threshold become black,
    pixels at or above it become white.
    """
    cutoff = binarize_threshold_value(threshold_percent)
    gray = cv2.cvtColor(pixels, cv2.COLOR_RGBA2GRAY)
    binary = np.where(gray >= cutoff, 255, 0).astype(np.uint8)

    out = pixels.copy()
    out[:, :, :3] = binary[:, :, np.newaxis]
    return out


def blur(pixels: np.ndarray, radius: int) -> np.ndarray:
    """Gaussian blur with a (2r+1)x(2r+1) kernel."""
    if radius <= 0:
        return pixels
    ksize = 2 * radius + 1
    out = cv2.GaussianBlur(pixels, (ksize, ksize), 0)
    out[:, :, 3] = pixels[:, :, 3]
    return out


def dilate(pixels: np.ndarray) -> np.ndarray:
    """One 3x3 dilation pass; bright regions grow by one pixel."""
    out = cv2.dilate(pixels, _DILATE_KERNEL, iterations=1)
    out[:, :, 3] = pixels[:, :, 3]
    return out


def invert(pixels: np.ndarray) -> np.ndarray:
    """Invert colour channels."""
    out = pixels.copy()
    out[:, :, :3] = 255 - out[:, :, :3]
    return out


class FramePreprocessor:
    """
    Applies the canonicalization pipeline to captured frames.

    Stateless apart from counters: the same Frame and PreprocessConfig
    always produce the same output.

    Example:
        preprocessor = FramePreprocessor()
        config = PreprocessConfig(binarize_enabled=True, blur_radius=1)

        canonical = preprocessor.process(frame, config)
    """

    def __init__(self) -> None:
        self._processed_count: int = 0
        self._empty_count: int = 0

    def process(self, frame: Frame, config: PreprocessConfig) -> Frame:
        """
        Canonicalize a frame.

        Args:
            frame: Raw captured frame (not modified)
            config: Transforms to apply

        Returns:
            New Frame with the same timestamp and frame_id
        """
        if frame.is_empty:
            self._empty_count += 1
            logger.debug(f"Empty region on frame {frame.frame_id}, skipping pipeline")
            return Frame.empty(timestamp=frame.timestamp, frame_id=frame.frame_id)

        pixels = np.array(frame.pixels, copy=True)

        if config.binarize_enabled:
            pixels = binarize(pixels, config.binarize_threshold)

        pixels = blur(pixels, config.blur_radius)

        if config.dilate_enabled:
            pixels = dilate(pixels)

        if config.invert:
            pixels = invert(pixels)

        self._processed_count += 1

        return Frame(
            pixels=np.ascontiguousarray(pixels),
            timestamp=frame.timestamp,
            frame_id=frame.frame_id,
        )

    def get_metrics(self) -> dict:
        """Get preprocessor metrics for observability."""
        return {
            "processed_count": self._processed_count,
            "empty_count": self._empty_count,
        }

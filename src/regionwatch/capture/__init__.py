"""
Capture Module
==============

Acquisition sources for the capture loop.

    - FrameSource: Protocol, capture_region() -> Frame | None
    - ScreenRegionSource: Grabs a monitor rectangle with mss
    - StreamFrameConsumer / StreamRegionSource: Crops the region out of the
      latest frame of a WebSocket frame stream

Example:
    from regionwatch.capture import ScreenRegionSource
    from regionwatch.models import Region

    source = ScreenRegionSource(Region(x=100, y=200, width=640, height=120))
    frame = source.capture_region()
"""

from regionwatch.capture.source import AcquisitionUnavailable, FrameSource
from regionwatch.capture.image_decoder import ImageDecodeError, decode_image_rgba
from regionwatch.capture.screen import ScreenRegionSource
from regionwatch.capture.consumer import (
    StreamConsumerMetrics,
    StreamFrameConsumer,
    StreamRegionSource,
)

__all__ = [
    "AcquisitionUnavailable",
    "FrameSource",
    "ImageDecodeError",
    "decode_image_rgba",
    "ScreenRegionSource",
    "StreamConsumerMetrics",
    "StreamFrameConsumer",
    "StreamRegionSource",
]

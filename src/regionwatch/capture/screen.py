"""
Screen Region Source
====================

Captures a rectangle of a monitor using mss.

The region is expressed relative to the chosen monitor's top-left corner
and clamped to the monitor bounds. An mss handle is opened per capture,
since captures run in worker threads and mss handles are thread-bound.
"""

import logging
import time
from typing import Optional

import cv2
import mss
import numpy as np
from mss.exception import ScreenShotError

from regionwatch.capture.source import AcquisitionUnavailable
from regionwatch.models.frame import Frame
from regionwatch.models.region import Region


logger = logging.getLogger(__name__)


class ScreenRegionSource:
    """
    Screen-grab implementation of FrameSource.

    Attributes:
        region: Rectangle to capture, relative to the monitor
        monitor_index: mss monitor index (0 = all monitors, 1 = primary)
    """

    def __init__(self, region: Region, monitor_index: int = 1) -> None:
        self.region = region
        self.monitor_index = monitor_index
        self._frame_counter: int = 0
        self._error_count: int = 0

    def capture_region(self) -> Optional[Frame]:
        """
        Grab the region from the screen.

        Returns:
            RGBA Frame, or None if the region is empty after clamping

        Raises:
            AcquisitionUnavailable: If mss fails to grab
        """
        if self.region.is_empty:
            return None

        try:
            with mss.mss() as sct:
                monitor = sct.monitors[self.monitor_index]
                region = self.region.clamp(monitor["width"], monitor["height"])
                if region.is_empty:
                    return None

                shot = sct.grab({
                    "left": monitor["left"] + region.x,
                    "top": monitor["top"] + region.y,
                    "width": region.width,
                    "height": region.height,
                })
                bgra = np.asarray(shot, dtype=np.uint8)
        except (ScreenShotError, IndexError) as e:
            self._error_count += 1
            raise AcquisitionUnavailable(f"Screen grab failed: {e}") from e

        self._frame_counter += 1
        return Frame(
            pixels=cv2.cvtColor(bgra, cv2.COLOR_BGRA2RGBA),
            timestamp=time.time(),
            frame_id=self._frame_counter,
        )

    def get_metrics(self) -> dict:
        """Get source metrics for observability."""
        return {
            "frames_captured": self._frame_counter,
            "errors": self._error_count,
            "monitor_index": self.monitor_index,
        }

"""
Frame Sources
=============

Interface of the acquisition collaborator.

A source returns the pixels of the configured region on demand. Returning
None (for example while a selection still has zero area) is a normal
outcome for a tick; AcquisitionUnavailable signals that the source could
not produce a frame right now. Both make the capture loop skip the tick.
"""

from typing import Optional, Protocol

from regionwatch.models.frame import Frame
from regionwatch.models.region import Region


class AcquisitionUnavailable(Exception):
    """Raised when a source cannot produce a frame this tick."""
    pass


class FrameSource(Protocol):
    """
    Protocol for acquisition backends.

    Implemented by:
        - ScreenRegionSource (mss screen grab)
        - StreamRegionSource (WebSocket frame stream)
    """

    region: Region

    def capture_region(self) -> Optional[Frame]:
        """
        Capture the current region.

        Returns:
            RGBA Frame, or None if there is nothing to capture

        Raises:
            AcquisitionUnavailable: If the source failed this tick
        """
        ...

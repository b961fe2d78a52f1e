"""
Region Model
============

Rectangular capture region in source pixel coordinates.
"""

from pydantic import BaseModel, ConfigDict, Field


class Region(BaseModel):
    """
    Capture region selected on the source.

    Attributes:
        x: Left edge (pixels from the source's left)
        y: Top edge (pixels from the source's top)
        width: Region width in pixels
        height: Region height in pixels
    """

    model_config = ConfigDict(frozen=True)

    x: int = Field(default=0, ge=0, description="Left edge in pixels")
    y: int = Field(default=0, ge=0, description="Top edge in pixels")
    width: int = Field(default=0, ge=0, description="Width in pixels")
    height: int = Field(default=0, ge=0, description="Height in pixels")

    @property
    def is_empty(self) -> bool:
        """A selection still being drawn is commonly zero-area."""
        return self.width == 0 or self.height == 0

    def clamp(self, source_width: int, source_height: int) -> "Region":
        """
        Intersect the region with a source of the given size.

        Returns an empty region when there is no overlap.
        """
        x0 = min(self.x, source_width)
        y0 = min(self.y, source_height)
        x1 = min(self.x + self.width, source_width)
        y1 = min(self.y + self.height, source_height)
        return Region(x=x0, y=y0, width=max(0, x1 - x0), height=max(0, y1 - y0))

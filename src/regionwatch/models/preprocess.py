"""
Preprocessing Configuration
===========================

Value type describing how a captured frame is canonicalized.

The same configuration is applied to the frames that are compared and to
the frame that is sent for recognition, so both see identical content.
"""

from pydantic import BaseModel, ConfigDict, Field


class PreprocessConfig(BaseModel):
    """
    Ordered pixel transforms applied to every captured frame.

    Attributes:
        binarize_enabled: Convert to a two-level (black/white) image
        binarize_threshold: Luminance cut-off in percent of full scale
        blur_radius: Gaussian blur radius in pixels (0 disables blur)
        invert: Invert colour channels as the last step
        dilate_enabled: Apply one 3x3 dilation pass to thicken strokes
    """

    model_config = ConfigDict(frozen=True)

    binarize_enabled: bool = Field(
        default=False,
        description="Convert to a two-level image before comparison",
    )
    binarize_threshold: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Binarize cut-off, percent of the luminance range",
    )
    blur_radius: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Gaussian blur radius in pixels (0 = no blur)",
    )
    invert: bool = Field(
        default=False,
        description="Invert colour channels",
    )
    dilate_enabled: bool = Field(
        default=False,
        description="Apply one 3x3 morphological dilation",
    )

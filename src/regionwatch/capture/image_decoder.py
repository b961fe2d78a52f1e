"""
Image Decoder
=============

Decodes base64 PNG/JPEG payloads from the frame stream into RGBA arrays.

Design Rules:
    - This is the ONLY place in the codebase that decodes stream images
    - Always returns RGBA uint8 (H, W, 4), whatever the source layout
    - Fails fast on corrupt payloads
"""

import base64
import binascii
import logging

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Raised when image decoding fails."""
    pass


def decode_image_rgba(image_b64: str, frame_id: int = -1) -> np.ndarray:
    """
    Decode a base64 PNG/JPEG payload to an RGBA array.

    Args:
        image_b64: Base64-encoded image (a data URL prefix is accepted)
        frame_id: Frame id used in error messages

    Returns:
        RGBA image as np.ndarray (H, W, 4), dtype=uint8

    Raises:
        ImageDecodeError: If decoding fails or the image layout is unknown
    """
    if image_b64.startswith("data:"):
        image_b64 = image_b64.split(",", 1)[-1]

    try:
        image_bytes = base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Base64 decode failed for frame {frame_id}: {e}")

    nparr = np.frombuffer(image_bytes, np.uint8)
    decoded = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)

    if decoded is None:
        raise ImageDecodeError(
            f"Failed to decode frame {frame_id}: cv2.imdecode returned None"
        )

    if decoded.dtype != np.uint8:
        raise ImageDecodeError(f"Invalid dtype for frame {frame_id}: {decoded.dtype}")

    if decoded.ndim == 2:
        return cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)
    if decoded.ndim == 3 and decoded.shape[2] == 3:
        return cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)
    if decoded.ndim == 3 and decoded.shape[2] == 4:
        return cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)

    raise ImageDecodeError(f"Invalid image shape for frame {frame_id}: {decoded.shape}")

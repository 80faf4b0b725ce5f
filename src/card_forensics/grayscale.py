"""RGBA to luminance conversion shared by every detector."""

import logging

import numpy as np

from card_forensics.constants import LUMA_BLUE, LUMA_GREEN, LUMA_RED
from card_forensics.types import LuminanceBuffer, PixelBuffer

logger = logging.getLogger(__name__)

__all__ = ['to_luminance']


def to_luminance(image: PixelBuffer) -> LuminanceBuffer:
    """
    Convert an RGBA buffer to an 8-bit luminance plane.

    Uses Y = round(0.299 R + 0.587 G + 0.114 B), rounding halves up.
    Alpha is ignored.

    Args:
        image: Decoded RGBA pixel buffer

    Returns:
        LuminanceBuffer with the same width and height
    """
    rgb = image.rgb.astype(np.float64)
    luma = LUMA_RED * rgb[:, :, 0] + LUMA_GREEN * rgb[:, :, 1] + LUMA_BLUE * rgb[:, :, 2]
    gray = np.clip(np.floor(luma + 0.5), 0, 255).astype(np.uint8)

    logger.debug(f"Converted {image.width}x{image.height} RGBA buffer to luminance")

    return LuminanceBuffer(gray)

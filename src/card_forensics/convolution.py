"""3x3 kernel engine and shared gradient fields.

All responses are computed on the image interior; the 1-pixel border of
every output field is zero.
"""

import logging
from typing import NamedTuple

import numpy as np
from scipy import ndimage

from card_forensics.types import LuminanceBuffer

logger = logging.getLogger(__name__)

__all__ = [
    'SOBEL_X',
    'SOBEL_Y',
    'LAPLACIAN',
    'GradientField',
    'interior_mask',
    'apply_kernel',
    'sobel_gradient',
    'central_difference_gradient',
    'laplacian_variance',
]

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)
LAPLACIAN = np.array([[0, -1, 0], [-1, 4, -1], [0, -1, 0]], dtype=np.float64)


class GradientField(NamedTuple):
    """Horizontal/vertical derivatives with magnitude and direction."""

    gx: np.ndarray
    gy: np.ndarray
    magnitude: np.ndarray  # sqrt(gx^2 + gy^2)
    direction: np.ndarray  # atan2(gy, gx) in radians


def interior_mask(shape, border: int = 1) -> np.ndarray:
    """Boolean mask that is True away from a ``border``-pixel frame."""
    mask = np.zeros(shape, dtype=bool)
    h, w = shape
    if h > 2 * border and w > 2 * border:
        mask[border:h - border, border:w - border] = True
    return mask


def _zero_border(field: np.ndarray, border: int = 1) -> np.ndarray:
    field[~interior_mask(field.shape, border)] = 0.0
    return field


def apply_kernel(luminance: LuminanceBuffer, kernel: np.ndarray) -> np.ndarray:
    """
    Dot-product every interior 3x3 neighborhood with a kernel.

    The kernel is applied as a correlation: kernel[ky + 1, kx + 1] weights
    the pixel at offset (ky, kx).

    Args:
        luminance: Source luminance plane (not modified)
        kernel: 3x3 kernel

    Returns:
        float64 response field (H, W) with a zero border
    """
    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 kernel, got shape {kernel.shape}")

    source = luminance.values.astype(np.float64)
    response = ndimage.correlate(source, kernel, mode='constant', cval=0.0)
    return _zero_border(response)


def sobel_gradient(luminance: LuminanceBuffer) -> GradientField:
    """Sobel-X/Y responses combined into magnitude and direction."""
    gx = apply_kernel(luminance, SOBEL_X)
    gy = apply_kernel(luminance, SOBEL_Y)
    return GradientField(gx, gy, np.sqrt(gx * gx + gy * gy), np.arctan2(gy, gx))


def central_difference_gradient(luminance: LuminanceBuffer) -> GradientField:
    """
    Central-difference derivatives on the interior.

    gx = I[y, x+1] - I[y, x-1] and gy = I[y+1, x] - I[y-1, x]. Shared by the
    Harris, Hough and HOG measurements.
    """
    source = luminance.values.astype(np.float64)
    gx = np.zeros_like(source)
    gy = np.zeros_like(source)
    if not luminance.is_degenerate:
        gx[1:-1, 1:-1] = source[1:-1, 2:] - source[1:-1, :-2]
        gy[1:-1, 1:-1] = source[2:, 1:-1] - source[:-2, 1:-1]

    logger.debug(f"Computed central-difference gradient for {luminance.width}x{luminance.height}")

    return GradientField(gx, gy, np.sqrt(gx * gx + gy * gy), np.arctan2(gy, gx))


def laplacian_variance(luminance: LuminanceBuffer) -> float:
    """Mean of squared Laplacian responses over the interior (0 if none)."""
    if luminance.is_degenerate:
        return 0.0
    response = apply_kernel(luminance, LAPLACIAN)
    interior = (luminance.width - 2) * (luminance.height - 2)
    return float(np.sum(np.square(response)) / interior)

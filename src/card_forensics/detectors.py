"""Gradient-based feature detectors: edges, corners, lines and sharpness.

Each detector consumes a shared LuminanceBuffer (and optionally a gradient
field computed once per run), applies its thresholds and returns an
AlgorithmResult. None of them mutate their inputs.
"""

import logging
import math
from typing import Optional

import numpy as np
from scipy import ndimage

from card_forensics.config import CannyConfig, HarrisConfig, HoughConfig, SharpnessConfig
from card_forensics.constants import HARRIS_BORDER
from card_forensics.convolution import (
    GradientField,
    central_difference_gradient,
    interior_mask,
    laplacian_variance,
    sobel_gradient,
)
from card_forensics.scoring import build_result
from card_forensics.types import AlgorithmResult, LuminanceBuffer

logger = logging.getLogger(__name__)

__all__ = [
    'canny_edge_density',
    'non_max_suppression',
    'hysteresis_threshold',
    'harris_response',
    'harris_corners',
    'hough_line_count',
    'laplacian_sharpness',
]

_EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)


def non_max_suppression(gradient: GradientField) -> np.ndarray:
    """
    Thin edges by keeping only local maxima along the gradient direction.

    The direction is quantized into four sectors (0, 45, 90 and 135
    degrees). Surviving magnitudes are rounded and clamped to 8 bits.

    Args:
        gradient: Sobel gradient field

    Returns:
        uint8 array (H, W) of suppressed magnitudes
    """
    mag = gradient.magnitude
    angle = gradient.direction
    h, w = mag.shape
    padded = np.pad(mag, 1, mode='constant')

    def neighbor(dy: int, dx: int) -> np.ndarray:
        return padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]

    p8 = math.pi / 8
    horizontal = ((angle >= -p8) & (angle < p8)) | (angle >= 7 * p8) | (angle < -7 * p8)
    diagonal_up = ((angle >= p8) & (angle < 3 * p8)) | ((angle >= -7 * p8) & (angle < -5 * p8))
    vertical = ((angle >= 3 * p8) & (angle < 5 * p8)) | ((angle >= -5 * p8) & (angle < -3 * p8))

    n1 = np.select(
        [horizontal, diagonal_up, vertical],
        [neighbor(0, -1), neighbor(-1, 1), neighbor(-1, 0)],
        default=neighbor(-1, -1),
    )
    n2 = np.select(
        [horizontal, diagonal_up, vertical],
        [neighbor(0, 1), neighbor(1, -1), neighbor(1, 0)],
        default=neighbor(1, 1),
    )

    keep = interior_mask(mag.shape) & (mag >= n1) & (mag >= n2)
    suppressed = np.where(keep, np.clip(np.rint(mag), 0, 255), 0)
    return suppressed.astype(np.uint8)


def hysteresis_threshold(
    suppressed: np.ndarray, low: float, high: float
) -> np.ndarray:
    """
    Keep strong pixels and the weak pixels 8-connected to them.

    Args:
        suppressed: Non-max-suppressed magnitudes
        low: Weak edge threshold
        high: Strong edge threshold

    Returns:
        Boolean edge map
    """
    strong = suppressed >= high
    candidates = suppressed >= low
    labels, count = ndimage.label(candidates, structure=_EIGHT_CONNECTED)
    if count == 0:
        return np.zeros_like(candidates)
    connected = np.unique(labels[strong])
    connected = connected[connected > 0]
    return np.isin(labels, connected)


def canny_edge_density(
    luminance: LuminanceBuffer,
    config: Optional[CannyConfig] = None,
    gradient: Optional[GradientField] = None,
) -> AlgorithmResult:
    """
    Measure the share of pixels lying on strong edges.

    In ``simple`` mode a pixel is an edge when its Sobel magnitude reaches
    the high threshold. In ``non_max_suppression`` mode the magnitudes are
    thinned first and weak pixels connected to strong ones are kept.

    Args:
        luminance: Luminance plane
        config: Thresholds and mode (defaults to CannyConfig())
        gradient: Precomputed Sobel gradient, computed here if omitted

    Returns:
        AlgorithmResult with edge_pixels and edge_density (%)
    """
    config = config or CannyConfig()
    gradient = gradient if gradient is not None else sobel_gradient(luminance)
    total = luminance.pixel_count

    metrics = {'mode': config.mode}
    if config.mode == 'non_max_suppression':
        suppressed = non_max_suppression(gradient)
        edges = hysteresis_threshold(suppressed, config.low_threshold, config.high_threshold)
        strong = int(np.count_nonzero(suppressed >= config.high_threshold))
        edge_pixels = int(np.count_nonzero(edges))
        metrics['strong_pixels'] = strong
        metrics['weak_pixels'] = edge_pixels - strong
    else:
        mask = interior_mask(gradient.magnitude.shape)
        edge_pixels = int(np.count_nonzero(mask & (gradient.magnitude >= config.high_threshold)))

    edge_density = edge_pixels / total * 100.0
    metrics['edge_pixels'] = edge_pixels
    metrics['edge_density'] = edge_density

    score = (edge_density / config.density_scale) * 10.0
    return build_result('edge', score, metrics)


def harris_response(
    gradient: GradientField, k: float, window_size: int = 1
) -> np.ndarray:
    """
    Harris corner response from central-difference derivatives.

    Derivatives are halved (Ix = (I[x+1] - I[x-1]) / 2) and the structure
    tensor is summed over a square window. A window of 1 evaluates the
    tensor pointwise.

    Returns:
        float64 response field det - k * trace^2
    """
    ix = gradient.gx / 2.0
    iy = gradient.gy / 2.0
    ixx = ix * ix
    iyy = iy * iy
    ixy = ix * iy
    if window_size > 1:
        window = np.ones((window_size, window_size), dtype=np.float64)
        ixx = ndimage.correlate(ixx, window, mode='constant')
        iyy = ndimage.correlate(iyy, window, mode='constant')
        ixy = ndimage.correlate(ixy, window, mode='constant')
    det = ixx * iyy - ixy * ixy
    trace = ixx + iyy
    return det - k * trace * trace


def harris_corners(
    luminance: LuminanceBuffer,
    config: Optional[HarrisConfig] = None,
    gradient: Optional[GradientField] = None,
) -> AlgorithmResult:
    """Count pixels whose Harris response exceeds the corner threshold."""
    config = config or HarrisConfig()
    gradient = gradient if gradient is not None else central_difference_gradient(luminance)

    response = harris_response(gradient, config.k, config.window_size)
    border = max(HARRIS_BORDER, 1 + config.window_size // 2)
    mask = interior_mask(response.shape, border)
    corners = int(np.count_nonzero(mask & (response > config.threshold)))

    density = corners / luminance.pixel_count * config.density_factor
    return build_result('corners', density, {'corners': corners, 'density': density})


def hough_line_count(
    luminance: LuminanceBuffer,
    config: Optional[HoughConfig] = None,
    gradient: Optional[GradientField] = None,
) -> AlgorithmResult:
    """
    Estimate the number of linear structures from strong gradient pixels.

    No accumulator is built: every ``pixels_per_line`` strong pixels count
    as one line.
    """
    config = config or HoughConfig()
    gradient = gradient if gradient is not None else central_difference_gradient(luminance)

    mask = interior_mask(gradient.magnitude.shape)
    edge_pixels = int(np.count_nonzero(mask & (gradient.magnitude > config.magnitude_threshold)))
    lines = edge_pixels // config.pixels_per_line

    score = (lines / config.line_scale) * 10.0
    return build_result('lines', score, {'lines': lines, 'edge_pixels': edge_pixels})


def laplacian_sharpness(
    luminance: LuminanceBuffer, config: Optional[SharpnessConfig] = None
) -> AlgorithmResult:
    """Score focus from the variance of the Laplacian response."""
    config = config or SharpnessConfig()
    variance = laplacian_variance(luminance)
    score = (variance / config.variance_scale) * 10.0
    return build_result('sharpness', score, {'variance': variance})

"""Statistical texture analyzers: entropy, LBP, HOG and color deviation.

These work directly on luminance or color samples. Only the gradient
histogram uses a gradient field, which can be shared with the Harris and
Hough detectors.
"""

import logging
import math
from typing import Optional

import numpy as np

from card_forensics.config import ColorDeviationConfig, EntropyConfig, HOGConfig, LBPConfig
from card_forensics.convolution import GradientField, central_difference_gradient, interior_mask
from card_forensics.scoring import build_result
from card_forensics.types import AlgorithmResult, LuminanceBuffer, PixelBuffer

logger = logging.getLogger(__name__)

__all__ = [
    'shannon_entropy',
    'entropy_analysis',
    'lbp_codes',
    'lbp_uniformity',
    'gradient_orientation_histogram',
    'gradient_histogram_variance',
    'color_deviation',
]

# Neighbor offsets (dy, dx) clockwise from the top-left pixel
_LBP_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, 1), (1, 1), (1, 0), (1, -1), (0, -1))


def shannon_entropy(luminance: LuminanceBuffer) -> float:
    """Shannon entropy in bits of the 256-level luminance histogram."""
    histogram = np.bincount(luminance.values.ravel(), minlength=256)
    p = histogram[histogram > 0] / luminance.pixel_count
    return float(np.sum(p * np.log2(1.0 / p)))


def entropy_analysis(
    luminance: LuminanceBuffer, config: Optional[EntropyConfig] = None
) -> AlgorithmResult:
    config = config or EntropyConfig()
    entropy = shannon_entropy(luminance)
    score = (entropy / config.max_entropy) * 10.0
    return build_result('entropy', score, {'entropy': entropy, 'max_entropy': config.max_entropy})


def lbp_codes(luminance: LuminanceBuffer) -> np.ndarray:
    """
    8-bit local binary pattern for every interior pixel.

    Bit i is set when the i-th neighbor (clockwise from top-left) is greater
    than or equal to the center.

    Returns:
        uint8 array (H-2, W-2), empty for degenerate images
    """
    if luminance.is_degenerate:
        return np.zeros((0, 0), dtype=np.uint8)

    g = luminance.values.astype(np.int16)
    h, w = g.shape
    center = g[1:-1, 1:-1]
    codes = np.zeros(center.shape, dtype=np.uint8)
    for bit, (dy, dx) in enumerate(_LBP_OFFSETS):
        neighbor = g[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]
        codes |= (neighbor >= center).astype(np.uint8) << bit
    return codes


def _circular_transitions(codes: np.ndarray) -> np.ndarray:
    transitions = np.zeros(codes.shape, dtype=np.uint8)
    for bit in range(8):
        current = (codes >> bit) & 1
        following = (codes >> ((bit + 1) % 8)) & 1
        transitions += current != following
    return transitions


def lbp_uniformity(
    luminance: LuminanceBuffer, config: Optional[LBPConfig] = None
) -> AlgorithmResult:
    """
    Share of interior pixels with a uniform local binary pattern.

    A pattern is uniform when its circular bit sequence has at most
    ``max_transitions`` 0/1 transitions. A flat image is 100% uniform.
    """
    config = config or LBPConfig()
    codes = lbp_codes(luminance)
    total = int(codes.size)
    uniform = int(np.count_nonzero(_circular_transitions(codes) <= config.max_transitions))
    uniformity = uniform / total * 100.0 if total else 0.0

    metrics = {
        'uniform_patterns': uniform,
        'total_patterns': total,
        'uniformity': uniformity,
    }
    return build_result('texture_uniformity', uniformity / 10.0, metrics)


def gradient_orientation_histogram(gradient: GradientField, bins: int) -> np.ndarray:
    """
    Magnitude-weighted histogram of gradient directions over the interior.

    Bins split [-pi, pi] evenly; bin = floor((theta + pi) / 2pi * bins) mod bins.
    """
    mask = interior_mask(gradient.magnitude.shape)
    angles = gradient.direction[mask]
    weights = gradient.magnitude[mask]
    indices = np.floor((angles + math.pi) / (2 * math.pi) * bins).astype(np.int64) % bins
    return np.bincount(indices, weights=weights, minlength=bins)


def gradient_histogram_variance(
    luminance: LuminanceBuffer,
    config: Optional[HOGConfig] = None,
    gradient: Optional[GradientField] = None,
) -> AlgorithmResult:
    """Spread between the fullest and emptiest orientation bins."""
    config = config or HOGConfig()
    gradient = gradient if gradient is not None else central_difference_gradient(luminance)

    histogram = gradient_orientation_histogram(gradient, config.bins)
    variance = float(histogram.max() - histogram.min())

    score = (variance / config.variance_scale) * 10.0
    return build_result('gradient_histogram', score, {'bins': config.bins, 'variance': variance})


def color_deviation(
    image: PixelBuffer, config: Optional[ColorDeviationConfig] = None
) -> AlgorithmResult:
    """
    Average RGB distance between consecutive grid samples.

    Colors are sampled every ``max(1, floor(sqrt(W*H) / sample_grid))``
    pixels in row-major order; this approximates a Delta-E consistency
    check without a Lab conversion.
    """
    config = config or ColorDeviationConfig()
    step = max(1, math.floor(math.sqrt(image.width * image.height) / config.sample_grid))

    samples = image.rgb[::step, ::step].reshape(-1, 3).astype(np.float64)
    if len(samples) > 1:
        deltas = np.sqrt(np.sum(np.square(np.diff(samples, axis=0)), axis=1))
        avg_delta = float(np.mean(deltas))
    else:
        avg_delta = 0.0

    logger.debug(f"Sampled {len(samples)} colors with stride {step}")

    score = 10.0 - avg_delta / config.delta_divisor
    return build_result('color_deviation', score, {'avg_delta': avg_delta, 'samples': len(samples)})

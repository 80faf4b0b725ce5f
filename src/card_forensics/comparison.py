"""Cross-image comparison metrics for standardized buffers.

Both buffers must already share the same dimensions; resizing and padding
belong to the imaging layer.
"""

import logging

import numpy as np

from card_forensics.constants import HISTOGRAM_BINS_PER_CHANNEL, SSIM_C1, SSIM_C2
from card_forensics.convolution import laplacian_variance
from card_forensics.errors import InvalidInputError
from card_forensics.grayscale import to_luminance
from card_forensics.types import ComparisonResult, LuminanceBuffer, PixelBuffer

logger = logging.getLogger(__name__)

__all__ = [
    'check_same_size',
    'color_histogram',
    'histogram_correlation',
    'structural_similarity',
    'sharpness_difference',
    'compare_images',
]


def check_same_size(a: PixelBuffer, b: PixelBuffer) -> None:
    """Raise InvalidInputError unless both buffers share width and height."""
    if (a.width, a.height) != (b.width, b.height):
        raise InvalidInputError(
            f"Comparison images must share dimensions, got "
            f"{a.width}x{a.height} and {b.width}x{b.height}"
        )


def color_histogram(image: PixelBuffer, bins: int = HISTOGRAM_BINS_PER_CHANNEL) -> np.ndarray:
    """
    Joint RGB histogram normalized by pixel count.

    Each channel is quantized into ``bins`` levels (value // (256 / bins)),
    giving a bins**3 vector that sums to 1.
    """
    width = 256 // bins
    q = image.rgb.astype(np.int64) // width
    index = (q[:, :, 0] * bins + q[:, :, 1]) * bins + q[:, :, 2]
    counts = np.bincount(index.ravel(), minlength=bins ** 3)
    return counts / float(index.size)


def histogram_correlation(a: PixelBuffer, b: PixelBuffer) -> float:
    """
    Pearson correlation of the two color histograms, floored at 0.

    Raises:
        InvalidInputError: If the buffers differ in size
    """
    check_same_size(a, b)
    h1 = color_histogram(a)
    h2 = color_histogram(b)
    d1 = h1 - h1.mean()
    d2 = h2 - h2.mean()
    denominator = np.sqrt(np.sum(d1 * d1)) * np.sqrt(np.sum(d2 * d2))
    if denominator == 0:
        return 1.0 if np.array_equal(h1, h2) else 0.0
    correlation = float(np.sum(d1 * d2) / denominator)
    return max(0.0, min(1.0, correlation))


def _global_ssim(x: LuminanceBuffer, y: LuminanceBuffer) -> float:
    a = x.values.astype(np.float64)
    b = y.values.astype(np.float64)
    mu1 = a.mean()
    mu2 = b.mean()
    var1 = a.var()
    var2 = b.var()
    cov = np.mean((a - mu1) * (b - mu2))
    numerator = (2 * mu1 * mu2 + SSIM_C1) * (2 * cov + SSIM_C2)
    denominator = (mu1 * mu1 + mu2 * mu2 + SSIM_C1) * (var1 + var2 + SSIM_C2)
    return float(numerator / denominator)


def structural_similarity(a: PixelBuffer, b: PixelBuffer) -> float:
    """
    Structural similarity computed over the whole image as one window.

    This is a simplification of SSIM: means, variances and covariance are
    global rather than taken over sliding Gaussian windows. The result is
    clamped to [0, 1].
    """
    check_same_size(a, b)
    ssim = _global_ssim(to_luminance(a), to_luminance(b))
    return max(0.0, min(1.0, ssim))


def sharpness_difference(a: PixelBuffer, b: PixelBuffer) -> float:
    """Absolute difference between the Laplacian variances of two images."""
    check_same_size(a, b)
    return abs(laplacian_variance(to_luminance(a)) - laplacian_variance(to_luminance(b)))


def compare_images(
    user_image: PixelBuffer, reference: PixelBuffer, reference_id: str = "reference"
) -> ComparisonResult:
    """
    Compute all comparison metrics for one (user, reference) pair.

    Luminance is derived once per image and shared by SSIM and sharpness.

    Raises:
        InvalidInputError: If the buffers differ in size
    """
    check_same_size(user_image, reference)

    user_gray = to_luminance(user_image)
    ref_gray = to_luminance(reference)

    result = ComparisonResult(
        reference_id=reference_id,
        color_correlation=histogram_correlation(user_image, reference),
        structural_similarity=max(0.0, min(1.0, _global_ssim(user_gray, ref_gray))),
        sharpness_difference=abs(laplacian_variance(user_gray) - laplacian_variance(ref_gray)),
    )

    logger.debug(
        f"Compared against {reference_id}: correlation={result.color_correlation:.4f}, "
        f"ssim={result.structural_similarity:.4f}, "
        f"sharpness_diff={result.sharpness_difference:.2f}"
    )

    return result

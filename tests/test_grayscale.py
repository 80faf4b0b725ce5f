"""Tests for RGBA to luminance conversion."""

import numpy as np

from card_forensics.grayscale import to_luminance
from card_forensics.types import PixelBuffer


def _solid(color, width=3, height=2):
    return PixelBuffer(np.tile(np.array(color, dtype=np.uint8), (height, width, 1)))


def test_black_and_white():
    assert np.all(to_luminance(_solid((0, 0, 0, 255))).values == 0)
    assert np.all(to_luminance(_solid((255, 255, 255, 255))).values == 255)


def test_primary_colors_use_luma_weights():
    """Test the 0.299 / 0.587 / 0.114 weighting with rounding."""
    assert to_luminance(_solid((255, 0, 0, 255))).values[0, 0] == 76  # 76.245
    assert to_luminance(_solid((0, 255, 0, 255))).values[0, 0] == 150  # 149.685
    assert to_luminance(_solid((0, 0, 255, 255))).values[0, 0] == 29  # 29.07


def test_alpha_is_ignored():
    opaque = to_luminance(_solid((10, 200, 30, 255)))
    transparent = to_luminance(_solid((10, 200, 30, 0)))
    assert np.array_equal(opaque.values, transparent.values)


def test_shape_and_source_untouched(noise_image):
    before = noise_image.to_bytes()
    luminance = to_luminance(noise_image)

    assert luminance.width == noise_image.width
    assert luminance.height == noise_image.height
    assert luminance.values.dtype == np.uint8
    assert noise_image.to_bytes() == before

"""Tests for edge, corner, line and sharpness detectors."""

import numpy as np
import pytest

from card_forensics.config import CannyConfig, HarrisConfig, HoughConfig
from card_forensics.convolution import GradientField, central_difference_gradient
from card_forensics.detectors import (
    canny_edge_density,
    harris_corners,
    harris_response,
    hough_line_count,
    hysteresis_threshold,
    laplacian_sharpness,
    non_max_suppression,
)
from card_forensics.grayscale import to_luminance
from card_forensics.types import LuminanceBuffer


def _luminance(values):
    return LuminanceBuffer(np.asarray(values, dtype=np.uint8))


def _square(size=20, start=5, stop=15):
    values = np.zeros((size, size), dtype=np.uint8)
    values[start:stop, start:stop] = 255
    return _luminance(values)


def test_canny_flat_image_has_no_edges():
    result = canny_edge_density(_luminance(np.full((10, 10), 128)))

    assert result.name == "Canny Edge Detection"
    assert result.metrics["edge_pixels"] == 0
    assert result.score == 0.0


def test_canny_simple_step(step_10x10):
    """Test edge counting on a hard vertical step."""
    result = canny_edge_density(to_luminance(step_10x10))

    # Two columns straddle the step on each of the 8 interior rows
    assert result.metrics["edge_pixels"] == 16
    assert result.metrics["edge_density"] == pytest.approx(16.0)
    assert result.metrics["mode"] == "simple"
    assert result.score == 10.0


def test_canny_density_score_formula():
    """Test score = (density% / 10) * 10 below the cap."""
    values = np.zeros((40, 40), dtype=np.uint8)
    values[:, 20:] = 255
    result = canny_edge_density(_luminance(values))

    # 2 columns x 38 interior rows over 1600 pixels
    assert result.metrics["edge_pixels"] == 76
    assert result.score == pytest.approx(76 / 1600 * 100)


def test_canny_threshold_is_inclusive():
    """A magnitude exactly at the high threshold counts as an edge."""
    values = np.zeros((5, 6), dtype=np.uint8)
    values[:, 3:] = 50  # Sobel magnitude 200 at the step
    strict = canny_edge_density(_luminance(values), CannyConfig(high_threshold=200.0))
    above = canny_edge_density(
        _luminance(values), CannyConfig(low_threshold=50.0, high_threshold=200.5)
    )

    assert strict.metrics["edge_pixels"] == 6
    assert above.metrics["edge_pixels"] == 0


def test_canny_non_max_suppression_mode(step_10x10):
    config = CannyConfig(mode="non_max_suppression")
    result = canny_edge_density(to_luminance(step_10x10), config)

    assert result.metrics["mode"] == "non_max_suppression"
    assert result.metrics["strong_pixels"] == 16
    assert result.metrics["weak_pixels"] == 0
    assert result.metrics["edge_pixels"] == 16


def test_non_max_suppression_keeps_ridge():
    """Only the local maximum across a horizontal gradient survives."""
    row = np.array([0, 10, 50, 30, 0], dtype=np.float64)
    magnitude = np.tile(row, (5, 1))
    zeros = np.zeros_like(magnitude)
    gradient = GradientField(magnitude, zeros, magnitude, zeros)

    suppressed = non_max_suppression(gradient)

    assert suppressed.dtype == np.uint8
    assert np.all(suppressed[1:-1, 2] == 50)
    assert np.all(suppressed[1:-1, 1] == 0)
    assert np.all(suppressed[1:-1, 3] == 0)
    assert np.all(suppressed[0] == 0)


def test_non_max_suppression_clamps_to_8_bits():
    magnitude = np.zeros((3, 3))
    magnitude[1, 1] = 1020.0
    zeros = np.zeros_like(magnitude)
    suppressed = non_max_suppression(GradientField(magnitude, zeros, magnitude, zeros))
    assert suppressed[1, 1] == 255


def test_hysteresis_keeps_connected_weak_pixels():
    suppressed = np.zeros((6, 6), dtype=np.uint8)
    suppressed[1, 1] = 200  # strong
    suppressed[2, 2] = 80  # weak, diagonal neighbor of the strong pixel
    suppressed[4, 4] = 80  # weak, isolated

    edges = hysteresis_threshold(suppressed, low=50, high=150)

    assert edges[1, 1]
    assert edges[2, 2]
    assert not edges[4, 4]
    assert edges.sum() == 2


def test_hysteresis_without_candidates():
    edges = hysteresis_threshold(np.zeros((4, 4), dtype=np.uint8), low=50, high=150)
    assert not edges.any()


def test_windowed_harris_detects_square_corners():
    result = harris_corners(_square(), HarrisConfig(window_size=3))

    assert result.name == "Harris Corner Detection"
    assert result.metrics["corners"] > 0
    assert result.metrics["density"] == pytest.approx(
        result.metrics["corners"] / 400 * 10000
    )
    assert 0.0 < result.score <= 10.0


def test_harris_ignores_straight_edges(step_10x10):
    result = harris_corners(to_luminance(step_10x10), HarrisConfig(window_size=3))
    assert result.metrics["corners"] == 0
    assert result.score == 0.0


def test_harris_pointwise_response_is_never_positive():
    """Without a window the structure tensor is rank one, so det is 0."""
    gradient = central_difference_gradient(_square())
    response = harris_response(gradient, k=0.04, window_size=1)
    assert np.all(response <= 0)

    assert harris_corners(_square(), HarrisConfig(window_size=1)).metrics["corners"] == 0
    assert harris_corners(_square()).metrics["corners"] == 0


def test_hough_counts_one_line_per_hundred_pixels():
    values = np.zeros((60, 60), dtype=np.uint8)
    values[:, 30:] = 255
    result = hough_line_count(_luminance(values))

    # Columns 29 and 30 exceed the threshold on 58 interior rows
    assert result.metrics["edge_pixels"] == 116
    assert result.metrics["lines"] == 1
    assert result.score == pytest.approx(1.0)


def test_hough_threshold_is_exclusive():
    values = np.zeros((5, 5), dtype=np.uint8)
    values[:, 3:] = 50  # central difference exactly 50
    result = hough_line_count(_luminance(values), HoughConfig(pixels_per_line=1))
    assert result.metrics["edge_pixels"] == 0


def test_laplacian_sharpness(checkerboard_8x8):
    """Test flat and maximally sharp images."""
    flat = laplacian_sharpness(_luminance(np.zeros((8, 8))))
    assert flat.metrics["variance"] == 0.0
    assert flat.score == 0.0

    sharp = laplacian_sharpness(to_luminance(checkerboard_8x8))
    assert sharp.metrics["variance"] == pytest.approx(1020.0 ** 2)
    assert sharp.score == 10.0


@pytest.mark.parametrize("shape", [(1, 1), (2, 5), (5, 2)])
def test_detectors_on_degenerate_images(shape):
    luminance = _luminance(np.full(shape, 255))

    assert canny_edge_density(luminance).score == 0.0
    assert canny_edge_density(luminance, CannyConfig(mode="non_max_suppression")).score == 0.0
    assert harris_corners(luminance).metrics["corners"] == 0
    assert hough_line_count(luminance).metrics["lines"] == 0
    assert laplacian_sharpness(luminance).metrics["variance"] == 0.0

"""Score normalization and result descriptions.

Every algorithm maps its raw measurement to a score in [0, 10] and a short
human-readable description. This module owns both so the algorithms only
produce numbers.
"""

import logging
import math
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping

from card_forensics.constants import MAX_SCORE, MIN_SCORE
from card_forensics.types import AlgorithmResult

logger = logging.getLogger(__name__)

__all__ = [
    'ALGORITHM_NAMES',
    'clamp_score',
    'build_result',
    'degenerate_result',
]

ALGORITHM_NAMES: Dict[str, str] = {
    'edge': 'Canny Edge Detection',
    'color_deviation': 'LAB Color Delta-E',
    'texture_uniformity': 'Local Binary Patterns',
    'gradient_histogram': 'Histogram of Gradients',
    'entropy': 'Entropy Analysis',
    'sharpness': 'Laplacian Sharpness',
    'corners': 'Harris Corner Detection',
    'lines': 'Hough Line Transform',
}

# Metrics that describe the method rather than the image
_FIXED_METRICS = frozenset({'bins', 'max_entropy', 'mode'})


def _describe_edges(m: Mapping[str, Any]) -> str:
    return (
        f"Detected {m['edge_pixels']} edge pixels ({m['edge_density']:.1f}% density). "
        "Sharp borders indicate authentic print quality."
    )


def _describe_color(m: Mapping[str, Any]) -> str:
    return (
        f"Average color deviation: {m['avg_delta']:.1f}. "
        "Consistent colors indicate authentic printing."
    )


def _describe_texture(m: Mapping[str, Any]) -> str:
    return (
        f"{m['uniformity']:.1f}% uniform texture patterns. "
        "Consistent texture indicates authentic card surface."
    )


def _describe_gradients(m: Mapping[str, Any]) -> str:
    return (
        f"Gradient variance: {m['variance']:.0f}. "
        "Rich gradient distribution indicates detailed print quality."
    )


def _describe_entropy(m: Mapping[str, Any]) -> str:
    return (
        f"Image entropy: {m['entropy']:.2f} bits. "
        "High entropy indicates rich detail and authentic printing."
    )


def _describe_sharpness(m: Mapping[str, Any]) -> str:
    return (
        f"Sharpness variance: {m['variance']:.0f}. "
        "High sharpness indicates professional scanning."
    )


def _describe_corners(m: Mapping[str, Any]) -> str:
    return f"Detected {m['corners']} corner features. Rich features indicate detailed artwork."


def _describe_lines(m: Mapping[str, Any]) -> str:
    return f"Detected {m['lines']} linear structures. Straight borders indicate proper card cutting."


_DESCRIBERS: Dict[str, Callable[[Mapping[str, Any]], str]] = {
    'edge': _describe_edges,
    'color_deviation': _describe_color,
    'texture_uniformity': _describe_texture,
    'gradient_histogram': _describe_gradients,
    'entropy': _describe_entropy,
    'sharpness': _describe_sharpness,
    'corners': _describe_corners,
    'lines': _describe_lines,
}


def clamp_score(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    """Clamp a raw score into [low, high]; NaN maps to ``low``."""
    value = float(value)
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def build_result(algorithm: str, raw_score: float, metrics: Dict[str, Any]) -> AlgorithmResult:
    """
    Wrap raw measurements into an AlgorithmResult.

    Args:
        algorithm: Algorithm identifier (see ALGORITHM_NAMES)
        raw_score: Unbounded score from the algorithm's formula
        metrics: Algorithm-specific measurements

    Returns:
        AlgorithmResult with a bounded score and description
    """
    score = clamp_score(raw_score)
    description = _DESCRIBERS[algorithm](metrics)
    logger.debug(f"{algorithm}: score={score:.2f} metrics={metrics}")
    return AlgorithmResult(
        name=ALGORITHM_NAMES[algorithm],
        score=score,
        metrics=MappingProxyType(dict(metrics)),
        description=description,
    )


def degenerate_result(result: AlgorithmResult, width: int, height: int) -> AlgorithmResult:
    """Zero the measurements of a result computed on an image without an interior."""
    metrics = {
        key: value if key in _FIXED_METRICS else type(value)(0)
        for key, value in result.metrics.items()
    }
    return AlgorithmResult(
        name=result.name,
        score=MIN_SCORE,
        metrics=MappingProxyType(metrics),
        description=(
            f"Image too small for analysis ({width}x{height}); "
            "at least 3x3 pixels are required."
        ),
    )

"""Shared value types for pixel analysis and authenticity comparison."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Tuple

import numpy as np

from card_forensics.constants import MIN_DIMENSION
from card_forensics.errors import InvalidInputError

__all__ = [
    'PixelBuffer',
    'LuminanceBuffer',
    'AlgorithmResult',
    'ComparisonResult',
    'Verdict',
    'AuthenticityVerdict',
    'AnalysisReport',
]


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, copy=True)
    array.setflags(write=False)
    return array


def _camel(key: str) -> str:
    head, *rest = key.split('_')
    return head + ''.join(part.title() for part in rest)


# Metrics rendered as two-decimal percentage strings
_PERCENT_METRICS = frozenset({'edge_density', 'uniformity'})


def _render_metric(key: str, value: Any) -> Any:
    if key in _PERCENT_METRICS:
        return f"{value:.2f}%"
    return value


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Decoded RGBA image.

    The pixels are held as a read-only uint8 array of shape (H, W, 4).
    Derived buffers are always new allocations.
    """

    pixels: np.ndarray = field(repr=False)

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvalidInputError(
                f"Expected an (H, W, 4) RGBA array, got shape {pixels.shape}"
            )
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise InvalidInputError(
                f"Image dimensions must be positive, got {pixels.shape[1]}x{pixels.shape[0]}"
            )
        if pixels.dtype != np.uint8:
            if pixels.size and (pixels.min() < 0 or pixels.max() > 255):
                raise InvalidInputError("Channel values must lie in [0, 255]")
            pixels = pixels.astype(np.uint8)
        object.__setattr__(self, 'pixels', _readonly(pixels))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "PixelBuffer":
        """
        Build a buffer from interleaved RGBA bytes.

        Args:
            width: Image width in pixels (>= 1)
            height: Image height in pixels (>= 1)
            data: width * height * 4 channel bytes

        Returns:
            PixelBuffer wrapping a copy of the data

        Raises:
            InvalidInputError: If the dimensions or the data length are invalid
        """
        if width < 1 or height < 1:
            raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
        expected = width * height * 4
        if len(data) != expected:
            raise InvalidInputError(
                f"Buffer length {len(data)} does not match {width}x{height} RGBA ({expected} bytes)"
            )
        pixels = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(pixels)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an (H, W, 3) RGB or (H, W, 4) RGBA array."""
        array = np.asarray(array)
        if array.ndim == 3 and array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array.astype(np.uint8), alpha], axis=2)
        return cls(array)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        """Read-only (H, W, 3) view without the alpha channel."""
        return self.pixels[:, :, :3]

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()


@dataclass(frozen=True, eq=False)
class LuminanceBuffer:
    """Read-only (H, W) uint8 luminance plane derived from a PixelBuffer."""

    values: np.ndarray = field(repr=False)

    def __post_init__(self):
        values = np.asarray(self.values)
        if values.ndim != 2:
            raise InvalidInputError(f"Expected 2D luminance array, got {values.ndim}D")
        object.__setattr__(self, 'values', _readonly(values.astype(np.uint8)))

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def pixel_count(self) -> int:
        return int(self.values.size)

    @property
    def is_degenerate(self) -> bool:
        """True when the image has no 3x3 interior."""
        return self.width < MIN_DIMENSION or self.height < MIN_DIMENSION


class AlgorithmResult(NamedTuple):
    """Result of one pixel analysis algorithm."""

    name: str
    score: float  # 0.0 to 10.0
    metrics: Mapping[str, Any]  # Read-only raw algorithm measurements
    description: str  # Human-readable explanation

    @property
    def display_score(self) -> str:
        return f"{self.score:.1f}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'name': self.name}
        payload.update(
            {_camel(key): _render_metric(key, value) for key, value in self.metrics.items()}
        )
        payload['score'] = self.display_score
        payload['description'] = self.description
        return payload


class ComparisonResult(NamedTuple):
    """Metrics from comparing a user image against one reference image."""

    reference_id: str
    color_correlation: float  # 0.0 to 1.0
    structural_similarity: float  # 0.0 to 1.0
    sharpness_difference: float  # >= 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'referenceId': self.reference_id,
            'colorCorrelation': round(self.color_correlation, 4),
            'structuralSimilarity': round(self.structural_similarity, 4),
            'sharpnessDifference': round(self.sharpness_difference, 2),
        }


class Verdict(Enum):
    """Three-way authenticity verdict."""

    LIKELY_AUTHENTIC = "LIKELY_AUTHENTIC"
    SUSPICIOUS = "SUSPICIOUS"
    LIKELY_FAKE = "LIKELY_FAKE"


class AuthenticityVerdict(NamedTuple):
    """Aggregate verdict for one user image."""

    score: int  # 0 to 100
    warnings: Tuple[str, ...]
    verdict: Verdict
    comparisons: Tuple[ComparisonResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'verdict': self.verdict.value,
            'warnings': list(self.warnings),
            'comparisons': [c.to_dict() for c in self.comparisons],
        }


class AnalysisReport(NamedTuple):
    """Ordered algorithm results for one image plus run metadata."""

    tier: str
    results: List[AlgorithmResult]
    processing_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'tier': self.tier.upper(),
            'algorithmsRun': len(self.results),
            'processingTime': f"{self.processing_ms:.0f}ms",
            'results': [r.to_dict() for r in self.results],
        }

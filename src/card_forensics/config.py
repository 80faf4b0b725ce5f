"""Scoring configuration for the analysis algorithms and the verdict policy.

Every threshold and scale factor used by the pixel math lives here so the
scoring policy can be audited and tested independently of the algorithms.
"""

from dataclasses import asdict
from typing import Any, Dict, Literal, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic.dataclasses import dataclass

from card_forensics import constants as c
from card_forensics.errors import InvalidInputError

__all__ = [
    'CannyConfig',
    'HarrisConfig',
    'HoughConfig',
    'SharpnessConfig',
    'EntropyConfig',
    'LBPConfig',
    'HOGConfig',
    'ColorDeviationConfig',
    'ScoringConfig',
    'AggregationConfig',
    'ALGORITHM_ORDER',
    'TIERS',
    'resolve_tier',
]

CannyMode = Literal['simple', 'non_max_suppression']

# Fixed execution order of the per-image algorithms
ALGORITHM_ORDER: Tuple[str, ...] = (
    'edge',
    'color_deviation',
    'texture_uniformity',
    'gradient_histogram',
    'entropy',
    'sharpness',
    'corners',
    'lines',
)

# Expert and enterprise add no implemented algorithms on top of pro
TIERS: Dict[str, Tuple[str, ...]] = {
    'pro': ALGORITHM_ORDER,
    'expert': ALGORITHM_ORDER,
    'enterprise': ALGORITHM_ORDER,
}


def resolve_tier(tier: str) -> Tuple[str, ...]:
    """
    Resolve a tier name to its ordered algorithm identifiers.

    Args:
        tier: Tier name (pro, expert, enterprise), case-insensitive

    Returns:
        Tuple of algorithm identifiers in execution order

    Raises:
        InvalidInputError: If the tier is unknown
    """
    key = str(tier).strip().lower()
    if key not in TIERS:
        raise InvalidInputError(
            f"Invalid tier {tier!r}. Must be one of: {', '.join(TIERS)}"
        )
    return TIERS[key]


@dataclass
class CannyConfig:
    """Edge density thresholds on the Sobel gradient magnitude."""

    low_threshold: float = Field(default=c.CANNY_LOW_THRESHOLD, ge=0.0)
    high_threshold: float = Field(default=c.CANNY_HIGH_THRESHOLD, gt=0.0)
    density_scale: float = Field(default=c.CANNY_DENSITY_SCALE, gt=0.0)
    mode: CannyMode = 'simple'

    @model_validator(mode='after')
    def check_threshold_order(self) -> "CannyConfig":
        if self.low_threshold > self.high_threshold:
            raise ValueError(
                f"low_threshold ({self.low_threshold}) must not exceed "
                f"high_threshold ({self.high_threshold})"
            )
        return self


@dataclass
class HarrisConfig:
    k: float = Field(default=c.HARRIS_K, gt=0.0, lt=0.25)
    threshold: float = Field(default=c.HARRIS_THRESHOLD, ge=0.0)
    window_size: int = Field(default=c.HARRIS_WINDOW_SIZE, ge=1, le=15)
    density_factor: float = Field(default=c.HARRIS_DENSITY_FACTOR, gt=0.0)

    @field_validator('window_size')
    @classmethod
    def validate_window_size(cls, v: int) -> int:
        """The window must be centered on the pixel."""
        if v % 2 == 0:
            raise ValueError(f"window_size must be odd, got {v}")
        return v


@dataclass
class HoughConfig:
    magnitude_threshold: float = Field(default=c.HOUGH_MAGNITUDE_THRESHOLD, ge=0.0)
    pixels_per_line: int = Field(default=c.HOUGH_PIXELS_PER_LINE, ge=1)
    line_scale: float = Field(default=c.HOUGH_LINE_SCALE, gt=0.0)


@dataclass
class SharpnessConfig:
    variance_scale: float = Field(default=c.SHARPNESS_VARIANCE_SCALE, gt=0.0)


@dataclass
class EntropyConfig:
    max_entropy: float = Field(default=c.MAX_ENTROPY_BITS, gt=0.0)


@dataclass
class LBPConfig:
    max_transitions: int = Field(default=c.LBP_MAX_TRANSITIONS, ge=0, le=8)


@dataclass
class HOGConfig:
    bins: int = Field(default=c.HOG_BINS, ge=2, le=360)
    variance_scale: float = Field(default=c.HOG_VARIANCE_SCALE, gt=0.0)


@dataclass
class ColorDeviationConfig:
    sample_grid: int = Field(default=c.COLOR_SAMPLE_GRID, ge=1)
    delta_divisor: float = Field(default=c.COLOR_DELTA_DIVISOR, gt=0.0)


@dataclass
class ScoringConfig:
    """Thresholds and scale factors for all per-image algorithms."""

    canny: CannyConfig = Field(default_factory=CannyConfig)
    harris: HarrisConfig = Field(default_factory=HarrisConfig)
    hough: HoughConfig = Field(default_factory=HoughConfig)
    sharpness: SharpnessConfig = Field(default_factory=SharpnessConfig)
    entropy: EntropyConfig = Field(default_factory=EntropyConfig)
    lbp: LBPConfig = Field(default_factory=LBPConfig)
    hog: HOGConfig = Field(default_factory=HOGConfig)
    color_deviation: ColorDeviationConfig = Field(default_factory=ColorDeviationConfig)

    def as_table(self) -> Dict[str, Dict[str, Any]]:
        """Return the policy as ``{algorithm: {parameter: value}}``."""
        return {
            'edge': asdict(self.canny),
            'color_deviation': asdict(self.color_deviation),
            'texture_uniformity': asdict(self.lbp),
            'gradient_histogram': asdict(self.hog),
            'entropy': asdict(self.entropy),
            'sharpness': asdict(self.sharpness),
            'corners': asdict(self.harris),
            'lines': asdict(self.hough),
        }


@dataclass
class AggregationConfig:
    """Deductions and verdict boundaries for the authenticity score."""

    max_references: int = Field(default=c.MAX_REFERENCES, ge=1)
    base_score: int = Field(default=c.BASE_AUTHENTICITY_SCORE, ge=0, le=100)
    no_reference_score: int = Field(default=c.NO_REFERENCE_SCORE, ge=0, le=100)
    color_correlation_min: float = Field(default=c.COLOR_CORRELATION_MIN, ge=0.0, le=1.0)
    color_correlation_penalty: int = Field(default=c.COLOR_CORRELATION_PENALTY, ge=0)
    structural_similarity_min: float = Field(default=c.STRUCTURAL_SIMILARITY_MIN, ge=0.0, le=1.0)
    structural_similarity_penalty: int = Field(default=c.STRUCTURAL_SIMILARITY_PENALTY, ge=0)
    sharpness_difference_max: float = Field(default=c.SHARPNESS_DIFFERENCE_MAX, ge=0.0)
    sharpness_difference_penalty: int = Field(default=c.SHARPNESS_DIFFERENCE_PENALTY, ge=0)
    likely_fake_below: int = Field(default=c.LIKELY_FAKE_BELOW, ge=0, le=100)
    likely_authentic_from: int = Field(default=c.LIKELY_AUTHENTIC_FROM, ge=0, le=100)

    @model_validator(mode='after')
    def check_verdict_bands(self) -> "AggregationConfig":
        if self.likely_fake_below > self.likely_authentic_from:
            raise ValueError(
                "likely_fake_below must not exceed likely_authentic_from"
            )
        return self

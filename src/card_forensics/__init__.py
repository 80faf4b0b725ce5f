"""Card Forensics - pixel-level print authenticity scoring for trading cards"""

__version__ = "0.1.0"

from .analyzer import ForensicsAnalyzer, analyze
from .authenticity import AuthenticityChecker, compare
from .config import AggregationConfig, ScoringConfig
from .errors import CardForensicsError, ImageDecodeError, InvalidInputError, ReferenceFetchError
from .imaging import ImageStandardizer, decode_image
from .types import (
    AlgorithmResult,
    AnalysisReport,
    AuthenticityVerdict,
    ComparisonResult,
    LuminanceBuffer,
    PixelBuffer,
    Verdict,
)

__all__ = [
    "ForensicsAnalyzer",
    "analyze",
    "AuthenticityChecker",
    "compare",
    "AggregationConfig",
    "ScoringConfig",
    "CardForensicsError",
    "ImageDecodeError",
    "InvalidInputError",
    "ReferenceFetchError",
    "ImageStandardizer",
    "decode_image",
    "AlgorithmResult",
    "AnalysisReport",
    "AuthenticityVerdict",
    "ComparisonResult",
    "LuminanceBuffer",
    "PixelBuffer",
    "Verdict",
]

"""Forensics analyzer - runs the per-image algorithm battery."""

import concurrent.futures
import logging
import time
from typing import Callable, Dict, List, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from card_forensics.config import ScoringConfig, resolve_tier
from card_forensics.constants import MIN_DIMENSION
from card_forensics.convolution import central_difference_gradient, sobel_gradient
from card_forensics.detectors import (
    canny_edge_density,
    harris_corners,
    hough_line_count,
    laplacian_sharpness,
)
from card_forensics.grayscale import to_luminance
from card_forensics.scoring import degenerate_result
from card_forensics.texture import (
    color_deviation,
    entropy_analysis,
    gradient_histogram_variance,
    lbp_uniformity,
)
from card_forensics.types import AlgorithmResult, AnalysisReport, PixelBuffer

logger = logging.getLogger(__name__)

__all__ = ['ForensicsAnalyzer', 'analyze']

_SOBEL_USERS = frozenset({'edge'})
_CENTRAL_USERS = frozenset({'corners', 'lines', 'gradient_histogram'})


@dataclass
class ForensicsAnalyzer:
    """
    Runs the pixel analysis algorithms of a tier over one image.

    Luminance and gradient fields are computed once per image and shared
    read-only by the algorithms, which are otherwise independent. With
    ``max_workers`` > 1 they run in a thread pool; the result order is
    always the tier's fixed order.
    """

    tier: str = Field(default='pro')
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    max_workers: int = Field(default=1, ge=1, le=32)

    def _tasks(self, image: PixelBuffer, algorithms) -> Dict[str, Callable[[], AlgorithmResult]]:
        luminance = to_luminance(image)
        needed = set(algorithms)
        sobel = sobel_gradient(luminance) if needed & _SOBEL_USERS else None
        central = central_difference_gradient(luminance) if needed & _CENTRAL_USERS else None
        cfg = self.scoring

        tasks = {
            'edge': lambda: canny_edge_density(luminance, cfg.canny, sobel),
            'color_deviation': lambda: color_deviation(image, cfg.color_deviation),
            'texture_uniformity': lambda: lbp_uniformity(luminance, cfg.lbp),
            'gradient_histogram': lambda: gradient_histogram_variance(luminance, cfg.hog, central),
            'entropy': lambda: entropy_analysis(luminance, cfg.entropy),
            'sharpness': lambda: laplacian_sharpness(luminance, cfg.sharpness),
            'corners': lambda: harris_corners(luminance, cfg.harris, central),
            'lines': lambda: hough_line_count(luminance, cfg.hough, central),
        }
        return {key: tasks[key] for key in algorithms}

    def analyze(self, image: PixelBuffer, tier: Optional[str] = None) -> List[AlgorithmResult]:
        """
        Run every algorithm of the tier over an image.

        Args:
            image: Decoded RGBA buffer
            tier: Overrides the analyzer's tier for this call

        Returns:
            AlgorithmResults in the tier's fixed order

        Raises:
            InvalidInputError: If the tier is unknown
        """
        algorithms = resolve_tier(tier or self.tier)
        tasks = self._tasks(image, algorithms)

        if self.max_workers > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {key: executor.submit(fn) for key, fn in tasks.items()}
                results = [futures[key].result() for key in algorithms]
        else:
            results = [tasks[key]() for key in algorithms]

        if image.width < MIN_DIMENSION or image.height < MIN_DIMENSION:
            logger.info(f"Image {image.width}x{image.height} has no interior; zeroing all scores")
            results = [degenerate_result(r, image.width, image.height) for r in results]

        return results

    def report(self, image: PixelBuffer, tier: Optional[str] = None) -> AnalysisReport:
        """Analyze an image and wrap the results with tier and timing."""
        tier = tier or self.tier
        algorithms = resolve_tier(tier)
        logger.info(f"Processing {tier.upper()} tier analysis ({len(algorithms)} algorithms)")

        start = time.perf_counter()
        results = self.analyze(image, tier)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        logger.info(f"Analysis complete in {elapsed_ms:.0f}ms")

        return AnalysisReport(tier=tier.lower(), results=results, processing_ms=elapsed_ms)

    def batch_analyze(self, images: List[PixelBuffer]) -> List[List[AlgorithmResult]]:
        """
        Analyze multiple images in batch.

        Args:
            images: List of decoded buffers

        Returns:
            One result list per image
        """
        logger.info(f"Batch analyzing {len(images)} images")
        return [self.analyze(image) for image in images]


def analyze(image: PixelBuffer) -> List[AlgorithmResult]:
    """Run the default pro-tier battery over an image."""
    return ForensicsAnalyzer().analyze(image)

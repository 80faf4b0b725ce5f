"""Authenticity aggregation over reference comparisons."""

import logging
from typing import List, Optional, Sequence

from pydantic import Field
from pydantic.dataclasses import dataclass

from card_forensics.comparison import check_same_size, compare_images
from card_forensics.config import AggregationConfig
from card_forensics.errors import InvalidInputError
from card_forensics.types import AuthenticityVerdict, ComparisonResult, PixelBuffer, Verdict

logger = logging.getLogger(__name__)

__all__ = ['NO_REFERENCE_WARNING', 'aggregate', 'verdict_for_score', 'AuthenticityChecker', 'compare']

NO_REFERENCE_WARNING = "No reference images available for comparison"


def verdict_for_score(score: int, config: Optional[AggregationConfig] = None) -> Verdict:
    """Map a 0-100 score onto the three verdict bands."""
    config = config or AggregationConfig()
    if score < config.likely_fake_below:
        return Verdict.LIKELY_FAKE
    if score < config.likely_authentic_from:
        return Verdict.SUSPICIOUS
    return Verdict.LIKELY_AUTHENTIC


def aggregate(
    comparisons: Sequence[ComparisonResult], config: Optional[AggregationConfig] = None
) -> AuthenticityVerdict:
    """
    Combine comparison metrics into an authenticity verdict.

    Starting from the base score, each averaged metric that misses its
    threshold deducts a fixed penalty and adds a warning. Without any
    comparison the score is fixed at ``no_reference_score``. The score never
    drops below 0.

    Args:
        comparisons: Results for one user image against its references
        config: Deduction and verdict policy

    Returns:
        AuthenticityVerdict
    """
    config = config or AggregationConfig()
    comparisons = tuple(comparisons)

    if not comparisons:
        score = config.no_reference_score
        return AuthenticityVerdict(
            score=score,
            warnings=(NO_REFERENCE_WARNING,),
            verdict=verdict_for_score(score, config),
        )

    n = len(comparisons)
    avg_correlation = sum(c.color_correlation for c in comparisons) / n
    avg_ssim = sum(c.structural_similarity for c in comparisons) / n
    avg_sharpness = sum(c.sharpness_difference for c in comparisons) / n

    score = config.base_score
    warnings: List[str] = []

    if avg_correlation < config.color_correlation_min:
        score -= config.color_correlation_penalty
        warnings.append(
            f"Color distribution differs from reference images "
            f"({avg_correlation * 100:.1f}% correlation)"
        )
    if avg_ssim < config.structural_similarity_min:
        score -= config.structural_similarity_penalty
        warnings.append(
            f"Structural similarity to reference images is low ({avg_ssim * 100:.1f}%)"
        )
    if avg_sharpness > config.sharpness_difference_max:
        score -= config.sharpness_difference_penalty
        warnings.append(
            f"Print sharpness differs from reference images (difference {avg_sharpness:.1f})"
        )

    score = max(0, int(score))

    logger.info(
        f"Aggregated {n} comparison(s): score={score}, warnings={len(warnings)}"
    )

    return AuthenticityVerdict(
        score=score,
        warnings=tuple(warnings),
        verdict=verdict_for_score(score, config),
        comparisons=comparisons,
    )


@dataclass
class AuthenticityChecker:
    """Compares a user image against reference images and aggregates a verdict."""

    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)

    def compare(
        self,
        user_image: PixelBuffer,
        reference_images: Sequence[PixelBuffer],
        reference_ids: Optional[Sequence[str]] = None,
    ) -> AuthenticityVerdict:
        """
        Compare a standardized user image against standardized references.

        Only the first ``max_references`` references are used.

        Args:
            user_image: Standardized user buffer
            reference_images: Standardized reference buffers, same size as user_image
            reference_ids: Optional identifiers, one per reference

        Returns:
            AuthenticityVerdict

        Raises:
            InvalidInputError: If any reference differs in size or the ids do not match
        """
        references = list(reference_images)
        if reference_ids is None:
            reference_ids = [f"reference-{i + 1}" for i in range(len(references))]
        elif len(reference_ids) != len(references):
            raise InvalidInputError(
                f"Got {len(reference_ids)} reference ids for {len(references)} images"
            )
        for reference in references:
            check_same_size(user_image, reference)

        limit = self.aggregation.max_references
        if len(references) > limit:
            logger.warning(
                f"Comparing the first {limit} of {len(references)} reference images"
            )

        comparisons = [
            compare_images(user_image, reference, reference_id)
            for reference, reference_id in list(zip(references, reference_ids))[:limit]
        ]
        return aggregate(comparisons, self.aggregation)


def compare(
    user_image: PixelBuffer, reference_images: Sequence[PixelBuffer]
) -> AuthenticityVerdict:
    """Compare with the default aggregation policy."""
    return AuthenticityChecker().compare(user_image, reference_images)

"""Blend semantic similarity with pattern features for series matching."""
import numpy as np
from typing import Dict, Optional, Sequence
import logging

from series_match_service.config import get_blend_weights

logger = logging.getLogger(__name__)


class SimilarityComputer:
    """Combine base embedding similarity with title, content and series-indicator features."""

    def __init__(
        self,
        base_weight: Optional[float] = None,
        title_weight: Optional[float] = None,
        content_weight: Optional[float] = None,
        series_weight: Optional[float] = None
    ):
        """
        Initialize similarity computer.

        Args:
            base_weight: Weight for embedding cosine similarity
            title_weight: Weight for title pattern similarity
            content_weight: Weight for content keyword similarity
            series_weight: Weight for sequential-numbering indicators

        Weights left as None are read from config (defaults 0.6 / 0.2 / 0.15 / 0.05).
        """
        defaults = get_blend_weights()
        self.base_weight = defaults['base'] if base_weight is None else base_weight
        self.title_weight = defaults['title'] if title_weight is None else title_weight
        self.content_weight = defaults['content'] if content_weight is None else content_weight
        self.series_weight = defaults['series'] if series_weight is None else series_weight

    def compute_blended_similarity(
        self,
        base_similarity: float,
        title_similarity: float,
        content_similarity: float,
        series_indicator: float
    ) -> float:
        """
        Compute the final score as a weighted sum, capped at 1.0.

        Args:
            base_similarity: Embedding cosine similarity
            title_similarity: Title pattern similarity
            content_similarity: Content keyword similarity
            series_indicator: Series indicator score

        Returns:
            Blended score
        """
        blended = (
            self.base_weight * base_similarity +
            self.title_weight * title_similarity +
            self.content_weight * content_similarity +
            self.series_weight * series_indicator
        )
        return min(blended, 1.0)

    def get_similarity_statistics(self, scores: Sequence[float]) -> Dict[str, float]:
        """
        Compute statistics for a batch of scores.

        Args:
            scores: Similarity scores

        Returns:
            Dictionary with statistics (all zero for an empty batch)
        """
        if len(scores) == 0:
            return {'mean': 0.0, 'std': 0.0, 'min': 0.0, 'max': 0.0, 'median': 0.0}

        values = np.asarray(scores, dtype=float)
        return {
            'mean': float(values.mean()),
            'std': float(values.std()),
            'min': float(values.min()),
            'max': float(values.max()),
            'median': float(np.median(values))
        }

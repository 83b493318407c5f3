"""Rank a channel's videos by how likely they belong to the seed video's series."""
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np

from series_match_service.config import get_thresholds
from series_match_service.ml.embedding_provider import EmbeddingProvider
from series_match_service.ml.pattern_matcher import PatternMatcher, ReferenceCorpus
from series_match_service.ml.similarity_computer import SimilarityComputer
from series_match_service.ml.vector_math import (
    DenseNormalized,
    EmbeddingQuality,
    Invalid,
    analyze_quality,
    cosine_similarity,
)
from series_match_service.models import CatalogItem, MatchResult

logger = logging.getLogger(__name__)


class SeriesResolver:
    """
    Score candidates against a seed video.

    Base embedding similarity is blended with pattern features from a reference
    corpus, then filtered by a threshold that adapts to embedding quality.
    """

    def __init__(
            self,
            embedding_provider: Optional[EmbeddingProvider] = None,
            similarity_computer: Optional[SimilarityComputer] = None,
            high_quality_threshold: Optional[float] = None,
            low_quality_threshold: Optional[float] = None,
            max_results: int = 10,
            max_workers: int = 8
    ):
        """
        Initialize the resolver.

        Args:
            embedding_provider: Provider for seed and candidate embeddings
            similarity_computer: Blending weights
            high_quality_threshold: Threshold when seed and some candidates have dense embeddings
            low_quality_threshold: Threshold otherwise
            max_results: Maximum number of results returned
            max_workers: Concurrent candidate embedding requests
        """
        thresholds = get_thresholds()
        self.embedding_provider = embedding_provider or EmbeddingProvider()
        self.similarity_computer = similarity_computer or SimilarityComputer()
        self.high_quality_threshold = (
            thresholds['high'] if high_quality_threshold is None else high_quality_threshold
        )
        self.low_quality_threshold = (
            thresholds['low'] if low_quality_threshold is None else low_quality_threshold
        )
        self.max_results = max_results
        self.max_workers = max_workers

    def _score_candidate(self, seed_embedding: np.ndarray, candidate: CatalogItem) -> Tuple[float, EmbeddingQuality]:
        """Base cosine similarity for one candidate; failures score 0."""
        try:
            embedding = self.embedding_provider.embed(candidate.text)
            quality = analyze_quality(embedding)
            return cosine_similarity(seed_embedding, embedding), quality
        except Exception as e:
            logger.warning(f"Failed to process video {candidate.id}: {e}")
            return 0.0, Invalid(reason=f"Embedding failed: {e}")

    def select_threshold(self, seed_quality: EmbeddingQuality, candidate_qualities: Sequence[EmbeddingQuality]) -> float:
        """
        Pick the decision threshold.

        Fallback embeddings compress absolute similarity values, so the lower
        threshold applies unless both the seed and at least one candidate are dense.
        """
        if isinstance(seed_quality, DenseNormalized) and any(
                isinstance(q, DenseNormalized) for q in candidate_qualities
        ):
            logger.info(f"Using high-quality threshold ({self.high_quality_threshold})")
            return self.high_quality_threshold

        logger.info(f"Using low threshold ({self.low_quality_threshold}) due to mixed embedding quality")
        return self.low_quality_threshold

    def resolve(
            self,
            seed: CatalogItem,
            candidates: Sequence[CatalogItem],
            reference_corpus: Optional[ReferenceCorpus] = None
    ) -> List[MatchResult]:
        """
        Find the candidates that continue the seed's series.

        Args:
            seed: The video the user started from
            candidates: Videos from the same channel
            reference_corpus: Snapshot for pattern features (None: base similarity only)

        Returns:
            Up to max_results matches above the threshold, best first; empty when
            nothing matches
        """
        pool = [c for c in candidates if c.id != seed.id]
        if not pool:
            logger.info("No candidates to score")
            return []

        seed_embedding = self.embedding_provider.embed(seed.text)
        seed_quality = analyze_quality(seed_embedding)
        logger.info(f"Seed embedding quality: {seed_quality.label} ({seed_quality.details})")

        logger.info(f"Computing similarities for {len(pool)} candidates...")
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            scored = list(executor.map(lambda c: self._score_candidate(seed_embedding, c), pool))

        matcher = PatternMatcher(reference_corpus or ReferenceCorpus())
        if matcher.is_neutral:
            logger.warning("No reference data available, using base similarity only")

        results = []
        for candidate, (base, quality) in zip(pool, scored):
            # Unscorable embeddings stay at 0 and are never blended upward
            if matcher.is_neutral or isinstance(quality, Invalid):
                results.append(MatchResult(
                    item=candidate,
                    score=min(base, 1.0),
                    base_score=base,
                    embedding_quality=quality.label
                ))
                continue

            title_score = matcher.title_pattern_similarity(seed.title, candidate.title)
            content_score = matcher.content_pattern_similarity(
                seed.title, seed.description, candidate.title, candidate.description
            )
            series_score = matcher.series_indicator_score(seed.title, candidate.title)
            results.append(MatchResult(
                item=candidate,
                score=self.similarity_computer.compute_blended_similarity(
                    base, title_score, content_score, series_score
                ),
                base_score=base,
                title_score=title_score,
                content_score=content_score,
                series_score=series_score,
                embedding_quality=quality.label
            ))

        threshold = self.select_threshold(seed_quality, [quality for _, quality in scored])

        stats = self.similarity_computer.get_similarity_statistics([r.score for r in results])
        logger.info(f"Scores: range [{stats['min']:.3f}, {stats['max']:.3f}], mean {stats['mean']:.3f}")

        matches = sorted(
            (r for r in results if r.score > threshold),
            key=lambda r: r.score,
            reverse=True
        )[:self.max_results]

        logger.info(f"✓ {len(matches)} videos above {threshold:.0%} similarity")
        return matches

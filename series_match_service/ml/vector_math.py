"""Cosine similarity and embedding quality classification."""
from dataclasses import dataclass
from typing import Optional, Union
import logging

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as sk_cosine_similarity

logger = logging.getLogger(__name__)

EMBEDDING_DIMENSION = 384

# A component counts as "non-zero" above this magnitude
NON_ZERO_EPSILON = 0.001
NORM_TOLERANCE = 0.1
DENSE_MIN_NON_ZERO = 200
SPARSE_MAX_NON_ZERO = 50


@dataclass(frozen=True)
class DenseNormalized:
    """Unit-length embedding with most components populated (real model output)."""

    norm: float
    non_zero: int
    confidence: float = 0.9

    label = "dense-normalized"

    @property
    def details(self) -> str:
        return f"Normalized ({self.norm:.3f}), dense ({self.non_zero}/{EMBEDDING_DIMENSION} non-zero)"


@dataclass(frozen=True)
class SparseFallback:
    """Embedding shaped like the local hash fallback."""

    norm: float
    non_zero: int
    confidence: float = 0.8

    label = "sparse-fallback"

    @property
    def details(self) -> str:
        if self.non_zero < SPARSE_MAX_NON_ZERO:
            return f"Sparse ({self.non_zero}/{EMBEDDING_DIMENSION} non-zero), norm: {self.norm:.3f}"
        return f"Uncertain quality, norm: {self.norm:.3f}, non-zero: {self.non_zero}"


@dataclass(frozen=True)
class Invalid:
    """Anything that cannot be scored."""

    reason: str
    confidence: float = 0.0

    label = "invalid"

    @property
    def details(self) -> str:
        return self.reason


EmbeddingQuality = Union[DenseNormalized, SparseFallback, Invalid]


def as_vector(value) -> Optional[np.ndarray]:
    """
    Coerce a value to a 1-D float array.

    Args:
        value: List, tuple or ndarray of numbers

    Returns:
        1-D float array, or None when the value is not a numeric sequence
    """
    if value is None or isinstance(value, (str, bytes, dict)):
        return None
    try:
        vector = np.asarray(value, dtype=float)
    except (TypeError, ValueError):
        return None
    if vector.ndim != 1:
        return None
    return vector


def analyze_quality(embedding) -> EmbeddingQuality:
    """
    Classify an embedding by its statistical shape.

    Args:
        embedding: Candidate embedding (any sequence)

    Returns:
        DenseNormalized, SparseFallback or Invalid
    """
    vector = as_vector(embedding)
    if vector is None or vector.shape[0] != EMBEDDING_DIMENSION:
        return Invalid(reason="Wrong dimension or not array")
    if not np.all(np.isfinite(vector)):
        return Invalid(reason="Non-finite values")

    norm = float(np.linalg.norm(vector))
    magnitudes = np.abs(vector)
    non_zero = int(np.count_nonzero(magnitudes > NON_ZERO_EPSILON))
    max_value = float(magnitudes.max())

    is_normalized = abs(norm - 1.0) < NORM_TOLERANCE
    is_dense = non_zero > DENSE_MIN_NON_ZERO
    if is_normalized and is_dense and max_value < 1.0:
        return DenseNormalized(norm=norm, non_zero=non_zero)

    if non_zero < SPARSE_MAX_NON_ZERO:
        return SparseFallback(norm=norm, non_zero=non_zero)

    return SparseFallback(norm=norm, non_zero=non_zero, confidence=0.6)


def normalize_vector(vector: np.ndarray) -> np.ndarray:
    """
    Scale a vector to unit length.

    Args:
        vector: Input vector

    Returns:
        Unit vector, or the input unchanged when its norm is zero
    """
    norm = np.linalg.norm(vector)
    if norm > 0:
        return vector / norm
    return vector


def cosine_similarity(vec_a, vec_b) -> float:
    """
    Cosine similarity between two embeddings.

    Malformed input never raises: it is logged and scored 0.0.

    Args:
        vec_a: First embedding
        vec_b: Second embedding

    Returns:
        Similarity in [-1, 1]
    """
    a = as_vector(vec_a)
    b = as_vector(vec_b)
    if a is None or b is None:
        logger.warning("Invalid vectors for similarity calculation")
        return 0.0

    if a.shape != b.shape:
        logger.warning(f"Vector dimension mismatch: {a.shape[0]} vs {b.shape[0]}")
        return 0.0

    if a.shape[0] != EMBEDDING_DIMENSION:
        logger.warning(f"Unexpected vector dimension: {a.shape[0]}")
        return 0.0

    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        logger.warning("Non-finite values in similarity calculation")
        return 0.0

    if np.linalg.norm(a) == 0 or np.linalg.norm(b) == 0:
        logger.warning("Zero vector detected in similarity calculation")
        return 0.0

    similarity = sk_cosine_similarity(a.reshape(1, -1), b.reshape(1, -1))[0, 0]
    return float(np.clip(similarity, -1.0, 1.0))

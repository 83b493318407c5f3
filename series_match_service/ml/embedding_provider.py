"""Text embeddings from the remote inference API with a local hash fallback."""
from typing import Any, Dict, Optional, Tuple
import logging
import re

import numpy as np
import requests
from tenacity import RetryCallState, retry, retry_if_result, stop_after_attempt

from series_match_service.config import get_embedding_api_url, get_embedding_api_key
from series_match_service.ml.text_processor import clean_text, tokenize
from series_match_service.ml.vector_math import EMBEDDING_DIMENSION, normalize_vector

logger = logging.getLogger(__name__)

FALLBACK_HASH_OFFSETS = 3


def is_model_loading(data) -> bool:
    """True when the API answered with a "model is loading" error body."""
    if not isinstance(data, dict):
        return False
    error = data.get("error")
    return isinstance(error, str) and re.search(r"loading", error, re.IGNORECASE) is not None


def _still_loading(result) -> bool:
    return result is not None and is_model_loading(result[1])


def _loading_retry_wait(retry_state: RetryCallState) -> float:
    # args[0] is the provider instance
    return retry_state.args[0].loading_retry_delay


def _log_loading_retry(retry_state: RetryCallState) -> None:
    logger.info(f"Model loading, retrying in {retry_state.args[0].loading_retry_delay}s...")


def _give_up_loading(retry_state: RetryCallState) -> None:
    logger.warning("Model still loading after retry")
    return None


def rolling_hash(value: str) -> int:
    """
    Multiply-by-31 string hash folded into signed 32-bit range, returned as absolute value.

    Args:
        value: String to hash

    Returns:
        Non-negative integer
    """
    h = 0
    for char in value:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def generate_fallback_embedding(text: str) -> np.ndarray:
    """
    Deterministic bag-of-hashed-words embedding.

    Each word longer than two characters is hashed at three offsets into one of
    384 buckets, weighted by 1 / (1 + position) so earlier words count more.

    Args:
        text: Raw text

    Returns:
        Unit-normalized vector (all zeros when the text has no usable words)
    """
    words = tokenize(text, min_length=3)
    embedding = np.zeros(EMBEDDING_DIMENSION, dtype=float)

    for position, word in enumerate(words):
        for offset in range(FALLBACK_HASH_OFFSETS):
            index = rolling_hash(f"{word}{offset}") % EMBEDDING_DIMENSION
            embedding[index] += 1.0 / (1 + position)

    return normalize_vector(embedding)


class EmbeddingProvider:
    """Generate 384-dimensional sentence embeddings. Never raises."""

    def __init__(
            self,
            api_url: Optional[str] = None,
            api_key: Optional[str] = None,
            timeout: float = 30,
            loading_retry_delay: float = 2.0,
            session: Optional[requests.Session] = None
    ):
        """
        Initialize embedding provider.

        Args:
            api_url: Inference endpoint (from config if None)
            api_key: Bearer token (from config if None)
            timeout: Per-request timeout in seconds
            loading_retry_delay: Seconds to wait before retrying while the model loads
            session: Optional requests session to reuse
        """
        self.api_url = api_url or get_embedding_api_url()
        self.api_key = api_key or get_embedding_api_key()
        self.timeout = timeout
        self.loading_retry_delay = loading_retry_delay
        self.session = session or requests.Session()

    def embed(self, text: str | None) -> np.ndarray:
        """
        Embed text, degrading to the local fallback on any upstream problem.

        Args:
            text: Input text

        Returns:
            Vector of length 384
        """
        raw = "" if text is None else str(text)
        cleaned = clean_text(raw)
        if not cleaned:
            logger.warning("Empty input after cleaning, using fallback embedding")
            return generate_fallback_embedding(raw)

        embedding = self._request_embedding(cleaned)
        if embedding is None:
            logger.info(f"Using fallback embedding for: {cleaned[:60]}")
            return generate_fallback_embedding(raw)

        return embedding

    def _request_embedding(self, cleaned: str) -> Optional[np.ndarray]:
        """Call the inference API, retrying once while the model loads."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {"inputs": cleaned, "options": {"wait_for_model": True}}

        result = self._post_embedding_request(payload, headers)
        if result is None:
            return None
        response, data = result

        if not response.ok:
            logger.warning(f"Embedding API failed: {response.status_code} {response.text[:200]}")
            return None

        vector = self._parse_embedding(data)
        if vector is None:
            logger.warning(f"Unexpected embedding response format: {str(data)[:200]}")
            return None

        logger.debug(f"✓ Generated {EMBEDDING_DIMENSION}D embedding")
        return normalize_vector(vector)

    @retry(
        retry=retry_if_result(_still_loading),
        stop=stop_after_attempt(2),
        wait=_loading_retry_wait,
        before_sleep=_log_loading_retry,
        retry_error_callback=_give_up_loading
    )
    def _post_embedding_request(self, payload: Dict, headers: Dict) -> Optional[Tuple[requests.Response, Any]]:
        """
        POST one inference request.

        Returns:
            (response, decoded JSON or None), or None on a transport error
        """
        try:
            response = self.session.post(
                self.api_url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"Embedding API error: {e}")
            return None

        try:
            data = response.json()
        except ValueError:
            data = None
        return response, data

    @staticmethod
    def _parse_embedding(data) -> Optional[np.ndarray]:
        """Accept only a 2-D numeric array whose first row has 384 elements."""
        if not isinstance(data, list) or not data or not isinstance(data[0], list):
            return None
        if len(data[0]) != EMBEDDING_DIMENSION:
            return None
        if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in data[0]):
            return None
        vector = np.asarray(data[0], dtype=float)
        if not np.all(np.isfinite(vector)):
            return None
        return vector

"""End-to-end series lookup: video reference in, ranked series matches out."""
from typing import List, Optional
import logging

from series_match_service.errors import InvalidSeedReferenceError, SeriesLookupError
from series_match_service.models import MatchResult
from series_match_service.services.catalog_client import CatalogClient, extract_video_id
from series_match_service.services.corpus_store import CorpusStore
from series_match_service.services.series_resolver import SeriesResolver

logger = logging.getLogger(__name__)


class SeriesFinderService:
    """
    Find the other parts of a video's series within its creator's channel.
    """

    def __init__(
            self,
            catalog_client: Optional[CatalogClient] = None,
            corpus_store: Optional[CorpusStore] = None,
            resolver: Optional[SeriesResolver] = None,
            max_channel_videos: int = 100
    ):
        self.catalog_client = catalog_client or CatalogClient()
        self.resolver = resolver or SeriesResolver()
        self.corpus_store = corpus_store or CorpusStore(embedding_provider=self.resolver.embedding_provider)
        self.max_channel_videos = max_channel_videos

    def find_series(self, reference: str) -> List[MatchResult]:
        """
        Resolve the series for a video URL or ID.

        Args:
            reference: Video URL or bare video ID

        Returns:
            Ranked matches; empty when no video clears the threshold

        Raises:
            InvalidSeedReferenceError: The reference is not a video URL/ID
            SeriesLookupError: The seed or its channel could not be fetched
        """
        video_id = extract_video_id(reference)
        if not video_id:
            raise InvalidSeedReferenceError(reference)

        logger.info("=" * 60)
        logger.info(f"FINDING SERIES FOR VIDEO {video_id}")
        logger.info("=" * 60)

        seed = self.catalog_client.get_item_details(video_id)
        if seed is None:
            raise SeriesLookupError(f"Could not fetch video details for {video_id}")

        logger.info(f"Seed: '{seed.title[:50]}' ({seed.channel_title or seed.channel_id})")

        candidates = self.catalog_client.get_all_items_for_channel(
            seed.channel_id, max_items=self.max_channel_videos
        )
        if not candidates:
            raise SeriesLookupError(f"Could not fetch videos from channel {seed.channel_id}")

        reference_corpus = self.corpus_store.reference_corpus()
        return self.resolver.resolve(seed, candidates, reference_corpus)

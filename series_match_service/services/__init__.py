"""Service classes"""

from .catalog_client import CatalogClient, extract_video_id
from .corpus_store import CorpusStore
from .feedback_service import FeedbackIngestor
from .series_finder_service import SeriesFinderService
from .series_resolver import SeriesResolver

__all__ = [
    "CatalogClient",
    "CorpusStore",
    "FeedbackIngestor",
    "SeriesFinderService",
    "SeriesResolver",
    "extract_video_id",
]

"""SQLAlchemy models and catalog data types"""

from series_match_service.models.base import Base
from series_match_service.models.catalog_item import CatalogItem, MatchResult
from series_match_service.models.corpus_record import CorpusRecord
from series_match_service.models.feedback_record import FeedbackRecord, UNKNOWN_SEED_ID

__all__ = [
    "Base",
    "CatalogItem",
    "CorpusRecord",
    "FeedbackRecord",
    "MatchResult",
    "UNKNOWN_SEED_ID",
]

"""Repository classes"""

from series_match_service.repos.corpus_repository import CorpusRepository
from series_match_service.repos.feedback_repository import FeedbackRepository

__all__ = [
    "CorpusRepository",
    "FeedbackRepository",
]

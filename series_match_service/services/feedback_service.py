"""Service for user feedback on series matches."""
from datetime import UTC, datetime
from typing import Callable, Dict, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from series_match_service.repos import FeedbackRepository
from series_match_service.services.catalog_client import CatalogClient
from series_match_service.services.corpus_store import CorpusStore, new_session

logger = logging.getLogger(__name__)


# noinspection PyMethodMayBeStatic
class FeedbackIngestor:
    """
    Record thumbs up / thumbs down judgments.

    A thumbs down turns the video into a negative example in the corpus,
    at most once per video ID.
    """

    def __init__(
            self,
            corpus_store: Optional[CorpusStore] = None,
            catalog_client: Optional[CatalogClient] = None,
            session_factory: Optional[Callable[[], Session]] = None
    ):
        self.session_factory = session_factory or new_session
        self.corpus_store = corpus_store or CorpusStore(session_factory=self.session_factory)
        self.catalog_client = catalog_client or CatalogClient()

    def _features(self, feedback_type: str, title: str, **flags) -> Dict:
        features = {'feedback_type': feedback_type}
        features.update(flags)
        if title:
            features['title'] = title
        features['timestamp'] = datetime.now(UTC).isoformat()
        return features

    def _append(self, candidate_id: str, is_relevant: bool, features: Dict, seed_id: Optional[str]) -> None:
        db = self.session_factory()
        try:
            FeedbackRepository(db).add_feedback(
                candidate_video_id=candidate_id,
                is_related=is_relevant,
                features=features,
                query_video_id=seed_id
            )
        finally:
            db.close()

    def submit(
            self,
            candidate_id: str,
            is_relevant: bool,
            title: Optional[str],
            seed_id: Optional[str] = None
    ) -> None:
        """
        Record a judgment. Best-effort: failures are logged, never raised.

        Args:
            candidate_id: Video being judged
            is_relevant: True for thumbs up
            title: Video title (for logging, None treated as empty)
            seed_id: Seed video the match was shown for ("unknown" if None)
        """
        title = title or ""
        logger.info(f"Processing feedback: video {candidate_id} is {'relevant' if is_relevant else 'NOT relevant'}")

        try:
            if is_relevant:
                self._append(candidate_id, True, self._features('thumbs_up', title), seed_id)
                return

            self._submit_negative(candidate_id, title, seed_id)

        except Exception as e:
            logger.error(f"Error processing feedback for video {candidate_id}: {e}", exc_info=True)

    def _submit_negative(self, candidate_id: str, title: str, seed_id: Optional[str]) -> None:
        already_exists_features = self._features(
            'thumbs_down', title, stored_as_negative_example=False, already_exists=True
        )

        if self.corpus_store.exists_by_id(candidate_id):
            logger.info(f"Video {candidate_id} ({title[:60]}) already in corpus, skipping duplicate storage")
            self._append(candidate_id, False, already_exists_features, seed_id)
            return

        details = self.catalog_client.get_item_details(candidate_id)
        if details is None:
            logger.error(f"Could not fetch video details for negative example {candidate_id}")
            return

        if not self.corpus_store.insert_quality_checked_if_absent(details):
            # Another submission stored it between the check and the insert
            self._append(candidate_id, False, already_exists_features, seed_id)
            return

        logger.info(f"✓ New negative example stored: {details.title[:60]}")
        self._append(
            candidate_id,
            False,
            self._features('thumbs_down', title, stored_as_negative_example=True, already_exists=False),
            seed_id
        )

    def status(self, candidate_id: str) -> Dict:
        """
        Get feedback status for a video.

        Args:
            candidate_id: Video ID

        Returns:
            Dict with hasFeedback, feedbackType ('up', 'down' or None), alreadyInDatabase
        """
        try:
            already_in_database = self.corpus_store.exists_by_id(candidate_id)

            db = self.session_factory()
            try:
                latest = FeedbackRepository(db).get_latest_feedback(candidate_id)
                feedback_type = None
                if latest is not None:
                    feedback_type = 'up' if latest.is_related else 'down'
            finally:
                db.close()

        except SQLAlchemyError as e:
            logger.error(f"Error checking existing feedback for {candidate_id}: {e}")
            return {'hasFeedback': False, 'feedbackType': None, 'alreadyInDatabase': False}

        return {
            'hasFeedback': feedback_type is not None,
            'feedbackType': feedback_type,
            'alreadyInDatabase': already_in_database
        }

    def stats(self) -> Dict[str, int]:
        """Get aggregate feedback counts."""
        db = self.session_factory()
        try:
            return FeedbackRepository(db).get_feedback_stats()
        except SQLAlchemyError as e:
            logger.error(f"Error getting feedback stats: {e}")
            return {'totalFeedback': 0, 'thumbsUp': 0, 'thumbsDown': 0, 'negativeExamplesStored': 0}
        finally:
            db.close()

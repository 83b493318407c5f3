"""Repository for user feedback on series matches."""

from typing import Dict, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc
from datetime import datetime, UTC
import logging

from series_match_service.models import FeedbackRecord, UNKNOWN_SEED_ID

logger = logging.getLogger(__name__)


class FeedbackRepository:
    """
    Append-only store of feedback records.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_feedback(
            self,
            candidate_video_id: str,
            is_related: bool,
            features: Dict,
            query_video_id: Optional[str] = None
    ) -> FeedbackRecord:
        """
        Append one feedback record.

        Args:
            candidate_video_id: Video the judgment is about
            is_related: True for thumbs up
            features: Feature bag (stored_as_negative_example, already_exists, ...)
            query_video_id: Seed video, "unknown" when not tracked

        Returns:
            FeedbackRecord object
        """
        record = FeedbackRecord(
            query_video_id=query_video_id or UNKNOWN_SEED_ID,
            candidate_video_id=candidate_video_id,
            is_related=is_related,
            features=features,
            created_at=datetime.now(UTC)
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        return record

    def get_latest_feedback(self, candidate_video_id: str) -> Optional[FeedbackRecord]:
        """
        Get the most recent feedback for a video.

        Args:
            candidate_video_id: Video ID

        Returns:
            Latest record by creation time (ties broken by insertion order), or None
        """
        return (
            self.db.query(FeedbackRecord)
            .filter(FeedbackRecord.candidate_video_id == candidate_video_id)
            .order_by(desc(FeedbackRecord.created_at), desc(FeedbackRecord.id))
            .first()
        )

    def get_feedback_stats(self) -> Dict[str, int]:
        """Get thumbs up/down and negative-example counts."""
        rows = self.db.query(FeedbackRecord.is_related, FeedbackRecord.features).all()

        thumbs_up = sum(1 for is_related, _ in rows if is_related is True)
        thumbs_down = sum(1 for is_related, _ in rows if is_related is False)
        negative_examples_stored = sum(
            1 for _, features in rows
            if isinstance(features, dict) and features.get('stored_as_negative_example') is True
        )

        return {
            'totalFeedback': len(rows),
            'thumbsUp': thumbs_up,
            'thumbsDown': thumbs_down,
            'negativeExamplesStored': negative_examples_stored
        }

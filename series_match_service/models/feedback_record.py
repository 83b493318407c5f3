"""User relevance judgments on series matches."""

from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String

from series_match_service.models.base import Base

UNKNOWN_SEED_ID = "unknown"


class FeedbackRecord(Base):
    """One thumbs-up / thumbs-down submission.

    Append-only: rows are never updated or deleted.
    """

    __tablename__ = "feedback_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    query_video_id = Column(String(64), nullable=False, default=UNKNOWN_SEED_ID)
    candidate_video_id = Column(String(64), nullable=False)
    is_related = Column(Boolean, nullable=False)

    # feedback_type, stored_as_negative_example, already_exists, timestamp
    features = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("idx_candidate_video_id", "candidate_video_id", "created_at"),
    )

    def __repr__(self):
        return (
            f"<FeedbackRecord(candidate_video_id='{self.candidate_video_id}', "
            f"is_related={self.is_related})>"
        )

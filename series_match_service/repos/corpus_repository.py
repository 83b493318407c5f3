"""Repository for the stored video corpus."""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from series_match_service.models import CorpusRecord

logger = logging.getLogger(__name__)


class CorpusRepository:
    """
    Repository for corpus records keyed by video ID.
    """

    def __init__(self, db: Session):
        self.db = db

    def _build_record(self, record_data: dict) -> CorpusRecord:
        return CorpusRecord(
            video_id=record_data["video_id"],
            title=record_data["title"],
            description=record_data.get("description"),
            embedding=record_data["embedding"],
            channel_id=record_data.get("channel_id"),
            published_at=record_data.get("published_at"),
            created_at=datetime.now(UTC),
        )

    def upsert_record(self, record_data: dict) -> CorpusRecord:
        """
        Insert or replace a record by video ID.

        Args:
            record_data: Dict with video_id, title, description, embedding,
                channel_id, published_at

        Returns:
            CorpusRecord object
        """
        video_id = record_data["video_id"]

        existing = self.get_record(video_id)

        if existing:
            existing.title = record_data["title"]  # type: ignore[assignment]
            existing.description = record_data.get("description")  # type: ignore[assignment]
            existing.embedding = record_data["embedding"]  # type: ignore[assignment]
            existing.channel_id = record_data.get("channel_id")  # type: ignore[assignment]
            existing.published_at = record_data.get("published_at")  # type: ignore[assignment]
            existing.created_at = datetime.now(UTC)  # type: ignore[assignment]
            record = existing
        else:
            record = self._build_record(record_data)
            self.db.add(record)

        self.db.commit()
        self.db.refresh(record)

        return record

    def insert_if_absent(self, record_data: dict) -> bool:
        """
        Insert a record unless its video ID already exists.

        The primary key constraint decides, so two concurrent inserts for the
        same ID store exactly one row.

        Args:
            record_data: Same shape as for upsert_record

        Returns:
            True if inserted, False if the ID was already present
        """
        self.db.add(self._build_record(record_data))
        try:
            self.db.commit()
        except (IntegrityError, FlushError):
            self.db.rollback()
            logger.info(f"Video {record_data['video_id']} already in corpus, not inserted")
            return False
        return True

    def get_record(self, video_id: str) -> CorpusRecord | None:
        """Get a record by video ID."""
        return self.db.query(CorpusRecord).filter(CorpusRecord.video_id == video_id).first()

    def exists_by_id(self, video_id: str) -> bool:
        """Check whether a video ID is stored."""
        return (
            self.db.query(CorpusRecord.video_id)
            .filter(CorpusRecord.video_id == video_id)
            .first()
        ) is not None

    # noinspection PyTypeChecker
    def sample_records(self, limit: int = 100) -> list[CorpusRecord]:
        """
        Get a bounded sample of records.

        Args:
            limit: Maximum number of records

        Returns:
            Records in creation order
        """
        return (
            self.db.query(CorpusRecord)
            .order_by(CorpusRecord.created_at, CorpusRecord.video_id)
            .limit(limit)
            .all()
        )

    def update_embedding(self, video_id: str, embedding: list[float]) -> bool:
        """
        Replace a record's embedding.

        Args:
            video_id: Video ID to update
            embedding: New embedding values

        Returns:
            True if updated, False if not found
        """
        count = (
            self.db.query(CorpusRecord)
            .filter(CorpusRecord.video_id == video_id)
            .update({CorpusRecord.embedding: embedding}, synchronize_session=False)
        )
        self.db.commit()

        return count > 0

    def count_records(self) -> int:
        """Count stored records."""
        return self.db.query(CorpusRecord).count()

"""Stored videos with their embeddings (reference corpus and negative examples)"""
from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, String, Text

from series_match_service.models.base import Base


class CorpusRecord(Base):
    """A video and its text embedding.

    Written once per video ID; only the embedding is ever rewritten (quality repair).
    """
    __tablename__ = 'corpus_records'

    video_id = Column(String(64), primary_key=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    embedding = Column(JSON, nullable=False)
    channel_id = Column(String(64), nullable=True, index=True)
    published_at = Column(String(40), nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return f"<CorpusRecord(video_id='{self.video_id}', title='{self.title}')>"

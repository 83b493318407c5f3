"""Service for the stored video corpus: quality-checked writes, sampling and repair."""
from typing import Callable, Dict, List, Optional
import logging
import time

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from series_match_service.config import get_reference_sample_size
from series_match_service.errors import CorpusStoreError
from series_match_service.ml.embedding_provider import EmbeddingProvider
from series_match_service.ml.pattern_matcher import ReferenceCorpus
from series_match_service.ml.vector_math import DenseNormalized, analyze_quality
from series_match_service.models import CatalogItem
from series_match_service.ml.text_processor import combine_text_features
from series_match_service.repos import CorpusRepository

logger = logging.getLogger(__name__)


def new_session() -> Session:
    from series_match_service.models.database import SessionLocal
    return SessionLocal()


class CorpusStore:
    """
    Persistent (text, embedding) records used as training signal and duplicate index.
    """

    def __init__(
            self,
            embedding_provider: Optional[EmbeddingProvider] = None,
            session_factory: Optional[Callable[[], Session]] = None,
            repair_delay: float = 0.5
    ):
        """
        Initialize the corpus store.

        Args:
            embedding_provider: Provider used for new and repaired embeddings
            session_factory: Callable returning a new Session (default: SessionLocal)
            repair_delay: Seconds to sleep between remote calls while repairing
        """
        self.embedding_provider = embedding_provider or EmbeddingProvider()
        self.session_factory = session_factory or new_session
        self.repair_delay = repair_delay

    def _build_record_data(self, item: CatalogItem) -> tuple[Dict, str]:
        embedding = self.embedding_provider.embed(item.text)
        quality = analyze_quality(embedding)
        logger.info(f"Embedding quality for {item.id}: {quality.label} ({quality.details})")

        record_data = {
            'video_id': item.id,
            'title': item.title,
            'description': item.description,
            'embedding': [float(v) for v in embedding],
            'channel_id': item.channel_id,
            'published_at': item.published_at,
        }
        return record_data, quality.label

    def upsert_quality_checked(self, item: CatalogItem) -> str:
        """
        Embed a video and insert or replace it by ID.

        Args:
            item: Video to store

        Returns:
            Quality label of the stored embedding

        Raises:
            CorpusStoreError: If the write fails
        """
        record_data, label = self._build_record_data(item)

        db = self.session_factory()
        try:
            CorpusRepository(db).upsert_record(record_data)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error storing video {item.id}: {e}")
            raise CorpusStoreError(item.id, str(e)) from e
        finally:
            db.close()

        logger.info(f"✓ Stored video {item.id} with {label} embedding")
        return label

    def insert_quality_checked_if_absent(self, item: CatalogItem) -> bool:
        """
        Embed a video and insert it only if its ID is not stored yet.

        Args:
            item: Video to store

        Returns:
            True if inserted, False if the ID already existed

        Raises:
            CorpusStoreError: If the write fails for any other reason
        """
        record_data, label = self._build_record_data(item)

        db = self.session_factory()
        try:
            inserted = CorpusRepository(db).insert_if_absent(record_data)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error storing video {item.id}: {e}")
            raise CorpusStoreError(item.id, str(e)) from e
        finally:
            db.close()

        if inserted:
            logger.info(f"✓ Stored video {item.id} with {label} embedding")
        return inserted

    def exists_by_id(self, video_id: str) -> bool:
        """Check whether a video is stored."""
        db = self.session_factory()
        try:
            return CorpusRepository(db).exists_by_id(video_id)
        finally:
            db.close()

    def count(self) -> int:
        """Count stored videos."""
        db = self.session_factory()
        try:
            return CorpusRepository(db).count_records()
        finally:
            db.close()

    def sample(self, limit: int = 100) -> List[Dict]:
        """
        Get a bounded sample of stored videos.

        Args:
            limit: Maximum number of records

        Returns:
            List of dicts with video_id, title, description, embedding, channel_id
        """
        db = self.session_factory()
        try:
            return [
                {
                    'video_id': record.video_id,
                    'title': record.title,
                    'description': record.description or '',
                    'embedding': record.embedding,
                    'channel_id': record.channel_id,
                }
                for record in CorpusRepository(db).sample_records(limit)
            ]
        finally:
            db.close()

    def reference_corpus(self, limit: Optional[int] = None) -> ReferenceCorpus:
        """
        Snapshot a sample of the corpus for pattern matching.

        An unreachable store yields an empty snapshot, which makes the pattern layer neutral.

        Args:
            limit: Sample size (from config if None)

        Returns:
            ReferenceCorpus
        """
        limit = limit or get_reference_sample_size()
        try:
            records = self.sample(limit)
        except SQLAlchemyError as e:
            logger.warning(f"Reference corpus unavailable, using base similarity only: {e}")
            return ReferenceCorpus()

        logger.info(f"Using {len(records)} reference videos for pattern matching")
        return ReferenceCorpus.from_records(records)

    def repair_low_quality(self, limit: int = 50) -> Dict[str, int]:
        """
        Re-embed stored videos whose embeddings are not dense-normalized.

        Args:
            limit: Maximum number of records to scan

        Returns:
            Dict with processed, repaired and failed counts
        """
        logger.info(f"Repairing corpus embeddings (scanning {limit} videos)...")
        records = self.sample(limit)

        repaired = 0
        failed = 0
        for record in records:
            quality = analyze_quality(record['embedding'])
            if isinstance(quality, DenseNormalized):
                continue

            logger.info(f"Repairing {quality.label} embedding for: {record['title'][:40]}...")
            text = combine_text_features(record['title'], record['description'])
            embedding = self.embedding_provider.embed(text)

            db = self.session_factory()
            try:
                if CorpusRepository(db).update_embedding(record['video_id'], [float(v) for v in embedding]):
                    repaired += 1
                    logger.info(f"✓ Repaired embedding for video {record['video_id']}")
                else:
                    failed += 1
            except SQLAlchemyError as e:
                db.rollback()
                failed += 1
                logger.error(f"Failed to update embedding for video {record['video_id']}: {e}")
            finally:
                db.close()

            time.sleep(self.repair_delay)  # Rate limiting

        logger.info(f"✓ Repaired {repaired} embeddings out of {len(records)} processed")
        return {'processed': len(records), 'repaired': repaired, 'failed': failed}

    def quality_report(self, limit: int = 100) -> Dict[str, int]:
        """
        Count embedding quality classes over a sample of the corpus.

        Args:
            limit: Maximum number of records to analyze

        Returns:
            Dict mapping quality label to count, plus 'total'
        """
        records = self.sample(limit)
        labels = pd.Series([analyze_quality(r['embedding']).label for r in records], dtype=object)
        counts = labels.value_counts()

        report = {
            label: int(counts.get(label, 0))
            for label in ('dense-normalized', 'sparse-fallback', 'invalid')
        }
        report['total'] = len(records)
        return report

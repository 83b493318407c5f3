"""
Corpus maintenance: seed reference videos, repair weak embeddings, report quality.

Usage:
    # Store a channel's uploads as reference videos
    python scripts/maintain_corpus.py ingest --channel-id UC123

    # Re-embed stored videos that only have fallback embeddings
    python scripts/maintain_corpus.py repair --limit 50 --delay 0.5

    # Show the embedding quality distribution
    python scripts/maintain_corpus.py report --limit 100
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

from series_match_service.errors import CorpusStoreError
from series_match_service.models.database import init_db
from series_match_service.services import CatalogClient, CorpusStore

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def ingest_channel(store: CorpusStore, catalog: CatalogClient, channel_id: str, max_videos: int) -> int:
    """
    Store a channel's videos in the corpus.

    Args:
        store: Corpus store
        catalog: Catalog client
        channel_id: Channel to ingest
        max_videos: Maximum number of videos

    Returns:
        Number of videos stored
    """
    items = catalog.get_all_items_for_channel(channel_id, max_items=max_videos)

    stored = 0
    for item in items:
        try:
            store.upsert_quality_checked(item)
            stored += 1
        except CorpusStoreError as e:
            logger.error(f"✗ {e}")

    logger.info(f"✓ Stored {stored}/{len(items)} videos from channel {channel_id}")
    return stored


def print_report(report: dict) -> None:
    """Log a quality report."""
    total = report['total']
    logger.info("=" * 70)
    logger.info("EMBEDDING QUALITY DISTRIBUTION")
    logger.info("=" * 70)
    for label in ('dense-normalized', 'sparse-fallback', 'invalid'):
        share = (report[label] / total * 100) if total else 0.0
        logger.info(f"{label}: {report[label]} ({share:.1f}%)")
    if total == 0:
        logger.info("Corpus is empty: pattern matching will fall back to base similarity")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Maintain the reference video corpus')
    subparsers = parser.add_subparsers(dest='command', required=True)

    ingest = subparsers.add_parser('ingest', help='Store a channel\'s videos as reference videos')
    ingest.add_argument('--channel-id', type=str, required=True, help='Channel ID to ingest')
    ingest.add_argument(
        '--max-videos',
        type=int,
        default=100,
        help='Maximum number of videos to store (default: 100)'
    )

    repair = subparsers.add_parser('repair', help='Re-embed videos with fallback or invalid embeddings')
    repair.add_argument('--limit', type=int, default=50, help='Videos to scan (default: 50)')
    repair.add_argument(
        '--delay',
        type=float,
        default=0.5,
        help='Seconds between embedding requests (default: 0.5)'
    )

    report = subparsers.add_parser('report', help='Show embedding quality distribution')
    report.add_argument('--limit', type=int, default=100, help='Videos to analyze (default: 100)')

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main execution function."""
    args = parse_args(argv)

    init_db()

    if args.command == 'ingest':
        store = CorpusStore()
        stored = ingest_channel(store, CatalogClient(), args.channel_id, args.max_videos)
        return 0 if stored > 0 else 1

    if args.command == 'repair':
        store = CorpusStore(repair_delay=args.delay)
        result = store.repair_low_quality(limit=args.limit)
        logger.info(f"Processed: {result['processed']}, repaired: {result['repaired']}, failed: {result['failed']}")
        return 0 if result['failed'] == 0 else 1

    print_report(CorpusStore().quality_report(limit=args.limit))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Shared test fixtures and configuration for pytest."""
import pytest
import numpy as np
from pathlib import Path
from unittest.mock import Mock
from typing import Dict, List
import json
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from series_match_service.ml.vector_math import EMBEDDING_DIMENSION
from series_match_service.models.base import Base
from series_match_service.models.catalog_item import CatalogItem
from series_match_service.models.corpus_record import CorpusRecord


# ===== Vector Helpers =====

def unit_vector() -> np.ndarray:
    """Dense unit vector with every component equal."""
    return np.ones(EMBEDDING_DIMENSION) / np.sqrt(EMBEDDING_DIMENSION)


def orthogonal_unit_vector() -> np.ndarray:
    """Dense unit vector orthogonal to unit_vector()."""
    signs = np.array([1.0 if i % 2 == 0 else -1.0 for i in range(EMBEDDING_DIMENSION)])
    return signs / np.sqrt(EMBEDDING_DIMENSION)


def vector_with_similarity(similarity: float) -> np.ndarray:
    """Dense unit vector whose cosine with unit_vector() equals the given value."""
    return similarity * unit_vector() + np.sqrt(1 - similarity ** 2) * orthogonal_unit_vector()


class FakeEmbeddingProvider:
    """Embedding provider returning fixed vectors keyed by a substring of the text."""

    def __init__(self, vectors: Dict[str, np.ndarray], default: np.ndarray | None = None):
        self.vectors = vectors
        self.default = orthogonal_unit_vector() if default is None else default
        self.calls: List[str] = []

    def embed(self, text):
        self.calls.append(text)
        for key, vector in self.vectors.items():
            if key in text:
                return vector
        return self.default


# ===== Database Fixtures =====

@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite database engine shared across sessions and threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture(scope="function")
def test_db_session(test_session_factory):
    """Create a database session for testing."""
    session = test_session_factory()
    yield session
    session.close()


# ===== Sample Data Fixtures =====

@pytest.fixture
def sample_seed_item() -> CatalogItem:
    """Seed video for testing."""
    return CatalogItem(
        id='seed0000001',
        title='Storytime Part 1',
        description='The first storytime of the summer camp saga',
        channel_id='UCchannel001',
        published_at='2024-01-01T00:00:00Z',
        channel_title='Storyteller'
    )


@pytest.fixture
def sample_candidate_items() -> List[CatalogItem]:
    """Channel videos for testing."""
    return [
        CatalogItem(
            id='vid00000002',
            title='Storytime Part 2',
            description='The summer camp saga continues',
            channel_id='UCchannel001',
            published_at='2024-01-08T00:00:00Z'
        ),
        CatalogItem(
            id='vid00000003',
            title='Cooking pasta at home',
            description='An easy weeknight dinner',
            channel_id='UCchannel001',
            published_at='2024-01-15T00:00:00Z'
        ),
    ]


@pytest.fixture
def sample_corpus_data() -> Dict:
    """Corpus record data for testing."""
    return {
        'video_id': 'abcDEF12345',
        'title': 'Storytime Part 3',
        'description': 'Camp saga part three',
        'embedding': [float(v) for v in unit_vector()],
        'channel_id': 'UCchannel001',
        'published_at': '2024-01-22T00:00:00Z'
    }


@pytest.fixture
def sample_corpus_records(test_db_session) -> List[CorpusRecord]:
    """Create sample CorpusRecord rows in the test database."""
    records = [
        CorpusRecord(
            video_id='ref00000001',
            title='Storytime Part 3',
            description='Camp saga part three',
            embedding=[float(v) for v in unit_vector()],
            channel_id='UCchannel001'
        ),
        CorpusRecord(
            video_id='ref00000002',
            title='Storytime Part 4',
            description='Camp saga part four',
            embedding=[0.0] * EMBEDDING_DIMENSION,
            channel_id='UCchannel001'
        ),
    ]

    for record in records:
        test_db_session.add(record)
    test_db_session.commit()

    return records


# ===== Mock Fixtures =====

@pytest.fixture
def fake_embedding_provider() -> FakeEmbeddingProvider:
    """Embedding provider with the seed, a series match and an unrelated video."""
    return FakeEmbeddingProvider({
        'Storytime Part 1': unit_vector(),
        'Storytime Part 2': vector_with_similarity(0.85),
        'Cooking pasta': vector_with_similarity(0.05),
    })


@pytest.fixture
def mock_catalog_client():
    """Mock CatalogClient."""
    mock = Mock()
    mock.get_item_details.return_value = None
    mock.get_all_items_for_channel.return_value = []
    return mock


@pytest.fixture
def mock_database_session():
    """Mock database session."""
    mock_session = Mock(spec=Session)
    mock_session.query.return_value = mock_session
    mock_session.filter.return_value = mock_session
    mock_session.order_by.return_value = mock_session
    mock_session.limit.return_value = mock_session
    mock_session.first.return_value = None
    mock_session.all.return_value = []
    mock_session.count.return_value = 0
    mock_session.commit.return_value = None
    mock_session.close.return_value = None
    mock_session.refresh.return_value = None
    return mock_session


# ===== Configuration Fixtures =====

@pytest.fixture
def mock_config(monkeypatch):
    """Mock configuration values."""
    monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')
    monkeypatch.setenv('EMBEDDING_API_URL', 'https://embeddings.test/models/minilm')
    monkeypatch.setenv('HF_API_KEY', 'test-hf-key')
    monkeypatch.setenv('CATALOG_API_URL', 'https://catalog.test/v3')
    monkeypatch.setenv('YOUTUBE_API_KEY', 'test-yt-key')


@pytest.fixture
def mock_local_settings(tmp_path, monkeypatch):
    """Mock local.settings.json file."""
    settings = {
        "Values": {
            "DATABASE_URL": "sqlite:///from_settings.db",
            "HIGH_QUALITY_THRESHOLD": "0.45"
        }
    }

    settings_file = tmp_path / "local.settings.json"
    with open(settings_file, 'w') as f:
        json.dump(settings, f)

    yield settings_file


# ===== Azure Functions Fixtures =====

@pytest.fixture
def mock_http_request():
    """Mock Azure Functions HttpRequest."""
    mock_req = Mock()
    mock_req.route_params = {}
    mock_req.params = {}
    mock_req.get_json.return_value = {}
    return mock_req

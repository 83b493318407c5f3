"""Video items supplied by the catalog and the match results built from them."""
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from series_match_service.ml.text_processor import combine_text_features


@dataclass(frozen=True)
class CatalogItem:
    """A video as returned by the catalog API. Read-only."""

    id: str
    title: str
    description: str = ""
    channel_id: str = ""
    published_at: str = ""
    channel_title: str = ""
    view_count: Optional[str] = None
    duration: Optional[str] = None
    thumbnail: Optional[str] = None

    @property
    def text(self) -> str:
        """Title and description combined, as embedded."""
        return combine_text_features(self.title, self.description)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class MatchResult:
    """A candidate scored against a seed video."""

    item: CatalogItem
    score: float
    base_score: float
    title_score: float = 0.0
    content_score: float = 0.0
    series_score: float = 0.0
    embedding_quality: str = "invalid"

    def to_dict(self) -> Dict:
        result = self.item.to_dict()
        result.update({
            'similarity_score': self.score,
            'base_score': self.base_score,
            'title_score': self.title_score,
            'content_score': self.content_score,
            'series_score': self.series_score,
            'embedding_quality': self.embedding_quality,
        })
        return result

"""Pattern features learned from a reference corpus of stored videos."""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple
import logging
import re

from series_match_service.ml.text_processor import combine_text_features, tokenize

logger = logging.getLogger(__name__)

SERIES_PATTERNS = [
    re.compile(r'part\s*(\d+)', re.IGNORECASE),
    re.compile(r'episode\s*(\d+)', re.IGNORECASE),
    re.compile(r'ep\s*(\d+)', re.IGNORECASE),
    re.compile(r'#(\d+)'),
    re.compile(r'day\s*(\d+)', re.IGNORECASE),
    re.compile(r'\((\d+)\)'),
    re.compile(r'\[(\d+)\]'),
]


@dataclass(frozen=True)
class ReferenceCorpus:
    """Snapshot of stored videos used as the pattern source."""

    titles: Tuple[str, ...] = ()
    descriptions: Tuple[str, ...] = ()

    @classmethod
    def from_records(cls, records: Sequence[Dict]) -> "ReferenceCorpus":
        """
        Build a snapshot from record dicts.

        Args:
            records: Dicts with 'title' and optional 'description'

        Returns:
            ReferenceCorpus
        """
        titles = tuple(r.get('title') or '' for r in records)
        descriptions = tuple(r.get('description') or '' for r in records)
        return cls(titles=titles, descriptions=descriptions)

    @property
    def is_empty(self) -> bool:
        return len(self.titles) == 0

    def __len__(self) -> int:
        return len(self.titles)


def extract_title_patterns(titles: Sequence[str]) -> List[str]:
    """
    Build the title vocabulary.

    Args:
        titles: Reference titles

    Returns:
        Lowercase words longer than two characters plus NUM_<k> digit-run tokens
    """
    patterns: Dict[str, None] = {}
    for title in titles:
        for word in tokenize(title, min_length=3):
            patterns[word] = None
        for number in re.findall(r'\d+', title):
            patterns[f"NUM_{len(number)}"] = None
    return list(patterns)


def extract_content_keywords(titles: Sequence[str], descriptions: Sequence[str], max_keywords: int = 1000) -> List[str]:
    """
    Build the content keyword vocabulary.

    Args:
        titles: Reference titles
        descriptions: Reference descriptions (aligned with titles)
        max_keywords: Vocabulary cap

    Returns:
        First max_keywords distinct words longer than three characters
    """
    keywords: Dict[str, None] = {}
    for title, description in zip(titles, descriptions):
        for word in tokenize(combine_text_features(title, description), min_length=4):
            keywords[word] = None
    return list(keywords)[:max_keywords]


def _overlap_ratio(a: List[str], b: List[str]) -> float:
    total = max(len(a), len(b))
    if total == 0:
        return 0.0
    b_set = set(b)
    return sum(1 for p in a if p in b_set) / total


def detect_series_indicators(title_a: str, title_b: str) -> float:
    """
    Score how strongly two titles look like neighbouring entries of a numbered series.

    Args:
        title_a: First title
        title_b: Second title

    Returns:
        Score in [0, 1]; "Part 3" vs "Part 4" scores 0.8
    """
    score = 0.0
    for pattern in SERIES_PATTERNS:
        match_a = pattern.search(title_a or '')
        match_b = pattern.search(title_b or '')
        if not (match_a and match_b):
            continue

        diff = abs(int(match_a.group(1)) - int(match_b.group(1)))
        if diff <= 1:
            score += 0.8
        elif diff <= 3:
            score += 0.5
        elif diff <= 5:
            score += 0.2

    return min(score, 1.0)


@dataclass
class PatternMatcher:
    """
    Auxiliary similarity features computed against a reference corpus.

    All features are pure functions of (item_a, item_b, corpus).
    """

    corpus: ReferenceCorpus
    max_keywords: int = 1000
    title_patterns: List[str] = field(init=False)
    content_keywords: List[str] = field(init=False)

    def __post_init__(self):
        self.title_patterns = extract_title_patterns(self.corpus.titles)
        self.content_keywords = extract_content_keywords(
            self.corpus.titles, self.corpus.descriptions, self.max_keywords
        )
        logger.info(
            f"Pattern matcher: {len(self.corpus)} reference videos, "
            f"{len(self.title_patterns)} title patterns, {len(self.content_keywords)} keywords"
        )

    @property
    def is_neutral(self) -> bool:
        """True when there is no reference data to learn from."""
        return self.corpus.is_empty

    def patterns_in_title(self, title: str) -> List[str]:
        """Vocabulary entries a title matches."""
        title_lower = (title or '').lower()
        matched = []
        for pattern in self.title_patterns:
            if pattern.startswith('NUM_'):
                if re.search(r'\d{%s}' % pattern.split('_')[1], title or ''):
                    matched.append(pattern)
            elif pattern in title_lower:
                matched.append(pattern)
        return matched

    def keywords_in_text(self, title: str, description: str) -> List[str]:
        """Content keywords contained in an item's title and description."""
        text = combine_text_features(title, description).lower()
        return [k for k in self.content_keywords if k in text]

    def title_pattern_similarity(self, title_a: str, title_b: str) -> float:
        """Overlap of matched title patterns, divided by the larger match set."""
        return _overlap_ratio(self.patterns_in_title(title_a), self.patterns_in_title(title_b))

    def content_pattern_similarity(
            self,
            title_a: str,
            description_a: str,
            title_b: str,
            description_b: str
    ) -> float:
        """Overlap of matched content keywords, divided by the larger match set."""
        return _overlap_ratio(
            self.keywords_in_text(title_a, description_a),
            self.keywords_in_text(title_b, description_b)
        )

    def series_indicator_score(self, title_a: str, title_b: str) -> float:
        return detect_series_indicators(title_a, title_b)

"""Text processing utilities for video titles and descriptions."""
import re
import pandas as pd
from typing import List, Optional


def clean_text(text: str | None) -> str:
    """
    Prepare text for the embedding service.

    Args:
        text: Raw title/description text (can be None)

    Returns:
        Text with non-word characters replaced by spaces and whitespace collapsed
    """
    if text is None or pd.isna(text):
        return ""

    # Replace punctuation, emoji, etc.
    text = re.sub(r'[^\w\s]', ' ', str(text))

    # Remove extra whitespace
    text = re.sub(r'\s+', ' ', text)

    return text.strip()


def tokenize(text: str | None, min_length: int = 3) -> List[str]:
    """
    Split lowercased text on non-word runs.

    Args:
        text: Input text
        min_length: Minimum token length to keep

    Returns:
        Tokens in order of appearance (duplicates kept)
    """
    if text is None or pd.isna(text):
        return []

    return [w for w in re.split(r'\W+', str(text).lower()) if len(w) >= min_length]


def combine_text_features(title: Optional[str], description: Optional[str] = None) -> str:
    """
    Combine a video's title and description into a single text.

    Args:
        title: Video title
        description: Optional video description

    Returns:
        Combined text
    """
    title = "" if title is None or pd.isna(title) else str(title)
    description = "" if description is None or pd.isna(description) else str(description)
    return f"{title} {description}"

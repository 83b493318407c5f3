"""Application configuration"""

import json
import os
from pathlib import Path


def _get_config_value(key: str, default: str | None = None) -> str | None:
    """
    Get configuration value from environment or local.settings.json.

    Priority:
    1. Environment variable
    2. local.settings.json (Values.key)
    3. Default value

    Args:
        key: Configuration key name
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    # Try environment variable first
    value = os.getenv(key)
    if value:
        return value

    # Try local.settings.json
    project_root = Path(__file__).resolve().parent.parent
    local_settings_path = project_root / "local.settings.json"

    if local_settings_path.exists():
        try:
            with open(local_settings_path) as f:
                settings = json.load(f)
                value = settings.get("Values", {}).get(key)
                if value:
                    return value
        except (json.JSONDecodeError, KeyError):
            pass

    return default


def get_float_setting(key: str, default: float) -> float:
    """
    Get a numeric setting, falling back to the default when unset or malformed.

    Args:
        key: Configuration key name
        default: Value used when the key is missing or not a number

    Returns:
        Setting as float
    """
    value = _get_config_value(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_database_url() -> str | None:
    """
    Get database URL from environment or config.

    Returns:
        Database connection string
    """
    return _get_config_value("DATABASE_URL", default="sqlite:///series_match.db")


def get_embedding_api_url() -> str | None:
    """
    Get the text-embedding inference endpoint.

    Returns:
        Inference URL (default: Hugging Face all-MiniLM-L6-v2)
    """
    return _get_config_value(
        "EMBEDDING_API_URL",
        default="https://api-inference.huggingface.co/models/sentence-transformers/all-MiniLM-L6-v2",
    )


def get_embedding_api_key() -> str | None:
    """Get the bearer token for the embedding inference API."""
    return _get_config_value("HF_API_KEY")


def get_catalog_api_url() -> str | None:
    """
    Get the video catalog API base URL.

    Returns:
        Catalog URL (default: YouTube Data API v3)
    """
    return _get_config_value("CATALOG_API_URL", default="https://www.googleapis.com/youtube/v3")


def get_catalog_api_key() -> str | None:
    """Get the video catalog API key."""
    return _get_config_value("YOUTUBE_API_KEY")


def get_blend_weights() -> dict[str, float]:
    """
    Get the weights used to blend base similarity with pattern features.

    Returns:
        Dict with base, title, content and series weights
    """
    return {
        "base": get_float_setting("BASE_WEIGHT", 0.6),
        "title": get_float_setting("TITLE_WEIGHT", 0.2),
        "content": get_float_setting("CONTENT_WEIGHT", 0.15),
        "series": get_float_setting("SERIES_WEIGHT", 0.05),
    }


def get_thresholds() -> dict[str, float]:
    """
    Get the adaptive decision thresholds.

    Returns:
        Dict with the high (dense embeddings) and low (fallback) thresholds
    """
    return {
        "high": get_float_setting("HIGH_QUALITY_THRESHOLD", 0.3),
        "low": get_float_setting("LOW_QUALITY_THRESHOLD", 0.1),
    }


def get_reference_sample_size() -> int:
    """Get the number of corpus records sampled as the reference corpus."""
    return int(get_float_setting("REFERENCE_SAMPLE_SIZE", 100))

"""
Series matching exceptions.

"No series match" is never an error: it is an empty result list. These
exceptions cover input that cannot be analyzed and persistence failures.
"""


class SeriesMatchError(Exception):
    """Base exception for all series matching errors."""
    pass


class InvalidSeedReferenceError(SeriesMatchError):
    """Raised when the seed URL/ID cannot be parsed."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Invalid video reference: {reference}")


class SeriesLookupError(SeriesMatchError):
    """
    Raised when the seed video or its channel could not be analyzed.

    Examples:
    - Seed video details not found in the catalog
    - Channel uploads could not be fetched
    """
    pass


class CorpusStoreError(SeriesMatchError):
    """Raised when a write to the corpus store fails."""

    def __init__(self, video_id: str, message: str):
        self.video_id = video_id
        super().__init__(f"Corpus store write failed for {video_id}: {message}")

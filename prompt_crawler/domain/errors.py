from __future__ import annotations


class StorageError(Exception):
    """Raised by storage implementations when a read or write fails."""
    pass


class ConnectorError(Exception):
    """Raised when one search unit (subreddit / query) cannot be fetched."""

    def __init__(self, unit: str, reason: str) -> None:
        self.unit = unit
        super().__init__(f"{unit}: {reason}")


class ExtractionError(Exception):
    """Raised when the LLM response does not have the expected shape."""
    pass

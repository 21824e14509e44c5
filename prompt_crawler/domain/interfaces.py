"""
Domain Layer — Interfaces (Abstract Contracts)
-----------------------------------------------
Abstract definitions of what the infrastructure must provide. The
application layer (orchestrator, gate, writer, config loader) depends on
these, never on httpx or psycopg2 directly.

Swap RedditConnector for a FakeConnector in tests without changing a
single line of application code.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any

from .entities import (
    CandidatePrompt,
    CrawlConfig,
    ExtractionResult,
    PromptAnalysis,
    RawItem,
)


class ISourceConnector(ABC):
    """
    Contract every content source must fulfil.
    One implementation per platform; the orchestrator picks them by
    `source_type`.
    """

    source_type: str

    @abstractmethod
    async def fetch(self, config: CrawlConfig) -> list[RawItem]:
        """
        Fetch candidate items for every search unit configured for this
        source, already filtered by the source's score threshold.

        A failing unit contributes zero items; this never raises.
        """
        ...


class IPromptExtractor(ABC):
    """Contract for the AI-assisted extraction stage."""

    @abstractmethod
    async def extract(self, item: RawItem, quality_threshold: float) -> ExtractionResult | None:
        """
        Return the prompts found in `item` scoring at least
        `quality_threshold`, or None if the analysis could not be done.
        """
        ...


class IPromptStorage(ABC):
    """
    Contract that any storage backend must fulfil.
    Implementations raise StorageError, never driver-specific exceptions.
    """

    @abstractmethod
    def create_job(self, job_type: str) -> str:
        """Insert a crawl_jobs row in 'running' state. Returns the job ID."""
        ...

    @abstractmethod
    def finish_job(self, job_id: str, status: str, items_found: int, items_new: int, prompts_extracted: int, error: str | None = None) -> None:
        """Write final status and counters for a job."""
        ...

    @abstractmethod
    def fetch_config_rows(self) -> list[tuple[str, Any]]:
        """Return every (config_key, config_value) pair."""
        ...

    @abstractmethod
    def source_exists(self, source_type: str, source_id: str) -> bool:
        ...

    @abstractmethod
    def insert_source(self, item: RawItem) -> str:
        """Insert a prompt_sources row. Returns the new row ID."""
        ...

    @abstractmethod
    def insert_prompt(self, source_row_id: str, prompt: CandidatePrompt, analysis: PromptAnalysis) -> str:
        """Insert one extracted_prompts row. Returns the new row ID."""
        ...


class IDeduplicator(ABC):
    """
    Contract for the deduplication gate.
    Separated from the orchestrator so each class has one job.
    """

    @abstractmethod
    def is_new(self, source_type: str, source_id: str) -> bool:
        """Return True if this source item has never been stored."""
        ...

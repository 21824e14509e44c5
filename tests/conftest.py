"""Shared fakes for the crawler tests."""

from __future__ import annotations

import itertools
from typing import Any

import pytest

from prompt_crawler.domain.entities import (
    STATUS_RUNNING,
    CandidatePrompt,
    CrawlConfig,
    ExtractionResult,
    GitHubRepository,
    PromptAnalysis,
    RawItem,
    RedditPost,
)
from prompt_crawler.domain.errors import StorageError
from prompt_crawler.domain.interfaces import IPromptExtractor, IPromptStorage, ISourceConnector


class InMemoryPromptStorage(IPromptStorage):
    """IPromptStorage kept in dicts; failures can be injected per call."""

    def __init__(self, config_rows: list[tuple[str, Any]] | None = None) -> None:
        self._ids = itertools.count(1)
        self.config_rows = list(config_rows or [])
        self.jobs: dict[str, dict] = {}
        self.sources: dict[str, dict] = {}
        self.prompts: list[dict] = []
        self.fail_create_job = False
        self.fail_source_ids: set[str] = set()
        self.fail_prompt_titles: set[str] = set()
        self.fail_finish_statuses: set[str] = set()

    def _next_id(self) -> str:
        return str(next(self._ids))

    def create_job(self, job_type: str) -> str:
        if self.fail_create_job:
            raise StorageError("connection refused")
        job_id = self._next_id()
        self.jobs[job_id] = {"job_type": job_type, "status": STATUS_RUNNING, "finish_calls": 0}
        return job_id

    def finish_job(self, job_id, status, items_found, items_new, prompts_extracted, error=None) -> None:
        if status in self.fail_finish_statuses:
            raise StorageError("server closed the connection unexpectedly")
        job = self.jobs[job_id]
        job.update(
            status=status,
            items_found=items_found,
            items_new=items_new,
            prompts_extracted=prompts_extracted,
            error=error,
        )
        job["finish_calls"] += 1

    def fetch_config_rows(self):
        return list(self.config_rows)

    def source_exists(self, source_type: str, source_id: str) -> bool:
        return any(
            s["source_type"] == source_type and s["source_id"] == source_id
            for s in self.sources.values()
        )

    def insert_source(self, item: RawItem) -> str:
        if item.source_id in self.fail_source_ids:
            raise StorageError("value too long for type character varying")
        row_id = self._next_id()
        self.sources[row_id] = {
            "source_type": item.source_type,
            "source_id":   item.source_id,
            "content":     item.content,
        }
        return row_id

    def insert_prompt(self, source_row_id: str, prompt: CandidatePrompt, analysis: PromptAnalysis) -> str:
        if prompt.title in self.fail_prompt_titles:
            raise StorageError("check constraint violated")
        row_id = self._next_id()
        self.prompts.append({
            "id":            row_id,
            "source_id":     source_row_id,
            "title":         prompt.title,
            "quality_score": prompt.quality,
            "language":      analysis.language,
        })
        return row_id

    def count_sources(self, source_type: str, source_id: str) -> int:
        return sum(
            1 for s in self.sources.values()
            if s["source_type"] == source_type and s["source_id"] == source_id
        )


class FakeConnector(ISourceConnector):
    def __init__(self, source_type: str, items: list[RawItem] | None = None, error: Exception | None = None) -> None:
        self.source_type = source_type
        self._items = list(items or [])
        self._error = error
        self.calls = 0

    async def fetch(self, config: CrawlConfig) -> list[RawItem]:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._items)


class FakeExtractor(IPromptExtractor):
    """
    Returns canned candidates, applying the threshold the way the real
    extractor does, or None when `returns_none` is set.
    """

    def __init__(self, candidates: list[CandidatePrompt] | None = None, returns_none: bool = False) -> None:
        self._candidates = list(candidates or [])
        self._returns_none = returns_none
        self.calls: list[tuple[str, float]] = []

    async def extract(self, item: RawItem, quality_threshold: float) -> ExtractionResult | None:
        self.calls.append((item.source_id, quality_threshold))
        if self._returns_none:
            return None
        kept = tuple(p for p in self._candidates if p.quality >= quality_threshold)
        return ExtractionResult(
            prompts=kept,
            analysis=PromptAnalysis(summary="s", relevance="8", language="en"),
            rejected=len(self._candidates) - len(kept),
        )


def make_post(post_id: str = "abc", score: int = 42, title: str = "My best prompt", selftext: str = "Act as a reviewer…") -> RedditPost:
    return RedditPost(
        post_id=post_id,
        title=title,
        selftext=selftext,
        url=f"https://reddit.com/r/ChatGPT/comments/{post_id}/",
        score=score,
        subreddit="ChatGPT",
        author="someone",
        created_utc=None,
    )


def make_repo(full_name: str = "acme/prompts", stars: int = 500, description: str = "Prompt collection", readme: str = "") -> GitHubRepository:
    return GitHubRepository(
        repo_id=1,
        name=full_name.split("/")[-1],
        full_name=full_name,
        description=description,
        html_url=f"https://github.com/{full_name}",
        stargazers_count=stars,
        owner_login=full_name.split("/")[0],
        readme_excerpt=readme,
    )


@pytest.fixture
def storage() -> InMemoryPromptStorage:
    return InMemoryPromptStorage()

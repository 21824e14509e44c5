"""Tests for prompt_crawler/domain/entities.py."""

from __future__ import annotations

from prompt_crawler.domain.entities import (
    ANALYSIS_TEXT_LIMIT,
    SOURCE_GITHUB,
    SOURCE_REDDIT,
    JobResult,
)

from conftest import make_post, make_repo


class TestRedditPost:
    def test_normalized_view(self):
        post = make_post(post_id="t3x", score=99)

        assert post.source_type == SOURCE_REDDIT
        assert post.source_id == "t3x"
        assert post.source_url.endswith("/t3x/")
        assert post.score == 99

    def test_empty_selftext_gives_empty_content(self):
        """Link posts have no body; content is '' rather than None."""
        post = make_post(selftext="")

        assert post.content == ""

    def test_analysis_text_is_bounded(self):
        post = make_post(selftext="x" * (ANALYSIS_TEXT_LIMIT * 2))

        assert len(post.analysis_text()) == ANALYSIS_TEXT_LIMIT
        assert post.analysis_text().startswith(post.title)


class TestGitHubRepository:
    def test_source_id_is_full_name(self):
        repo = make_repo(full_name="octo/awesome-prompts")

        assert repo.source_type == SOURCE_GITHUB
        assert repo.source_id == "octo/awesome-prompts"
        assert repo.title == "awesome-prompts"
        assert repo.author == "octo"

    def test_content_prefers_readme(self):
        repo = make_repo(description="desc", readme="# README")

        assert repo.content == "# README"

    def test_content_falls_back_to_description_without_readme(self):
        repo = make_repo(description="A curated list", readme="")

        assert repo.content == "A curated list"

    def test_content_is_never_none(self):
        repo = make_repo(description="", readme="")

        assert repo.content == ""

    def test_with_readme_returns_copy(self):
        repo = make_repo()
        updated = repo.with_readme("hello")

        assert updated.readme_excerpt == "hello"
        assert repo.readme_excerpt == ""

    def test_raw_data_snapshot(self):
        data = make_repo(full_name="a/b", stars=7).to_raw_data()

        assert data["full_name"] == "a/b"
        assert data["stargazers_count"] == 7
        assert data["owner"] == {"login": "a"}


class TestJobResult:
    def test_stats_shape(self):
        result = JobResult(
            job_id="j1",
            job_type="all",
            status="completed",
            found_by_source={SOURCE_REDDIT: 3, SOURCE_GITHUB: 2},
            items_new=4,
            prompts_extracted=6,
        )

        assert result.items_found == 5
        assert result.stats() == {
            "redditPosts": 3,
            "githubRepos": 2,
            "itemsNew": 4,
            "promptsExtracted": 6,
        }

    def test_missing_source_counts_as_zero(self):
        result = JobResult(job_id="j1", job_type="github", status="completed")

        assert result.stats()["redditPosts"] == 0
        assert result.items_found == 0

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Union

SOURCE_REDDIT = "reddit"
SOURCE_GITHUB = "github"

JOB_ALL = "all"
JOB_TYPES = (JOB_ALL, SOURCE_REDDIT, SOURCE_GITHUB)

STATUS_RUNNING   = "running"
STATUS_COMPLETED = "completed"
STATUS_FAILED    = "failed"

# Upper bound on the text handed to the LLM for one item
ANALYSIS_TEXT_LIMIT = 4000


@dataclass(frozen=True)
class RedditPost:
    """
    Immutable raw item for one Reddit search hit.

    Field names are OURS (snake_case); the connector translates the
    Reddit listing payload into this shape.
    """
    post_id:     str
    title:       str
    selftext:    str
    url:         str
    score:       int
    subreddit:   str
    author:      str
    created_utc: datetime | None

    source_type = SOURCE_REDDIT

    @property
    def source_id(self) -> str:
        return self.post_id

    @property
    def source_url(self) -> str:
        return self.url

    @property
    def content(self) -> str:
        return self.selftext or ""

    def analysis_text(self) -> str:
        return f"{self.title}\n\n{self.selftext}"[:ANALYSIS_TEXT_LIMIT]

    def to_raw_data(self) -> dict:
        return {
            "id":          self.post_id,
            "title":       self.title,
            "selftext":    self.selftext,
            "url":         self.url,
            "score":       self.score,
            "subreddit":   self.subreddit,
            "author":      self.author,
            "created_utc": self.created_utc.isoformat() if self.created_utc else None,
        }


@dataclass(frozen=True)
class GitHubRepository:
    """Immutable raw item for one GitHub repository search hit."""
    repo_id:          int
    name:             str
    full_name:        str
    description:      str
    html_url:         str
    stargazers_count: int
    owner_login:      str
    topics:           tuple[str, ...] = ()
    readme_excerpt:   str = ""

    source_type = SOURCE_GITHUB

    @property
    def source_id(self) -> str:
        return self.full_name

    @property
    def source_url(self) -> str:
        return self.html_url

    @property
    def title(self) -> str:
        return self.name

    @property
    def author(self) -> str:
        return self.owner_login

    @property
    def score(self) -> int:
        return self.stargazers_count

    @property
    def content(self) -> str:
        # README when we have one, description otherwise; never None
        return self.readme_excerpt or self.description or ""

    def analysis_text(self) -> str:
        text = f"{self.name}\n{self.description}\n\n{self.readme_excerpt}"
        return text[:ANALYSIS_TEXT_LIMIT]

    def with_readme(self, excerpt: str) -> GitHubRepository:
        return replace(self, readme_excerpt=excerpt)

    def to_raw_data(self) -> dict:
        return {
            "id":               self.repo_id,
            "name":             self.name,
            "full_name":        self.full_name,
            "description":      self.description,
            "html_url":         self.html_url,
            "stargazers_count": self.stargazers_count,
            "topics":           list(self.topics),
            "owner":            {"login": self.owner_login},
            "readme_content":   self.readme_excerpt,
        }


RawItem = Union[RedditPost, GitHubRepository]


@dataclass(frozen=True)
class CrawlConfig:
    """Tuning parameters read from the crawl_config table."""
    reddit_subreddits:     tuple[str, ...] = ("ChatGPT", "PromptEngineering")
    github_search_queries: tuple[str, ...] = ("prompt engineering",)
    min_reddit_score:      int   = 10
    min_github_stars:      int   = 50
    ai_quality_threshold:  float = 6.0


@dataclass(frozen=True)
class CandidatePrompt:
    """One prompt proposed by the LLM for a raw item."""
    title:    str
    content:  str
    category: str
    quality:  float


@dataclass(frozen=True)
class PromptAnalysis:
    summary:   str = ""
    relevance: str = ""
    language:  str = "en"

    def to_dict(self) -> dict:
        return {
            "summary":   self.summary,
            "relevance": self.relevance,
            "language":  self.language,
        }


@dataclass(frozen=True)
class ExtractionResult:
    """
    Validated LLM output for one raw item.

    `prompts` only holds candidates at or above the quality threshold
    the extractor was called with; `rejected` counts the ones dropped.
    """
    prompts:  tuple[CandidatePrompt, ...]
    analysis: PromptAnalysis
    rejected: int = 0


@dataclass(frozen=True)
class SaveOutcome:
    source_row_id: str
    prompt_count:  int


@dataclass
class JobResult:
    """Summary of one crawl job, returned to the CLI / HTTP layer."""
    job_id:            str
    job_type:          str
    status:            str
    found_by_source:   dict[str, int] = field(default_factory=dict)
    items_new:         int = 0
    prompts_extracted: int = 0
    elapsed_secs:      float = 0.0
    error_message:     str | None = None

    @property
    def items_found(self) -> int:
        return sum(self.found_by_source.values())

    def stats(self) -> dict:
        return {
            "redditPosts":      self.found_by_source.get(SOURCE_REDDIT, 0),
            "githubRepos":      self.found_by_source.get(SOURCE_GITHUB, 0),
            "itemsNew":         self.items_new,
            "promptsExtracted": self.prompts_extracted,
        }

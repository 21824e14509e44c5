from __future__ import annotations
import os
from dataclasses import dataclass

from prompt_crawler.infrastructure.openai_extractor import DEFAULT_MODEL, OPENAI_BASE_URL


class SettingsError(Exception):
    """Raised when a required environment variable is missing."""
    pass


def _optional(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    """
    Process settings read from the environment.

    Only DATABASE_URL is required. Every credential is optional and its
    absence disables just that capability:
      REDDIT_CLIENT_ID / REDDIT_CLIENT_SECRET → Reddit crawling
      GITHUB_TOKEN                            → higher GitHub rate limit
      OPENAI_API_KEY                          → AI analysis
    """
    database_url:         str
    reddit_client_id:     str | None = None
    reddit_client_secret: str | None = None
    github_token:         str | None = None
    openai_api_key:       str | None = None
    openai_model:         str = DEFAULT_MODEL
    openai_base_url:      str = OPENAI_BASE_URL
    log_level:            str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        db_url = _optional("DATABASE_URL")
        if not db_url:
            raise SettingsError("DATABASE_URL environment variable is required")

        return cls(
            database_url         = db_url,
            reddit_client_id     = _optional("REDDIT_CLIENT_ID"),
            reddit_client_secret = _optional("REDDIT_CLIENT_SECRET"),
            github_token         = _optional("GITHUB_TOKEN"),
            openai_api_key       = _optional("OPENAI_API_KEY"),
            openai_model         = _optional("OPENAI_MODEL") or DEFAULT_MODEL,
            openai_base_url      = _optional("OPENAI_BASE_URL") or OPENAI_BASE_URL,
            log_level            = (_optional("LOG_LEVEL") or "INFO").upper(),
        )

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable

import httpx

from prompt_crawler.domain.entities import SOURCE_REDDIT, CrawlConfig, RedditPost
from prompt_crawler.domain.errors import ConnectorError
from prompt_crawler.domain.interfaces import ISourceConnector

log = logging.getLogger(__name__)

TOKEN_URL        = "https://www.reddit.com/api/v1/access_token"
SEARCH_URL       = "https://oauth.reddit.com/r/{subreddit}/search"
USER_AGENT       = "PromptCrawler/1.0"
SEARCH_KEYWORD   = "prompt"
SEARCH_LIMIT     = 25
TOKEN_MARGIN     = 60
DEFAULT_TOKEN_TTL = 3600
PACING_SECS      = 1.0


class RedditConnector(ISourceConnector):
    """
    ISourceConnector for Reddit's OAuth API.

    Uses the application-only (client credentials) grant. The access token
    is cached on this instance with its expiry, so build one connector per
    job run.
    """

    source_type = SOURCE_REDDIT

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        client: httpx.AsyncClient,
        pacing_secs: float = PACING_SECS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client_id     = client_id
        self._client_secret = client_secret
        self._client        = client
        self._pacing_secs   = pacing_secs
        self._clock         = clock
        self._token: str | None = None
        self._token_expires_at  = 0.0

    @property
    def configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    async def _access_token(self) -> str | None:
        """Return the cached token, exchanging credentials when it is stale."""
        if self._token and self._clock() < self._token_expires_at:
            return self._token

        try:
            response = await self._client.post(
                TOKEN_URL,
                auth=(self._client_id, self._client_secret),
                data={"grant_type": "client_credentials"},
                headers={"User-Agent": USER_AGENT},
                timeout=30.0,
            )
            response.raise_for_status()
            data = response.json()
            token = data["access_token"]
            ttl   = float(data.get("expires_in") or DEFAULT_TOKEN_TTL)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            log.warning("Reddit token exchange failed: %s", exc)
            return None

        self._token = token
        self._token_expires_at = self._clock() + max(ttl - TOKEN_MARGIN, 0.0)
        log.debug("Obtained Reddit token, valid for %.0fs", ttl)
        return self._token

    # Anti-Corruption Layer
    @staticmethod
    def _parse_post(post: dict) -> RedditPost | None:
        """Translate one listing child into a RedditPost; None if malformed."""
        try:
            created = post.get("created_utc")
            return RedditPost(
                post_id     = str(post["id"]),
                title       = post.get("title") or "",
                selftext    = post.get("selftext") or "",
                url         = f"https://reddit.com{post['permalink']}",
                score       = int(post.get("score") or 0),
                subreddit   = post.get("subreddit") or "",
                author      = post.get("author") or "",
                created_utc = (
                    datetime.fromtimestamp(float(created), tz=timezone.utc)
                    if created is not None else None
                ),
            )
        except (KeyError, TypeError, ValueError) as exc:
            log.debug("Skipping malformed Reddit post: %s", exc)
            return None

    async def _search_subreddit(self, subreddit: str, token: str, min_score: int) -> list[RedditPost]:
        try:
            response = await self._client.get(
                SEARCH_URL.format(subreddit=subreddit),
                params={
                    "q":           SEARCH_KEYWORD,
                    "sort":        "hot",
                    "limit":       SEARCH_LIMIT,
                    "restrict_sr": "on",
                    "t":           "week",
                },
                headers={
                    "Authorization": f"Bearer {token}",
                    "User-Agent":    USER_AGENT,
                },
                timeout=30.0,
            )
            response.raise_for_status()
            children = ((response.json() or {}).get("data") or {}).get("children") or []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            raise ConnectorError(f"r/{subreddit}", str(exc)) from exc
        if not isinstance(children, list):
            raise ConnectorError(f"r/{subreddit}", "'children' is not a list")

        posts = []
        for child in children:
            data = child.get("data") if isinstance(child, dict) else None
            if not isinstance(data, dict):
                log.debug("Skipping non-object listing child in r/%s", subreddit)
                continue
            post = self._parse_post(data)
            if post is None:
                continue
            if post.score >= min_score and (post.selftext or post.title):
                posts.append(post)
        return posts

    async def fetch(self, config: CrawlConfig) -> list[RedditPost]:
        if not self.configured:
            log.info("Reddit credentials not configured, skipping Reddit")
            return []

        token = await self._access_token()
        if token is None:
            return []

        posts: list[RedditPost] = []
        subreddits = list(config.reddit_subreddits)

        for index, subreddit in enumerate(subreddits):
            if index > 0 and self._pacing_secs:
                await asyncio.sleep(self._pacing_secs)
            try:
                found = await self._search_subreddit(subreddit, token, config.min_reddit_score)
            except ConnectorError as exc:
                log.warning("Reddit search failed, skipping: %s", exc)
                continue
            log.info("r/%s | %d posts at score >= %d", subreddit, len(found), config.min_reddit_score)
            posts.extend(found)

        return posts

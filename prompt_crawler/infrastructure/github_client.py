from __future__ import annotations

import asyncio
import base64
import binascii
import logging

import httpx

from prompt_crawler.domain.entities import SOURCE_GITHUB, CrawlConfig, GitHubRepository
from prompt_crawler.domain.errors import ConnectorError
from prompt_crawler.domain.interfaces import ISourceConnector

log = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
USER_AGENT     = "PromptCrawler/1.0"
PAGE_SIZE      = 20
README_LIMIT   = 5000
PACING_SECS    = 2.0


class GitHubConnector(ISourceConnector):
    """
    ISourceConnector for GitHub's REST search API.

    The httpx.AsyncClient is injected rather than created here, which lets
    callers control its lifecycle and lets tests pass a MockTransport.
    A token is optional; it only raises the rate limit.
    """

    source_type = SOURCE_GITHUB

    def __init__(
        self,
        token: str | None,
        client: httpx.AsyncClient,
        pacing_secs: float = PACING_SECS,
    ) -> None:
        self._client = client
        self._pacing_secs = pacing_secs
        self._headers = {
            "Accept":     "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if token:
            self._headers["Authorization"] = f"token {token}"

    # Anti-Corruption Layer
    @staticmethod
    def _parse_node(node: dict) -> GitHubRepository | None:
        """
        Translate a search result item into a GitHubRepository.

        GitHub sends:             We store as:
          "stargazers_count"  →   stargazers_count
          "owner": {"login"}  →   owner_login
        """
        try:
            return GitHubRepository(
                repo_id          = int(node["id"]),
                name             = node["name"],
                full_name        = node["full_name"],
                description      = node.get("description") or "",
                html_url         = node["html_url"],
                stargazers_count = int(node.get("stargazers_count") or 0),
                owner_login      = node["owner"]["login"],
                topics           = tuple(node.get("topics") or ()),
            )
        except (KeyError, TypeError, ValueError) as exc:
            log.debug("Skipping malformed repository node: %s", exc)
            return None

    async def _search(self, query: str) -> list[GitHubRepository]:
        try:
            response = await self._client.get(
                f"{GITHUB_API_URL}/search/repositories",
                params={"q": query, "sort": "stars", "per_page": PAGE_SIZE},
                headers=self._headers,
                timeout=30.0,
            )
            response.raise_for_status()
            nodes = (response.json() or {}).get("items") or []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            raise ConnectorError(f"query {query!r}", str(exc)) from exc
        if not isinstance(nodes, list):
            raise ConnectorError(f"query {query!r}", "'items' is not a list")

        return [
            repo for node in nodes
            if isinstance(node, dict) and (repo := self._parse_node(node)) is not None
        ]

    async def _readme_excerpt(self, full_name: str) -> str:
        """Best effort: any failure leaves the excerpt empty."""
        try:
            response = await self._client.get(
                f"{GITHUB_API_URL}/repos/{full_name}/readme",
                headers=self._headers,
                timeout=30.0,
            )
            response.raise_for_status()
            encoded = response.json().get("content") or ""
            text = base64.b64decode(encoded).decode("utf-8", errors="replace")
        except (httpx.HTTPError, ValueError, AttributeError, binascii.Error) as exc:
            log.debug("No README for %s: %s", full_name, exc)
            return ""
        return text[:README_LIMIT]

    async def fetch(self, config: CrawlConfig) -> list[GitHubRepository]:
        repos: list[GitHubRepository] = []
        queries = list(config.github_search_queries)

        for index, query in enumerate(queries):
            if index > 0 and self._pacing_secs:
                await asyncio.sleep(self._pacing_secs)
            try:
                found = await self._search(query)
            except ConnectorError as exc:
                log.warning("GitHub search failed, skipping: %s", exc)
                continue

            kept = [r for r in found if r.stargazers_count >= config.min_github_stars]
            for repo in kept:
                excerpt = await self._readme_excerpt(repo.full_name)
                repos.append(repo.with_readme(excerpt) if excerpt else repo)

            log.info("GitHub %r | %d of %d repos at stars >= %d", query, len(kept), len(found), config.min_github_stars)

        return repos

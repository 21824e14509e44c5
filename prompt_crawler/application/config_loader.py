from __future__ import annotations
import json
import logging
from dataclasses import fields, replace
from typing import Any

from prompt_crawler.domain.entities import CrawlConfig
from prompt_crawler.domain.errors import StorageError
from prompt_crawler.domain.interfaces import IPromptStorage

log = logging.getLogger(__name__)


def _decode(raw: Any) -> Any:
    """JSON-decode a stored value, falling back to the raw string."""
    if not isinstance(raw, str):
        # JSONB columns arrive already decoded
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _as_str_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",")]
        return tuple(p for p in parts if p)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValueError(f"expected a list of strings, got {value!r}")


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, float):
        return int(value)
    return int(str(value).strip())


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    return float(str(value).strip())


_COERCERS = {
    "reddit_subreddits":     _as_str_list,
    "github_search_queries": _as_str_list,
    "min_reddit_score":      _as_int,
    "min_github_stars":      _as_int,
    "ai_quality_threshold":  _as_float,
}


class ConfigLoader:
    """
    Reads crawl_config rows and overlays them onto CrawlConfig defaults.

    Never fails the job: a bad value falls back to the default for that
    key only, and an unreadable table yields the defaults for every key.
    """

    def __init__(self, storage: IPromptStorage) -> None:
        self._storage = storage

    def load_config(self) -> CrawlConfig:
        defaults = CrawlConfig()
        try:
            rows = self._storage.fetch_config_rows()
        except StorageError as exc:
            log.warning("Could not read crawl_config, using defaults: %s", exc)
            return defaults

        known = {f.name for f in fields(CrawlConfig)}
        overrides: dict[str, Any] = {}

        for key, raw in rows:
            if key not in known:
                log.debug("Ignoring unknown config key %r", key)
                continue
            try:
                overrides[key] = _COERCERS[key](_decode(raw))
            except (TypeError, ValueError) as exc:
                log.warning("Bad value for config key %r (%s), using default", key, exc)

        config = replace(defaults, **overrides)
        log.info(
            "Config | subreddits=%s | queries=%s | min_score=%d | min_stars=%d | threshold=%.1f",
            list(config.reddit_subreddits),
            list(config.github_search_queries),
            config.min_reddit_score,
            config.min_github_stars,
            config.ai_quality_threshold,
        )
        return config

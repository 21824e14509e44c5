from __future__ import annotations

import json
import logging
import math

import httpx

from prompt_crawler.domain.entities import (
    CandidatePrompt,
    ExtractionResult,
    PromptAnalysis,
    RawItem,
)
from prompt_crawler.domain.errors import ExtractionError
from prompt_crawler.domain.interfaces import IPromptExtractor

log = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL   = "gpt-4o-mini"
TEMPERATURE     = 0.3

SYSTEM_PROMPT = """You are an expert in AI prompts. Analyse the given content and extract the valuable AI prompts it contains.

Tasks:
1. Identify high-quality AI prompts in the content (for ChatGPT, Claude and similar assistants)
2. Score each prompt from 1 to 10
3. Suggest a category for each prompt

Respond with JSON in exactly this format:
{
  "prompts": [
    {
      "title": "prompt title",
      "content": "the complete prompt text",
      "category": "category (e.g. writing, coding, analysis, creative, translation, role-play)",
      "quality": 8.5
    }
  ],
  "analysis": {
    "summary": "summary of the content",
    "relevance": "relevance to prompts, 1-10",
    "language": "language of the content"
  }
}

Scoring rubric:
- 10: professional grade, complete structure, directly usable
- 7-9: high quality, with a clear goal
- 4-6: average quality, needs improvement
- 1-3: low quality, not recommended

If the content contains no valuable prompts, return an empty "prompts" array."""


def _text(value, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip() or default


def parse_extraction(payload: str, quality_threshold: float) -> ExtractionResult:
    """
    Validate the model's JSON reply and keep prompts at or above
    `quality_threshold`.

    Raises ExtractionError when the top-level shape is wrong. Individual
    prompt entries that are malformed are dropped, not fatal.
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise ExtractionError(f"response is not JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ExtractionError("response is not a JSON object")

    raw_prompts  = data.get("prompts") or []
    raw_analysis = data.get("analysis") or {}
    if not isinstance(raw_prompts, list) or not isinstance(raw_analysis, dict):
        raise ExtractionError("unexpected 'prompts' / 'analysis' shape")

    analysis = PromptAnalysis(
        summary   = _text(raw_analysis.get("summary")),
        relevance = _text(raw_analysis.get("relevance")),
        language  = _text(raw_analysis.get("language"), "en"),
    )

    kept: list[CandidatePrompt] = []
    rejected = 0
    for entry in raw_prompts:
        try:
            prompt = CandidatePrompt(
                title    = _text(entry["title"]),
                content  = _text(entry["content"]),
                category = _text(entry.get("category")),
                quality  = float(entry["quality"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError):
            rejected += 1
            continue
        if not prompt.content or math.isnan(prompt.quality) or prompt.quality < quality_threshold:
            rejected += 1
            continue
        kept.append(prompt)

    return ExtractionResult(prompts=tuple(kept), analysis=analysis, rejected=rejected)


class OpenAIExtractor(IPromptExtractor):
    """
    IPromptExtractor backed by an OpenAI-compatible chat completions API.

    Without an API key every item is skipped (None). Network errors,
    error statuses and unparseable replies also yield None, so one bad
    item never fails the job.
    """

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient,
        model: str = DEFAULT_MODEL,
        base_url: str = OPENAI_BASE_URL,
    ) -> None:
        self._api_key  = api_key
        self._client   = client
        self._model    = model
        self._url      = f"{base_url.rstrip('/')}/chat/completions"
        if not api_key:
            log.warning("OPENAI_API_KEY not configured, AI analysis will be skipped")

    def _messages(self, item: RawItem) -> list[dict]:
        user = (
            f"Source type: {item.source_type}\n"
            f"Title: {item.title}\n\n"
            f"Content:\n{item.analysis_text()}"
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user",   "content": user},
        ]

    async def extract(self, item: RawItem, quality_threshold: float) -> ExtractionResult | None:
        if not self._api_key:
            return None

        try:
            response = await self._client.post(
                self._url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type":  "application/json",
                },
                json={
                    "model":           self._model,
                    "messages":        self._messages(item),
                    "temperature":     TEMPERATURE,
                    "response_format": {"type": "json_object"},
                },
                timeout=60.0,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
            result  = parse_extraction(content, quality_threshold)
        except httpx.HTTPError as exc:
            log.warning("AI analysis request failed for %s:%s: %s", item.source_type, item.source_id, exc)
            return None
        except (ValueError, KeyError, IndexError, TypeError, ExtractionError) as exc:
            log.warning("AI analysis unusable for %s:%s: %s", item.source_type, item.source_id, exc)
            return None

        log.debug(
            "AI analysis %s:%s | %d kept | %d below %.1f",
            item.source_type,
            item.source_id,
            len(result.prompts),
            result.rejected,
            quality_threshold,
        )
        return result

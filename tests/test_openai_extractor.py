"""Tests for prompt_crawler/infrastructure/openai_extractor.py."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from prompt_crawler.domain.errors import ExtractionError
from prompt_crawler.infrastructure.openai_extractor import (
    SYSTEM_PROMPT,
    OpenAIExtractor,
    parse_extraction,
)

from conftest import make_post, make_repo


def _reply(payload) -> dict:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


GOOD_PAYLOAD = {
    "prompts": [
        {"title": "Code reviewer", "content": "Act as a senior reviewer…", "category": "coding", "quality": 8.5},
        {"title": "Meh", "content": "write something", "category": "writing", "quality": 4},
        {"title": "Exact", "content": "Translate to French", "category": "translation", "quality": 6},
    ],
    "analysis": {"summary": "Prompt tips", "relevance": "8", "language": "en"},
}


class TestParseExtraction:
    def test_threshold_is_inclusive(self):
        result = parse_extraction(json.dumps(GOOD_PAYLOAD), 6.0)

        assert [p.title for p in result.prompts] == ["Code reviewer", "Exact"]
        assert result.rejected == 1
        assert all(p.quality >= 6.0 for p in result.prompts)

    def test_analysis_fields(self):
        result = parse_extraction(json.dumps(GOOD_PAYLOAD), 0)

        assert result.analysis.summary == "Prompt tips"
        assert result.analysis.relevance == "8"
        assert result.analysis.language == "en"

    def test_empty_prompts_is_valid(self):
        result = parse_extraction(json.dumps({"prompts": [], "analysis": {"summary": "nothing"}}), 6.0)

        assert result.prompts == ()
        assert result.analysis.language == "en"

    def test_string_quality_is_coerced(self):
        payload = {"prompts": [{"title": "t", "content": "c", "category": "x", "quality": "9"}]}

        result = parse_extraction(json.dumps(payload), 6.0)

        assert result.prompts[0].quality == 9.0

    @pytest.mark.parametrize("entry", [
        {"title": "no content", "category": "x", "quality": 9},
        {"title": "bad quality", "content": "c", "quality": "high"},
        {"title": "nan", "content": "c", "quality": "nan"},
        {"title": "blank", "content": "   ", "quality": 9},
        "just a string",
    ])
    def test_malformed_entries_are_dropped(self, entry):
        payload = {"prompts": [entry, {"title": "ok", "content": "c", "quality": 9}]}

        result = parse_extraction(json.dumps(payload), 6.0)

        assert [p.title for p in result.prompts] == ["ok"]
        assert result.rejected == 1

    @pytest.mark.parametrize("payload", [
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"prompts": "none", "analysis": {}}),
        json.dumps({"prompts": [], "analysis": "short"}),
    ])
    def test_wrong_shape_raises(self, payload):
        with pytest.raises(ExtractionError):
            parse_extraction(payload, 6.0)


def _extract(handler, item, api_key="sk-test", threshold=6.0):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await OpenAIExtractor(api_key, client).extract(item, threshold)
    return asyncio.run(go())


class TestOpenAIExtractor:
    def test_request_shape(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_reply(GOOD_PAYLOAD))

        _extract(handler, make_post(title="Great prompt"))

        body = json.loads(seen[0].content)
        assert seen[0].url.path == "/v1/chat/completions"
        assert seen[0].headers["Authorization"] == "Bearer sk-test"
        assert body["model"] == "gpt-4o-mini"
        assert body["temperature"] == 0.3
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert "Source type: reddit" in body["messages"][1]["content"]
        assert "Title: Great prompt" in body["messages"][1]["content"]

    def test_success_applies_threshold(self):
        result = _extract(lambda r: httpx.Response(200, json=_reply(GOOD_PAYLOAD)), make_repo(), threshold=8.0)

        assert [p.title for p in result.prompts] == ["Code reviewer"]

    def test_network_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert _extract(handler, make_post()) is None

    def test_error_status_returns_none(self):
        assert _extract(lambda r: httpx.Response(429, json={"error": "slow down"}), make_post()) is None

    def test_unparseable_content_returns_none(self):
        assert _extract(lambda r: httpx.Response(200, json=_reply("Sure! Here are prompts:")), make_post()) is None

    def test_unexpected_envelope_returns_none(self):
        assert _extract(lambda r: httpx.Response(200, json={"choices": []}), make_post()) is None

    def test_missing_key_skips_without_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=_reply(GOOD_PAYLOAD))

        assert _extract(handler, make_post(), api_key=None) is None
        assert calls == []

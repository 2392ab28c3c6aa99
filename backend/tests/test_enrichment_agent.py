"""Tests for background enrichment analysis."""

import json

import httpx
import pytest

from conftest import FakeLLM
from linkstash.agents.enrichment_agent import (
    EnrichmentAgent,
    clamp_reading_time,
    normalize_category,
    normalize_sentiment,
    resolve_platform,
)
from linkstash.errors import LlmUnavailableError
from linkstash.extraction.platforms import Platform

GOOD_RESPONSE = {
    "summary": "A concise summary.",
    "keyPoints": ["One", "Two", "Three"],
    "suggestedTags": ["Python", "AsyncIO", "python", "  "],
    "category": "technology",
    "sentiment": "positive",
    "readingTimeMinutes": 7,
    "platform": "other",
}


class TestClamping:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(7, 7), ("12", 12), (0, 1), (-3, 1), (500, 60), (4.6, 4), (None, 3), ("soon", 3)],
    )
    def test_reading_time(self, value, expected: int) -> None:
        assert clamp_reading_time(value) == expected

    def test_category(self) -> None:
        assert normalize_category("science") == "Science"
        assert normalize_category("Cooking") == "Other"

    def test_sentiment(self) -> None:
        assert normalize_sentiment("Negative") == "negative"
        assert normalize_sentiment("ecstatic") == "neutral"
        assert normalize_sentiment(None) == "neutral"

    def test_platform_resolution(self) -> None:
        assert resolve_platform("https://youtu.be/dQw4w9WgXcQ", "tiktok") == (Platform.YOUTUBE, None)
        assert resolve_platform("https://example.com/a", "reddit") == (
            Platform.OTHER,
            Platform.REDDIT,
        )
        assert resolve_platform("https://example.com/a", "nonsense") == (Platform.OTHER, None)


class TestEnrich:
    @pytest.mark.asyncio
    async def test_success(self, settings) -> None:
        llm = FakeLLM(json.dumps(GOOD_RESPONSE))
        agent = EnrichmentAgent(llm, settings)

        result = await agent.enrich("Title", "Body text", "https://example.com/a")

        assert result is not None
        assert result.summary == "A concise summary."
        assert result.key_points == ["One", "Two", "Three"]
        assert result.tags == ["python", "asyncio"]
        assert result.category == "Technology"
        assert result.sentiment == "positive"
        assert result.reading_time_minutes == 7
        assert result.platform == Platform.OTHER

        call = llm.calls[0]
        assert call["temperature"] == 0.7
        assert call["max_tokens"] == 1000
        assert call["timeout"] == settings.enrichment_timeout_seconds

    @pytest.mark.asyncio
    async def test_limits_applied(self, settings) -> None:
        response = {
            **GOOD_RESPONSE,
            "summary": "s" * 900,
            "keyPoints": ["p" * 300 for _ in range(8)],
            "suggestedTags": ["a", "b", "c", "d", "e"],
            "readingTimeMinutes": 240,
        }
        agent = EnrichmentAgent(FakeLLM(json.dumps(response)), settings)

        result = await agent.enrich("Title", "Body", "https://example.com/a")

        assert len(result.summary) == 500
        assert len(result.key_points) == 5
        assert all(len(p) == 200 for p in result.key_points)
        assert result.tags == ["a", "b", "c"]
        assert result.reading_time_minutes == 60

    @pytest.mark.asyncio
    async def test_content_capped_in_prompt(self, settings) -> None:
        llm = FakeLLM(json.dumps(GOOD_RESPONSE))
        await EnrichmentAgent(llm, settings).enrich("Title", "z" * 5000, "https://example.com/a")
        assert "z" * 3000 in llm.calls[0]["prompt"]
        assert "z" * 3001 not in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            "not json",
            json.dumps({"summary": "only a summary"}),
            LlmUnavailableError("no key"),
            httpx.ConnectError("offline"),
        ],
    )
    async def test_failures_return_none(self, settings, reply) -> None:
        agent = EnrichmentAgent(FakeLLM(reply), settings)
        assert await agent.enrich("Title", "Body", "https://example.com/a") is None

    @pytest.mark.asyncio
    async def test_missing_inputs_skip_llm(self, settings) -> None:
        llm = FakeLLM(json.dumps(GOOD_RESPONSE))
        agent = EnrichmentAgent(llm, settings)
        assert await agent.enrich("Title", "", "https://example.com/a") is None
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_to_update(self, settings) -> None:
        agent = EnrichmentAgent(FakeLLM(json.dumps(GOOD_RESPONSE)), settings)
        result = await agent.enrich("Title", "Body", "https://example.com/a")

        update = result.to_update()
        assert update.ai_enhanced is True
        assert update.ai_tags == ["python", "asyncio"]
        assert update.ai_category == "Technology"
        assert "platform" not in update.model_dump()

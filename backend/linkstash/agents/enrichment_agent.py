"""Enrichment Agent - structured AI analysis of a saved article.

Best effort by contract: every failure path returns None.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from linkstash.agents.llm import LLMClient, parse_llm_json
from linkstash.config import Settings, get_settings
from linkstash.errors import EnrichmentFailure, LlmError
from linkstash.extraction.platforms import Platform, classify, parse_platform
from linkstash.schemas.article import ArticleEnrichment

logger = logging.getLogger(__name__)

CATEGORIES = (
    "Technology",
    "Science",
    "Business",
    "Health",
    "Politics",
    "Entertainment",
    "Sports",
    "Education",
    "Other",
)
SENTIMENTS = ("positive", "neutral", "negative")

MAX_SUMMARY_CHARS = 500
MAX_KEY_POINTS = 5
MAX_KEY_POINT_CHARS = 200
MAX_CATEGORY_CHARS = 50
DEFAULT_READING_MINUTES = 3


@dataclass
class EnrichmentResult:
    """Validated analysis of one article."""

    summary: str
    key_points: list[str]
    tags: list[str]
    category: str
    sentiment: str
    reading_time_minutes: int
    platform: Platform
    suggested_platform: Platform | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def to_update(self) -> ArticleEnrichment:
        """The AI-only partial update to merge into the stored article."""
        return ArticleEnrichment(
            ai_summary=self.summary,
            ai_key_points=self.key_points,
            ai_tags=self.tags,
            ai_category=self.category,
            ai_sentiment=self.sentiment,
            reading_time_minutes=self.reading_time_minutes,
        )


def clamp_reading_time(value: Any) -> int:
    try:
        minutes = int(float(value))
    except (TypeError, ValueError):
        minutes = DEFAULT_READING_MINUTES
    return max(1, min(60, minutes))


def normalize_category(value: Any) -> str:
    text = str(value).strip()
    for category in CATEGORIES:
        if text.lower() == category.lower():
            return category
    return "Other"


def normalize_sentiment(value: Any) -> str:
    text = str(value).strip().lower() if isinstance(value, str) else ""
    return text if text in SENTIMENTS else "neutral"


def resolve_platform(url: str, suggestion: Any) -> tuple[Platform, Platform | None]:
    """
    URL classification wins when it is unambiguous.

    Returns (platform, suggested_platform); the suggestion is only
    reported when the URL classified as OTHER.
    """
    detected = classify(url)
    if detected != Platform.OTHER:
        return detected, None
    suggested = parse_platform(suggestion)
    return detected, suggested if suggested != Platform.OTHER else None


class EnrichmentAgent:
    """Sends title and content to the LLM for summary, key points, tags and more."""

    ANALYSIS_PROMPT = """You are an expert content analyst. Analyze the following article and provide structured information.

ARTICLE URL: {url}
ARTICLE TITLE: {title}

ARTICLE CONTENT:
{content}

Provide a JSON response with EXACTLY this structure (no markdown, no code blocks, just pure JSON):

{{
  "summary": "A 2-3 sentence concise summary capturing the main idea and key takeaway",
  "keyPoints": ["First major point", "Second major point", "Third major point"],
  "suggestedTags": ["tag1", "tag2", "tag3"],
  "category": "{categories}",
  "sentiment": "positive|neutral|negative",
  "readingTimeMinutes": 3,
  "platform": "youtube|tiktok|instagram|twitter|facebook|reddit|other"
}}

GUIDELINES:
- Summary: clear and informative, 2-3 sentences max.
- Key Points: 3-5 of the most important points.
- Tags: at most {max_tags} specific, searchable, lowercase topic tags.
- Category: the SINGLE most relevant category from the list.
- Sentiment: positive = encouraging/optimistic, neutral = factual, negative = critical/cautionary.
- Reading Time: estimate in whole minutes.
- Platform: the source platform judging by URL and content, or "other" if uncertain.

Return ONLY valid JSON. No additional text."""

    SYSTEM_PROMPT = "You are a helpful content analysis assistant. Always respond with valid JSON."

    MAX_CONTENT_CHARS = 3000
    TEMPERATURE = 0.7
    MAX_TOKENS = 1000

    def __init__(self, llm: LLMClient, settings: Settings | None = None):
        self.llm = llm
        self.settings = settings or get_settings()

    def build_prompt(self, title: str, content: str, url: str) -> str:
        return self.ANALYSIS_PROMPT.format(
            url=url,
            title=title,
            content=content[: self.MAX_CONTENT_CHARS],
            categories="|".join(CATEGORIES),
            max_tags=self.settings.enrichment_max_tags,
        )

    def parse_response(self, response_text: str, url: str) -> EnrichmentResult:
        """
        Validate and clamp the model's analysis.

        Raises:
            LlmParseError: If the response holds no JSON object.
            EnrichmentFailure: If required fields are missing.
        """
        data = parse_llm_json(response_text)

        required = ("summary", "keyPoints", "suggestedTags", "category")
        missing = [key for key in required if not data.get(key)]
        if missing:
            raise EnrichmentFailure(f"Missing required fields: {', '.join(missing)}")

        key_points = data["keyPoints"] if isinstance(data["keyPoints"], list) else []
        raw_tags = data["suggestedTags"] if isinstance(data["suggestedTags"], list) else []

        tags: list[str] = []
        for tag in raw_tags:
            lower = str(tag).strip().lower()
            if lower and lower not in tags:
                tags.append(lower)

        platform, suggested = resolve_platform(url, data.get("platform"))

        return EnrichmentResult(
            summary=str(data["summary"]).strip()[:MAX_SUMMARY_CHARS],
            key_points=[
                str(point).strip()[:MAX_KEY_POINT_CHARS]
                for point in key_points[:MAX_KEY_POINTS]
                if str(point).strip()
            ],
            tags=tags[: self.settings.enrichment_max_tags],
            category=normalize_category(data["category"])[:MAX_CATEGORY_CHARS],
            sentiment=normalize_sentiment(data.get("sentiment")),
            reading_time_minutes=clamp_reading_time(data.get("readingTimeMinutes")),
            platform=platform,
            suggested_platform=suggested,
            raw=data,
        )

    async def enrich(self, title: str, content: str, url: str) -> EnrichmentResult | None:
        """Analyze an article. Returns None instead of raising on any failure."""
        if not title or not content or not url:
            logger.info("Skipping enrichment: title, content and url are required")
            return None

        try:
            response_text = await self.llm.complete(
                self.SYSTEM_PROMPT,
                self.build_prompt(title, content, url),
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                timeout=self.settings.enrichment_timeout_seconds,
            )
            result = self.parse_response(response_text, url)
        except (LlmError, EnrichmentFailure) as e:
            logger.warning("Enrichment failed for %s: %s", url, e)
            return None
        except Exception:
            logger.exception("Unexpected enrichment error for %s", url)
            return None

        logger.info("Article enhanced: category=%s platform=%s", result.category, result.platform.value)
        return result

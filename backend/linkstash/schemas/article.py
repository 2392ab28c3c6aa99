"""Article schemas for API request/response validation and partial updates."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from linkstash.extraction.platforms import Platform

Sentiment = Literal["positive", "neutral", "negative"]


class ArticleCreate(BaseModel):
    """A link to save. Scheme is optional; https:// is assumed."""

    url: str = Field(..., min_length=1, max_length=2048)


class ArticleUpdate(BaseModel):
    """Fields a user may change. Anything left unset is untouched."""

    is_unread: bool | None = None
    is_favorite: bool | None = None
    is_bookmarked: bool | None = None
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        seen: list[str] = []
        for tag in value:
            lower = tag.strip().lower()
            if lower and lower not in seen:
                seen.append(lower)
        return seen


class ArticleTagsAdd(BaseModel):
    tags: list[str] = Field(..., min_length=1)


class ArticleEnrichment(BaseModel):
    """
    Partial update produced by background enrichment.

    Only AI-owned fields; applying it twice gives the same record.
    """

    ai_enhanced: Literal[True] = True
    ai_summary: str = Field(..., max_length=500)
    ai_key_points: list[str] = Field(default_factory=list, max_length=5)
    ai_tags: list[str] = Field(default_factory=list)
    ai_category: str = Field(..., max_length=50)
    ai_sentiment: Sentiment = "neutral"
    reading_time_minutes: int = Field(..., ge=1, le=60)


class ArticleResponse(BaseModel):
    """Schema for article responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    title: str
    content: str
    author: str | None = None
    publish_date: datetime | None = None
    summary: str | None = None
    image_url: str | None = None
    saved_at: datetime
    platform: Platform
    platform_color: str
    has_video: bool
    tags: list[str]
    is_unread: bool
    is_favorite: bool
    is_bookmarked: bool
    ai_enhanced: bool | None = None
    ai_summary: str | None = None
    ai_key_points: list[str] | None = None
    ai_tags: list[str] | None = None
    ai_category: str | None = None
    ai_sentiment: str | None = None
    reading_time_minutes: int | None = None


class ArticleListResponse(BaseModel):
    """Schema for paginated article list response."""

    articles: list[ArticleResponse]
    total: int
    limit: int | None
    offset: int


class TagStat(BaseModel):
    name: str
    count: int


class TagStatsResponse(BaseModel):
    tags: list[TagStat]

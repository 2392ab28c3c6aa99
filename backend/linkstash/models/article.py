"""Article model - one row per saved link."""

from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from linkstash.extraction.platforms import Platform


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Article(SQLModel, table=True):
    """
    A saved link and everything extracted from it.

    id and url never change after creation. platform is set once from URL
    classification and platform_color follows it. AI fields stay empty
    until background enrichment succeeds.
    """

    __tablename__ = "articles"

    id: str = Field(primary_key=True, max_length=64)
    url: str = Field(max_length=2048, unique=True, index=True)

    # Content
    title: str
    content: str = ""
    author: str | None = Field(default="Unknown")
    publish_date: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    summary: str | None = None
    image_url: str | None = Field(default=None, max_length=2048)
    saved_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )

    # Platform
    platform: Platform = Field(default=Platform.OTHER)
    platform_color: str = Field(default="#6B7280", max_length=16)
    has_video: bool = False

    # User state
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_unread: bool = True
    is_favorite: bool = False
    is_bookmarked: bool = False

    # AI enrichment
    ai_enhanced: bool | None = None
    ai_summary: str | None = None
    ai_key_points: list[str] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    ai_tags: list[str] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    ai_category: str | None = Field(default=None, max_length=50)
    ai_sentiment: str | None = Field(default=None, max_length=16)
    reading_time_minutes: int | None = None

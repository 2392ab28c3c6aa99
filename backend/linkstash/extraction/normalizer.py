"""Turns resolver output into the final title/content/description for an article."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from linkstash.agents.cleanup_agent import CleanupAgent
from linkstash.extraction import social_text
from linkstash.extraction.platforms import (
    VIDEO_PLATFORMS,
    Platform,
    content_type_for,
    get_platform_config,
    seed_tags,
)
from linkstash.extraction.resolver import Metadata
from linkstash.extraction.urls import extract_username, title_from_url, truncate_words

logger = logging.getLogger(__name__)

MIN_VIDEO_CONTENT_CHARS = 100
MIN_CONTENT_CHARS = 50

_BAD_TITLE_MARKERS = ("login", "log in", "sign up")

TOPIC_TAG_DENYLIST = (
    "youtube", "instagram", "tiktok", "twitter", "facebook", "reddit",
    "linkedin", "snapchat", "pinterest", "chrome", "safari", "web",
    "video", "reel", "post", "tweet", "article", "link", "content",
    "social", "media", "platform", "app", "website", "online",
)


@dataclass
class NormalizedContent:
    """Everything the builder needs apart from the URL and platform."""

    title: str
    content: str = ""
    description: str = ""
    author: str = "Unknown"
    publish_date: datetime | None = None
    image_url: str = ""
    has_video: bool = False
    tags: list[str] = field(default_factory=list)


def filter_topic_tags(tags: list[str]) -> list[str]:
    """Drop platform names and generic terms, keeping topic tags."""
    kept = []
    for tag in tags:
        lower = tag.lower().strip()
        if lower and not any(term in lower for term in TOPIC_TAG_DENYLIST):
            kept.append(lower)
    return kept


def merge_tags(existing: list[str], incoming: list[str]) -> list[str]:
    """Ordered, lowercase union of two tag lists."""
    merged: list[str] = []
    for tag in [*existing, *incoming]:
        lower = tag.lower().strip()
        if lower and lower not in merged:
            merged.append(lower)
    return merged


def is_content_minimal(content: str, platform: Platform) -> bool:
    """Content this short means extraction silently failed."""
    threshold = MIN_VIDEO_CONTENT_CHARS if platform in VIDEO_PLATFORMS else MIN_CONTENT_CHARS
    return not content or len(content.strip()) < threshold


def usable_text(value: str) -> str:
    """Reject login walls and empty strings served in place of real metadata."""
    cleaned = (value or "").strip()
    if not cleaned or any(marker in cleaned.lower() for marker in _BAD_TITLE_MARKERS):
        return ""
    return cleaned


def parse_publish_date(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def minimal_title(url: str, platform: Platform) -> str:
    """'Instagram Reel by @user' or just 'Instagram Reel'."""
    name = get_platform_config(platform).name
    content_type = content_type_for(url, platform)
    username = extract_username(url, platform)
    if username:
        return f"{name} {content_type} by @{username}"
    return f"{name} {content_type}"


def minimal_description(url: str, platform: Platform) -> str:
    name = get_platform_config(platform).name
    return f"View this {content_type_for(url, platform).lower()} on {name}"


def _tidy_reddit_title(title: str) -> str:
    if "_" not in title:
        return title
    title = title.replace("_", " ")
    return title[:1].upper() + title[1:]


def _social_has_video(url: str, platform: Platform) -> bool:
    if platform == Platform.REDDIT:
        return False
    return content_type_for(url, platform) != "Post"


class ContentNormalizer:
    """Applies the per-platform normalization policy."""

    def __init__(self, cleanup: CleanupAgent):
        self.cleanup = cleanup

    async def normalize(self, url: str, platform: Platform, metadata: Metadata) -> NormalizedContent:
        if platform == Platform.TWITTER:
            return self.normalize_microblog(url, metadata)
        if platform in (Platform.YOUTUBE, Platform.TIKTOK, Platform.INSTAGRAM, Platform.REDDIT):
            return await self._normalize_social(url, platform, metadata)
        return await self._normalize_article(url, platform, metadata)

    def normalize_microblog(self, url: str, metadata: Metadata) -> NormalizedContent:
        """Post text comes verbatim from the reader output. No LLM involved."""
        post_text = social_text.post_text_from_title(metadata.title)
        if not post_text:
            post_text = social_text.extract_post_text(metadata.content)

        username = extract_username(url, Platform.TWITTER) or metadata.author
        if post_text:
            title = social_text.truncate_title(post_text)
        else:
            title = f"Tweet by @{username}" if username else "Tweet"

        lowered = metadata.content.lower()
        logger.info("Microblog extraction: title=%r username=%s", title, username)

        return NormalizedContent(
            title=title,
            content=metadata.content or post_text,
            description=post_text,
            author=username or "Unknown",
            publish_date=parse_publish_date(metadata.publish_date),
            image_url=metadata.image,
            has_video="video" in lowered or "watch" in lowered,
            tags=seed_tags(url, Platform.TWITTER),
        )

    async def _normalize_social(
        self, url: str, platform: Platform, metadata: Metadata
    ) -> NormalizedContent:
        raw = metadata.description or metadata.content
        meta_title = usable_text(metadata.title)
        meta_description = usable_text(metadata.description)
        username = extract_username(url, platform)

        if is_content_minimal(raw, platform):
            logger.info("Content too minimal for %s, using metadata/URL fallback", platform.value)
            title = meta_title or minimal_title(url, platform)
            description = meta_description or minimal_description(url, platform)
        else:
            cleaned = await self.cleanup.clean(platform, self._cleanup_input(metadata), url)
            if cleaned:
                title = cleaned.title
                description = cleaned.description or meta_description or truncate_words(raw)
            else:
                title = meta_title or title_from_url(url)
                description = meta_description or truncate_words(raw)

        if platform == Platform.REDDIT:
            title = _tidy_reddit_title(title)

        return NormalizedContent(
            title=title,
            content=raw or description,
            description=description,
            author=metadata.author or username or "Unknown",
            publish_date=parse_publish_date(metadata.publish_date),
            image_url=metadata.image,
            has_video=_social_has_video(url, platform),
            tags=seed_tags(url, platform),
        )

    async def _normalize_article(
        self, url: str, platform: Platform, metadata: Metadata
    ) -> NormalizedContent:
        content = metadata.content or metadata.description
        has_video = False

        if is_content_minimal(content, platform):
            title = usable_text(metadata.title) or title_from_url(url)
            description = metadata.description or truncate_words(content)
        else:
            cleaned = await self.cleanup.clean(platform, content, url)
            if cleaned:
                title = cleaned.title
                description = cleaned.description or metadata.description or truncate_words(content)
                has_video = bool(cleaned.has_video)
            else:
                title = usable_text(metadata.title) or title_from_url(url)
                description = metadata.description or truncate_words(content)

        return NormalizedContent(
            title=title,
            content=content,
            description=description,
            author=metadata.author or "Unknown",
            publish_date=parse_publish_date(metadata.publish_date),
            image_url=metadata.image,
            has_video=has_video,
            tags=seed_tags(url, platform),
        )

    @staticmethod
    def _cleanup_input(metadata: Metadata) -> str:
        parts = [metadata.title, metadata.description, metadata.content]
        return "\n\n".join(p for p in parts if p)

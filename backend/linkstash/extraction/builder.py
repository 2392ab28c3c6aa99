"""Assembles the final Article from normalized content."""

import logging
import secrets
import string
import time
from datetime import UTC, datetime

from linkstash.extraction.normalizer import NormalizedContent, merge_tags
from linkstash.extraction.platforms import Platform, platform_color
from linkstash.extraction.urls import hostname, video_thumbnail_url
from linkstash.models.article import Article

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id() -> str:
    """Timestamp plus random suffix, e.g. '1718822400000_k3j9x0a2b'."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}_{suffix}"


def resolve_title(title: str, article_id: str, url: str) -> str:
    """Never let the title be empty, equal the id, or contain it."""
    cleaned = (title or "").strip()
    if not cleaned or cleaned == article_id or article_id in cleaned:
        logger.warning("Title was invalid, using hostname fallback")
        return f"Article from {hostname(url) or url}"
    return cleaned


def resolve_image(image_url: str, url: str, platform: Platform) -> str | None:
    """Extracted image, else a platform thumbnail template, else None."""
    if image_url:
        return image_url
    return video_thumbnail_url(url, platform)


def build_article(
    url: str,
    platform: Platform,
    content: NormalizedContent,
    *,
    article_id: str | None = None,
    saved_at: datetime | None = None,
) -> Article:
    """
    Build an unsaved Article.

    No I/O. Identical inputs give identical articles apart from the
    generated id (and saved_at, unless supplied).
    """
    article_id = article_id or generate_id()
    saved_at = saved_at or datetime.now(UTC)

    return Article(
        id=article_id,
        url=url,
        title=resolve_title(content.title, article_id, url),
        content=content.content,
        author=content.author or "Unknown",
        publish_date=content.publish_date or saved_at,
        summary=content.description or None,
        image_url=resolve_image(content.image_url, url, platform),
        saved_at=saved_at,
        platform=platform,
        platform_color=platform_color(platform),
        tags=merge_tags([], content.tags),
        has_video=content.has_video,
        is_unread=True,
    )

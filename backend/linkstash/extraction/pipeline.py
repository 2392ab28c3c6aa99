"""Turns a raw link into an unsaved Article."""

import logging
from datetime import datetime

from linkstash.extraction.builder import build_article
from linkstash.extraction.normalizer import ContentNormalizer
from linkstash.extraction.platforms import classify
from linkstash.extraction.resolver import MetadataResolver
from linkstash.extraction.urls import validate_url
from linkstash.models.article import Article

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """validate -> classify -> resolve -> normalize -> build."""

    def __init__(self, resolver: MetadataResolver, normalizer: ContentNormalizer):
        self.resolver = resolver
        self.normalizer = normalizer

    async def extract(self, raw_url: str, *, saved_at: datetime | None = None) -> Article:
        """
        Extract a link into an Article ready to store.

        Raises:
            InvalidUrlError: If the input is not a URL.
            NetworkError: If every upstream strategy failed at the transport level.
        """
        url = validate_url(raw_url)
        platform = classify(url)
        logger.info("Extracting %s as %s", url, platform.value)

        metadata = await self.resolver.resolve(url, platform)
        content = await self.normalizer.normalize(url, platform, metadata)
        article = build_article(url, platform, content, saved_at=saved_at)

        logger.info("Extracted %r from %s", article.title, metadata.source or "url")
        return article

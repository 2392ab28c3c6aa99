"""Article workflow: save a link, enrich it in the background, manage the library."""

import asyncio
import logging

from linkstash.agents.enrichment_agent import EnrichmentAgent
from linkstash.config import Settings, get_settings
from linkstash.errors import ArticleNotFoundError
from linkstash.extraction.normalizer import filter_topic_tags, merge_tags
from linkstash.extraction.pipeline import ExtractionPipeline
from linkstash.extraction.platforms import Platform
from linkstash.models.article import Article
from linkstash.schemas.article import ArticleUpdate
from linkstash.services.article_store import ArticleStore

logger = logging.getLogger(__name__)


class ArticleService:
    """
    Coordinates extraction, storage and enrichment.

    Saving awaits extraction and storage only. Enrichment runs as a
    detached task whose result is merged by id later, or never.
    """

    def __init__(
        self,
        pipeline: ExtractionPipeline,
        store: ArticleStore,
        enricher: EnrichmentAgent,
        settings: Settings | None = None,
    ):
        self.pipeline = pipeline
        self.store = store
        self.enricher = enricher
        self.settings = settings or get_settings()
        self._background: set[asyncio.Task] = set()

    async def save_link(self, raw_url: str) -> Article:
        """
        Extract and store a link, then schedule enrichment.

        Raises:
            InvalidUrlError: If the input is not a URL.
            NetworkError: If the link could not be fetched at all.
            DuplicateArticleError: If the link is already saved.
        """
        article = await self.pipeline.extract(raw_url)
        saved = await self.store.save(article)

        if self.settings.enrichment_enabled:
            self._schedule(self.enrich(saved))
        return saved

    def _schedule(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def enrich(self, article: Article) -> Article | None:
        """Run enrichment for a stored article. Never raises."""
        try:
            result = await self.enricher.enrich(article.title, article.content, article.url)
            if result is None:
                return None
            if result.suggested_platform is not None:
                logger.info(
                    "Enricher suggests %s for %s", result.suggested_platform.value, article.id
                )
            return await self.store.apply_enrichment(article.id, result.to_update())
        except Exception:
            logger.exception("Background enrichment failed for %s", article.id)
            return None

    async def wait_for_background(self) -> None:
        """Wait for outstanding enrichment tasks."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def get(self, article_id: str) -> Article:
        article = await self.store.get(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        return article

    async def list_articles(
        self,
        *,
        platform: Platform | None = None,
        tag: str | None = None,
        is_unread: bool | None = None,
        is_favorite: bool | None = None,
        is_bookmarked: bool | None = None,
        query: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Article]:
        return await self.store.list_articles(
            platform=platform,
            tag=tag,
            is_unread=is_unread,
            is_favorite=is_favorite,
            is_bookmarked=is_bookmarked,
            query=query,
            limit=limit,
            offset=offset,
        )

    async def update(self, article_id: str, changes: ArticleUpdate) -> Article:
        article = await self.store.update(article_id, changes)
        if article is None:
            raise ArticleNotFoundError(article_id)
        return article

    async def add_tags(self, article_id: str, tags: list[str]) -> Article:
        """Merge tags in the store's own read-modify-write, then return the stored row."""
        if not await self.store.add_tags([article_id], tags):
            raise ArticleNotFoundError(article_id)
        return await self.get(article_id)

    async def adopt_ai_tags(self, article_id: str) -> Article:
        """Merge the enricher's topic tags into the user's tags, minus generic ones."""
        article = await self.get(article_id)
        topic_tags = filter_topic_tags(article.ai_tags or [])
        if not topic_tags:
            return article
        return await self.update(
            article_id, ArticleUpdate(tags=merge_tags(article.tags, topic_tags))
        )

    async def delete(self, article_id: str) -> None:
        if not await self.store.delete(article_id):
            raise ArticleNotFoundError(article_id)

    async def tag_stats(self) -> list[tuple[str, int]]:
        return await self.store.tag_stats()

    async def count(self) -> int:
        return await self.store.count()

"""Article storage: the storage port and its SQLModel implementation."""

import logging
from collections import Counter
from typing import Protocol

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from linkstash.errors import DuplicateArticleError
from linkstash.extraction.normalizer import merge_tags
from linkstash.extraction.platforms import Platform
from linkstash.models.article import Article
from linkstash.schemas.article import ArticleEnrichment, ArticleUpdate

logger = logging.getLogger(__name__)


class ArticleStore(Protocol):
    """Persisted collection of articles."""

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
    ) -> list[Article]: ...

    async def get(self, article_id: str) -> Article | None: ...

    async def save(self, article: Article) -> Article: ...

    async def update(self, article_id: str, changes: ArticleUpdate) -> Article | None: ...

    async def apply_enrichment(
        self, article_id: str, enrichment: ArticleEnrichment
    ) -> Article | None: ...

    async def add_tags(self, article_ids: list[str], tags: list[str]) -> int: ...

    async def delete(self, article_id: str) -> bool: ...

    async def tag_stats(self) -> list[tuple[str, int]]: ...

    async def count(self) -> int: ...


def _same_article(article: Article):
    return or_(Article.id == article.id, Article.url == article.url)


def _duplicate(article: Article, existing_id: str | None) -> DuplicateArticleError:
    if existing_id == article.id:
        return DuplicateArticleError("Article with this ID already saved", existing_id=existing_id)
    if existing_id is None:
        return DuplicateArticleError("Article from this URL already saved")
    return DuplicateArticleError(
        f"Article from this URL already saved (ID: {existing_id})", existing_id=existing_id
    )


class SqlArticleStore:
    """
    One row per article with a unique url index.

    Writes touch a single row, so concurrent saves of different links
    cannot lose each other, and a racing save of the same link fails on
    the unique constraint instead of overwriting.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

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
        """List articles newest first, with optional filters."""
        statement = select(Article)

        if platform is not None:
            statement = statement.where(Article.platform == platform)
        if is_unread is not None:
            statement = statement.where(Article.is_unread == is_unread)
        if is_favorite is not None:
            statement = statement.where(Article.is_favorite == is_favorite)
        if is_bookmarked is not None:
            statement = statement.where(Article.is_bookmarked == is_bookmarked)
        if query:
            statement = statement.where(
                or_(
                    Article.title.icontains(query, autoescape=True),
                    Article.content.icontains(query, autoescape=True),
                )
            )

        statement = statement.order_by(Article.saved_at.desc(), Article.id.desc())

        # Tags live in a JSON column, so tag filtering happens after the query
        if tag is None:
            statement = statement.offset(offset)
            if limit is not None:
                statement = statement.limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(statement)
            articles = list(result.scalars().all())

        if tag is not None:
            wanted = tag.strip().lower()
            articles = [a for a in articles if wanted in (a.tags or [])]
            end = None if limit is None else offset + limit
            articles = articles[offset:end]

        return articles

    async def get(self, article_id: str) -> Article | None:
        async with self.session_factory() as session:
            return await session.get(Article, article_id)

    async def save(self, article: Article) -> Article:
        """
        Insert a new article.

        Raises:
            DuplicateArticleError: If the url or id is already stored.
        """
        async with self.session_factory() as session:
            existing = await self._find_existing(session, article)
            if existing is not None:
                raise _duplicate(article, existing.id)

            session.add(article)
            try:
                await session.commit()
            except IntegrityError as e:
                # Lost a race with a concurrent insert of the same url or id
                await session.rollback()
                result = await session.execute(select(Article.id).where(_same_article(article)))
                raise _duplicate(article, result.scalars().first()) from e

        logger.info("Article saved: %s (%s)", article.id, article.url)
        return article

    async def _find_existing(self, session: AsyncSession, article: Article) -> Article | None:
        result = await session.execute(select(Article).where(_same_article(article)))
        return result.scalars().first()

    async def update(self, article_id: str, changes: ArticleUpdate) -> Article | None:
        """Apply user-owned changes. Returns None when the id is unknown."""
        values = changes.model_dump(exclude_unset=True, exclude_none=True)

        async with self.session_factory() as session:
            article = await session.get(Article, article_id)
            if article is None:
                return None
            for key, value in values.items():
                setattr(article, key, list(value) if isinstance(value, list) else value)
            session.add(article)
            await session.commit()

        logger.info("Article updated: %s fields=%s", article_id, sorted(values))
        return article

    async def apply_enrichment(
        self, article_id: str, enrichment: ArticleEnrichment
    ) -> Article | None:
        """
        Set AI fields only. Idempotent; a deleted article is a no-op.
        """
        async with self.session_factory() as session:
            article = await session.get(Article, article_id)
            if article is None:
                logger.info("Article %s gone before enrichment landed", article_id)
                return None
            for key, value in enrichment.model_dump().items():
                setattr(article, key, list(value) if isinstance(value, list) else value)
            session.add(article)
            await session.commit()

        logger.info("Article enriched: %s", article_id)
        return article

    async def add_tags(self, article_ids: list[str], tags: list[str]) -> int:
        """Merge tags into several articles without duplicates."""
        if not article_ids:
            return 0

        async with self.session_factory() as session:
            # Row locks where the backend has them so concurrent merges serialize
            result = await session.execute(
                select(Article).where(Article.id.in_(article_ids)).with_for_update()
            )
            articles = list(result.scalars().all())
            for article in articles:
                article.tags = merge_tags(article.tags or [], tags)
                session.add(article)
            await session.commit()

        logger.info("Tags added to %d articles", len(articles))
        return len(articles)

    async def delete(self, article_id: str) -> bool:
        async with self.session_factory() as session:
            article = await session.get(Article, article_id)
            if article is None:
                return False
            await session.delete(article)
            await session.commit()

        logger.info("Article deleted: %s", article_id)
        return True

    async def tag_stats(self) -> list[tuple[str, int]]:
        """Tag name -> article count, most used first."""
        async with self.session_factory() as session:
            result = await session.execute(select(Article.tags))
            counts: Counter[str] = Counter()
            for tags in result.scalars().all():
                counts.update(tags or [])
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    async def count(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(Article))
            return int(result.scalar_one())

"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkstash import __version__
from linkstash.agents.cleanup_agent import CleanupAgent
from linkstash.agents.enrichment_agent import EnrichmentAgent
from linkstash.agents.llm import get_llm_client
from linkstash.api.v1.router import api_router
from linkstash.config import Settings, get_settings
from linkstash.db import create_engine, create_session_factory, init_db
from linkstash.extraction.normalizer import ContentNormalizer
from linkstash.extraction.pipeline import ExtractionPipeline
from linkstash.extraction.resolver import MetadataResolver
from linkstash.services.article_service import ArticleService
from linkstash.services.article_store import SqlArticleStore
from linkstash.services.credentials import MemorySecretStore, StoredApiKeyProvider

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": settings.user_agent},
        timeout=settings.reader_timeout_seconds,
    )


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    A preconfigured http_client replaces the default one, which lets
    tests route every upstream call through a mock transport.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Wire the pipeline, storage and agents onto app.state."""
        logger.info("Starting %s in %s mode", settings.app_name, settings.environment)

        http = http_client or build_http_client(settings)
        engine = create_engine(settings.database_url, echo=settings.debug)
        await init_db(engine)
        logger.info("Database tables initialized")

        key_provider = StoredApiKeyProvider(MemorySecretStore(), settings)
        llm = get_llm_client(http, key_provider, settings)
        pipeline = ExtractionPipeline(
            MetadataResolver(http, settings),
            ContentNormalizer(CleanupAgent(llm)),
        )
        store = SqlArticleStore(create_session_factory(engine))

        app.state.settings = settings
        app.state.key_provider = key_provider
        app.state.llm = llm
        app.state.article_service = ArticleService(
            pipeline, store, EnrichmentAgent(llm, settings), settings
        )

        yield

        logger.info("Shutting down")
        await llm.aclose()
        if http_client is None:
            await http.aclose()
        await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Save links from social platforms and the web as clean, AI-enriched articles",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    return app


app = create_app()

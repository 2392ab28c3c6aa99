"""FastAPI dependencies resolved from application state."""

from fastapi import Request

from linkstash.agents.llm import LLMClient
from linkstash.services.article_service import ArticleService
from linkstash.services.credentials import StoredApiKeyProvider


def get_article_service(request: Request) -> ArticleService:
    return request.app.state.article_service


def get_key_provider(request: Request) -> StoredApiKeyProvider:
    return request.app.state.key_provider


def get_llm(request: Request) -> LLMClient:
    return request.app.state.llm

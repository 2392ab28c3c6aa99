"""Shared fixtures: settings, in-memory storage, stubbed upstreams and LLM."""

from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio

from linkstash.config import Settings
from linkstash.db import create_engine, create_session_factory, init_db
from linkstash.services.article_store import SqlArticleStore

IN_MEMORY_DB = "sqlite+aiosqlite://"


class FakeLLM:
    """Records every prompt and replies with canned text (or raises)."""

    def __init__(self, reply: str | Exception = ""):
        self.reply = reply
        self.calls: list[dict] = []

    async def complete(self, system, prompt, *, temperature, max_tokens, timeout=None):
        self.calls.append(
            {
                "system": system,
                "prompt": prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "timeout": timeout,
            }
        )
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply

    async def aclose(self):
        pass


def stub_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """An httpx client whose every request goes to `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url=IN_MEMORY_DB,
        openai_api_key="",
        anthropic_api_key="",
        gemini_api_key="",
        reader_api_key="",
        llm_provider="openai",
    )


@pytest_asyncio.fixture
async def store():
    engine = create_engine(IN_MEMORY_DB)
    await init_db(engine)
    try:
        yield SqlArticleStore(create_session_factory(engine))
    finally:
        await engine.dispose()

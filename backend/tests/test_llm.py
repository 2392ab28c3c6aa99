"""Tests for LLM response parsing, the chat-completions client and the connection check."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from conftest import FakeLLM, stub_client
from linkstash.agents.llm import (
    AnthropicClient,
    ChatCompletionsClient,
    GeminiClient,
    check_connection,
    get_llm_client,
    parse_llm_json,
)
from linkstash.errors import LlmParseError, LlmUnavailableError
from linkstash.services.credentials import MemorySecretStore, StoredApiKeyProvider


class TestParseLlmJson:
    def test_bare_json(self) -> None:
        assert parse_llm_json('{"a": 1}') == {"a": 1}

    def test_code_fence(self) -> None:
        assert parse_llm_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_surrounding_prose(self) -> None:
        assert parse_llm_json('Sure! Here you go: {"a": "b"} Hope it helps.') == {"a": "b"}

    def test_control_characters(self) -> None:
        assert parse_llm_json('{"a": "line\u0001break"}') == {"a": "line break"}

    @pytest.mark.parametrize("text", ["", "no json here", "{not valid}", "[1, 2]"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(LlmParseError):
            parse_llm_json(text)


class TestChatCompletionsClient:
    @pytest.mark.asyncio
    async def test_sends_request_and_reads_content(self, settings) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "hello"}}]})

        keys = StoredApiKeyProvider(MemorySecretStore(), settings)
        await keys.save_user_key("sk-test")

        async with stub_client(handler) as http:
            client = ChatCompletionsClient(http, keys, settings)
            text = await client.complete("sys", "prompt", temperature=0.3, max_tokens=50)

        assert text == "hello"
        request = captured[0]
        assert str(request.url) == settings.llm_endpoint
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == settings.llm_model
        assert body["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "prompt"},
        ]
        assert body["temperature"] == 0.3
        assert body["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_missing_key(self, settings) -> None:
        keys = StoredApiKeyProvider(MemorySecretStore(), settings)
        async with stub_client(lambda request: httpx.Response(200)) as http:
            client = ChatCompletionsClient(http, keys, settings)
            with pytest.raises(LlmUnavailableError):
                await client.complete("", "p", temperature=0.1, max_tokens=5)

    @pytest.mark.asyncio
    async def test_http_error_raised(self, settings) -> None:
        keys = StoredApiKeyProvider(MemorySecretStore(), settings)
        await keys.save_user_key("sk-bad")
        async with stub_client(lambda request: httpx.Response(401, json={})) as http:
            client = ChatCompletionsClient(http, keys, settings)
            with pytest.raises(httpx.HTTPStatusError):
                await client.complete("", "p", temperature=0.1, max_tokens=5)


class TestCheckConnection:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        assert await check_connection(FakeLLM("OK")) == (True, "AI connection successful")

    @pytest.mark.asyncio
    async def test_no_key(self) -> None:
        result = await check_connection(FakeLLM(LlmUnavailableError("missing")))
        assert result == (False, "No API key configured")

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        result = await check_connection(FakeLLM(httpx.ReadTimeout("slow")))
        assert result == (False, "API request timed out")

    @pytest.mark.asyncio
    async def test_invalid_key(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = httpx.HTTPStatusError(
            "unauthorized", request=request, response=httpx.Response(401, request=request)
        )
        assert await check_connection(FakeLLM(error)) == (False, "Invalid API key")

    @pytest.mark.asyncio
    async def test_other_failure(self) -> None:
        success, message = await check_connection(FakeLLM(RuntimeError("boom")))
        assert not success
        assert message == "Connection failed: boom"


class TestProviderSelection:
    @pytest.mark.parametrize(
        ("provider", "expected"),
        [
            ("openai", ChatCompletionsClient),
            ("anthropic", AnthropicClient),
            ("gemini", GeminiClient),
        ],
    )
    def test_get_llm_client(self, settings, provider: str, expected: type) -> None:
        settings.llm_provider = provider
        keys = StoredApiKeyProvider(MemorySecretStore(), settings)
        client = get_llm_client(httpx.AsyncClient(), keys, settings)
        assert isinstance(client, expected)


def fake_anthropic_sdk(*texts: str) -> MagicMock:
    """A stand-in AsyncAnthropic instance whose messages.create returns `texts` as blocks."""
    sdk = MagicMock()
    blocks = [SimpleNamespace(type="text", text=text) for text in texts]
    blocks.insert(1, SimpleNamespace(type="tool_use", text="ignored"))
    sdk.messages.create = AsyncMock(return_value=SimpleNamespace(content=blocks))
    sdk.close = AsyncMock()
    return sdk


def fake_gemini_sdk(text: str | None) -> MagicMock:
    sdk = MagicMock()
    sdk.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text=text))
    sdk.aio.aclose = AsyncMock()
    return sdk


async def keyed_provider(settings, api_key: str = "sk-user") -> StoredApiKeyProvider:
    keys = StoredApiKeyProvider(MemorySecretStore(), settings)
    await keys.save_user_key(api_key)
    return keys


class TestAnthropicClient:
    @pytest.mark.asyncio
    async def test_complete(self, settings) -> None:
        settings.llm_provider = "anthropic"
        keys = await keyed_provider(settings)
        sdk = fake_anthropic_sdk("Hel", "lo")

        with patch("linkstash.agents.llm.anthropic.AsyncAnthropic", return_value=sdk) as factory:
            client = AnthropicClient(keys, settings)
            text = await client.complete("be brief", "hi", temperature=0.3, max_tokens=50, timeout=5.0)

        assert text == "Hello"
        factory.assert_called_once_with(api_key="sk-user", max_retries=1)
        kwargs = sdk.messages.create.await_args.kwargs
        assert kwargs["model"] == settings.anthropic_model
        assert kwargs["system"] == "be brief"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 50
        assert kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_empty_system_omitted(self, settings) -> None:
        settings.llm_provider = "anthropic"
        keys = await keyed_provider(settings)
        sdk = fake_anthropic_sdk("OK")

        with patch("linkstash.agents.llm.anthropic.AsyncAnthropic", return_value=sdk):
            await AnthropicClient(keys, settings).complete("", "hi", temperature=0.1, max_tokens=5)

        kwargs = sdk.messages.create.await_args.kwargs
        assert "system" not in kwargs
        assert kwargs["timeout"] == settings.llm_timeout_seconds

    @pytest.mark.asyncio
    async def test_sdk_client_reused_until_key_changes(self, settings) -> None:
        settings.llm_provider = "anthropic"
        keys = await keyed_provider(settings, "sk-one")
        first, second = fake_anthropic_sdk("a"), fake_anthropic_sdk("b")

        with patch(
            "linkstash.agents.llm.anthropic.AsyncAnthropic", side_effect=[first, second]
        ) as factory:
            client = AnthropicClient(keys, settings)
            await client.complete("", "1", temperature=0.1, max_tokens=5)
            await client.complete("", "2", temperature=0.1, max_tokens=5)
            assert factory.call_count == 1

            await keys.save_user_key("sk-two")
            assert await client.complete("", "3", temperature=0.1, max_tokens=5) == "b"
            assert factory.call_count == 2
            first.close.assert_awaited_once()

            await client.aclose()
            second.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_key(self, settings) -> None:
        settings.llm_provider = "anthropic"
        keys = StoredApiKeyProvider(MemorySecretStore(), settings)

        with patch("linkstash.agents.llm.anthropic.AsyncAnthropic") as factory:
            with pytest.raises(LlmUnavailableError):
                await AnthropicClient(keys, settings).complete("", "p", temperature=0.1, max_tokens=5)

        factory.assert_not_called()


class TestGeminiClient:
    @pytest.mark.asyncio
    async def test_complete(self, settings) -> None:
        settings.llm_provider = "gemini"
        keys = await keyed_provider(settings)
        sdk = fake_gemini_sdk("hi there")

        with patch("linkstash.agents.llm.genai.Client", return_value=sdk) as factory:
            client = GeminiClient(keys, settings)
            text = await client.complete("be brief", "hi", temperature=0.7, max_tokens=100, timeout=15.0)

        assert text == "hi there"
        factory.assert_called_once_with(api_key="sk-user")
        kwargs = sdk.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == settings.gemini_model
        assert kwargs["contents"] == "hi"
        config = kwargs["config"]
        assert config.system_instruction == "be brief"
        assert config.temperature == 0.7
        assert config.max_output_tokens == 100
        assert config.http_options.timeout == 15000

    @pytest.mark.asyncio
    async def test_empty_response_and_system(self, settings) -> None:
        settings.llm_provider = "gemini"
        keys = await keyed_provider(settings)
        sdk = fake_gemini_sdk(None)

        with patch("linkstash.agents.llm.genai.Client", return_value=sdk):
            text = await GeminiClient(keys, settings).complete("", "hi", temperature=0.1, max_tokens=5)

        assert text == ""
        config = sdk.aio.models.generate_content.await_args.kwargs["config"]
        assert config.system_instruction is None
        assert config.http_options.timeout == int(settings.llm_timeout_seconds * 1000)

    @pytest.mark.asyncio
    async def test_sdk_client_reused_and_closed(self, settings) -> None:
        settings.llm_provider = "gemini"
        keys = await keyed_provider(settings)
        sdk = fake_gemini_sdk("x")

        with patch("linkstash.agents.llm.genai.Client", return_value=sdk) as factory:
            client = GeminiClient(keys, settings)
            await client.complete("", "1", temperature=0.1, max_tokens=5)
            await client.complete("", "2", temperature=0.1, max_tokens=5)
            await client.aclose()

        assert factory.call_count == 1
        sdk.aio.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_key(self, settings) -> None:
        settings.llm_provider = "gemini"
        keys = StoredApiKeyProvider(MemorySecretStore(), settings)

        with patch("linkstash.agents.llm.genai.Client") as factory:
            with pytest.raises(LlmUnavailableError):
                await GeminiClient(keys, settings).complete("", "p", temperature=0.1, max_tokens=5)

        factory.assert_not_called()

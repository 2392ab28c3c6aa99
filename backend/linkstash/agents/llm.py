"""Provider-neutral LLM access: chat-completions over HTTP, Anthropic, Gemini."""

import json
import logging
import re
from typing import Any, Protocol

import anthropic
import httpx
from google import genai
from google.genai import types
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from linkstash.config import Settings, get_settings
from linkstash.errors import LlmParseError, LlmUnavailableError
from linkstash.services.credentials import ApiKeyProvider

logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    """Anything that can turn a system + user prompt into response text."""

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        timeout: float | None = None,
    ) -> str: ...

    async def aclose(self) -> None: ...


def parse_llm_json(text: str) -> dict[str, Any]:
    """
    Parse a JSON object out of a model response.

    Models are told to answer with bare JSON but still wrap it in code
    fences or prose now and then.

    Raises:
        LlmParseError: If no JSON object can be recovered.
    """
    cleaned = (text or "").strip()

    # Clean markdown code blocks if present
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned)

    # Remove control characters that break JSON
    cleaned = re.sub(r"[\x00-\x1f\x7f-\x9f]", " ", cleaned)

    if not cleaned.startswith("{"):
        match = re.search(r"\{[\s\S]*\}", cleaned)
        if not match:
            raise LlmParseError("No JSON object found in response")
        cleaned = match.group(0)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LlmParseError(f"Invalid JSON in response: {e}") from e

    if not isinstance(parsed, dict):
        raise LlmParseError("Response JSON is not an object")
    return parsed


async def _require_key(key_provider: ApiKeyProvider) -> str:
    api_key = await key_provider.get_api_key()
    if not api_key:
        raise LlmUnavailableError("No API key configured. Please add one in Settings.")
    return api_key


class ChatCompletionsClient:
    """OpenAI-style chat completions endpoint over httpx."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        key_provider: ApiKeyProvider,
        settings: Settings | None = None,
    ):
        self.http = http
        self.key_provider = key_provider
        self.settings = settings or get_settings()

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        timeout: float | None = None,
    ) -> str:
        api_key = await _require_key(self.key_provider)

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = await self._post(
            {
                "model": self.settings.llm_model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            api_key,
            timeout or self.settings.llm_timeout_seconds,
        )
        response.raise_for_status()

        try:
            return response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LlmParseError(f"Unexpected completion payload: {e}") from e

    async def aclose(self) -> None:
        """The shared httpx client belongs to the app and is closed there."""

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def _post(self, payload: dict[str, Any], api_key: str, timeout: float) -> httpx.Response:
        """POST with retry on transient transport errors."""
        return await self.http.post(
            self.settings.llm_endpoint,
            json=payload,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )


class AnthropicClient:
    """Claude via the anthropic SDK. One SDK client per API key."""

    def __init__(self, key_provider: ApiKeyProvider, settings: Settings | None = None):
        self.key_provider = key_provider
        self.settings = settings or get_settings()
        self._client: anthropic.AsyncAnthropic | None = None
        self._client_key: str | None = None

    async def _get_client(self, api_key: str) -> anthropic.AsyncAnthropic:
        if self._client is None or self._client_key != api_key:
            await self.aclose()
            self._client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=1)
            self._client_key = api_key
        return self._client

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        timeout: float | None = None,
    ) -> str:
        api_key = await _require_key(self.key_provider)
        client = await self._get_client(api_key)
        kwargs: dict[str, Any] = {
            "model": self.settings.anthropic_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": timeout or self.settings.llm_timeout_seconds,
        }
        if system:
            kwargs["system"] = system

        response = await client.messages.create(**kwargs)
        return "".join(block.text for block in response.content if block.type == "text")

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._client = None
        self._client_key = None


class GeminiClient:
    """Gemini via the google-genai SDK. One SDK client per API key."""

    def __init__(self, key_provider: ApiKeyProvider, settings: Settings | None = None):
        self.key_provider = key_provider
        self.settings = settings or get_settings()
        self._client: genai.Client | None = None
        self._client_key: str | None = None

    async def _get_client(self, api_key: str) -> genai.Client:
        if self._client is None or self._client_key != api_key:
            await self.aclose()
            self._client = genai.Client(api_key=api_key)
            self._client_key = api_key
        return self._client

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        timeout: float | None = None,
    ) -> str:
        api_key = await _require_key(self.key_provider)
        client = await self._get_client(api_key)
        seconds = timeout or self.settings.llm_timeout_seconds

        response = await client.aio.models.generate_content(
            model=self.settings.gemini_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system or None,
                temperature=temperature,
                max_output_tokens=max_tokens,
                http_options=types.HttpOptions(timeout=int(seconds * 1000)),
            ),
        )
        return response.text or ""

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aio.aclose()
        self._client = None
        self._client_key = None


def get_llm_client(
    http: httpx.AsyncClient,
    key_provider: ApiKeyProvider,
    settings: Settings | None = None,
) -> LLMClient:
    """Get LLM client based on configured provider."""
    settings = settings or get_settings()

    if settings.llm_provider == "anthropic":
        return AnthropicClient(key_provider, settings)
    if settings.llm_provider == "gemini":
        return GeminiClient(key_provider, settings)
    return ChatCompletionsClient(http, key_provider, settings)


def _status_code(error: Exception) -> int | None:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


async def check_connection(client: LLMClient) -> tuple[bool, str]:
    """Send a tiny prompt to verify the key and connectivity."""
    try:
        await client.complete(
            "",
            'Respond with "OK" if you received this message.',
            temperature=0.7,
            max_tokens=10,
            timeout=15.0,
        )
    except LlmUnavailableError:
        return False, "No API key configured"
    except (httpx.TimeoutException, anthropic.APITimeoutError):
        return False, "API request timed out"
    except Exception as e:
        logger.warning("AI connection test failed: %s", e)
        if _status_code(e) == 401:
            return False, "Invalid API key"
        return False, f"Connection failed: {e}"

    return True, "AI connection successful"

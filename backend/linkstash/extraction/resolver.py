"""Metadata resolution with platform-aware fallback chains.

Social platforms: structured metadata API -> direct HTML Open-Graph scrape
(-> YouTube oEmbed when the title is a placeholder). Microblog and generic
pages: reader service only. Strategies run one at a time, in order, and a
later one is only hit when the earlier ones produced nothing usable.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any

import httpx
from bs4 import BeautifulSoup

from linkstash.config import Settings, get_settings
from linkstash.errors import NetworkError
from linkstash.extraction.platforms import Platform

logger = logging.getLogger(__name__)

METADATA_CHAIN_PLATFORMS = frozenset(
    {Platform.YOUTUBE, Platform.TIKTOK, Platform.INSTAGRAM, Platform.REDDIT}
)

_PLACEHOLDER_TITLES = {"", "youtube", "- youtube"}


@dataclass
class Metadata:
    """Raw fields returned by an upstream strategy. Empty strings mean missing."""

    title: str = ""
    description: str = ""
    image: str = ""
    author: str = ""
    publish_date: str = ""
    content: str = ""
    source: str = ""

    @property
    def is_usable(self) -> bool:
        return bool(self.title or self.description or self.image)


@dataclass
class _Attempts:
    count: int = 0
    errors: list[NetworkError] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return self.count > 0 and len(self.errors) == self.count


def is_placeholder_title(title: str) -> bool:
    """Titles YouTube serves to scrapers instead of the video title."""
    cleaned = (title or "").strip().lower()
    return cleaned in _PLACEHOLDER_TITLES or "login" in cleaned


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_open_graph(html: str) -> Metadata:
    """Extract Open-Graph/standard meta tags from an HTML document."""
    soup = BeautifulSoup(html, "lxml")

    meta: dict[str, str] = {}
    for tag in soup.find_all("meta"):
        key = tag.get("property") or tag.get("name")
        content = tag.get("content")
        if isinstance(key, str) and isinstance(content, str):
            meta.setdefault(key.strip().lower(), content.strip())

    title = meta.get("og:title", "")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()

    author = (
        meta.get("twitter:creator")
        or meta.get("article:author")
        or meta.get("author")
        or ""
    )

    return Metadata(
        title=title,
        description=meta.get("og:description") or meta.get("description", ""),
        image=meta.get("og:image", ""),
        author=author.lstrip("@"),
        publish_date=meta.get("article:published_time", ""),
        source="html",
    )


def parse_reader_payload(payload: Any) -> Metadata:
    """Normalize the reader service's JSON (or plain text) response."""
    if isinstance(payload, str):
        return Metadata(content=payload, source="reader")
    if not isinstance(payload, dict):
        return Metadata(source="reader")

    data = payload.get("data")
    nested = data if isinstance(data, dict) else {}

    if isinstance(data, str):
        content = data
    else:
        content = (
            _text(payload.get("content"))
            or _text(payload.get("text"))
            or _text(nested.get("content"))
        )

    def pick(*keys: str) -> str:
        for key in keys:
            value = _text(nested.get(key)) or _text(payload.get(key))
            if value:
                return value
        return ""

    return Metadata(
        title=pick("title"),
        description=pick("description"),
        image=pick("image", "imageUrl"),
        author=pick("author"),
        publish_date=pick("publishedTime", "publish_date"),
        content=content,
        source="reader",
    )


class MetadataResolver:
    """Resolves raw metadata for a URL using a platform-specific strategy chain."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings | None = None):
        self.http = http
        self.settings = settings or get_settings()

    async def resolve(self, url: str, platform: Platform) -> Metadata:
        """
        Run the fallback chain for a platform.

        Returns empty Metadata when nothing usable was found.

        Raises:
            NetworkError: If every attempted strategy failed at the transport level.
        """
        attempts = _Attempts()

        if platform in METADATA_CHAIN_PLATFORMS:
            chain = [self.fetch_structured_metadata, self.fetch_open_graph]
        else:
            chain = [self.fetch_reader]

        result = Metadata()
        for strategy in chain:
            metadata = await self._attempt(strategy, url, attempts)
            if metadata.is_usable or metadata.content:
                result = metadata
            if metadata.is_usable:
                break

        if platform == Platform.YOUTUBE and is_placeholder_title(result.title):
            logger.info("Generic YouTube title for %s, trying oEmbed", url)
            oembed = await self._attempt(self.fetch_youtube_oembed, url, attempts)
            if oembed.title:
                result = replace(
                    result,
                    title=oembed.title,
                    image=oembed.image or result.image,
                    author=oembed.author or result.author,
                    source=oembed.source,
                )

        if not result.is_usable and attempts.all_failed:
            raise attempts.errors[-1]

        if not result.is_usable and not result.content:
            logger.warning("All metadata strategies came back empty for %s", url)
        return result

    async def _attempt(
        self,
        strategy: Callable[[str], Awaitable[Metadata]],
        url: str,
        attempts: _Attempts,
    ) -> Metadata:
        attempts.count += 1
        try:
            return await strategy(url)
        except NetworkError as e:
            logger.warning("%s failed for %s: %s", strategy.__name__, url, e)
            attempts.errors.append(e)
            return Metadata()
        except httpx.DecodingError as e:
            # The server answered; its body is just unreadable
            logger.warning("%s got an undecodable body for %s: %s", strategy.__name__, url, e)
            return Metadata()

    async def _get(
        self,
        url: str,
        *,
        source: str,
        timeout: float,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        GET that maps definitive transport failures to NetworkError.

        An undecodable body still raises httpx.DecodingError; _attempt
        treats it as an empty result.
        """
        try:
            response = await self.http.get(url, params=params, headers=headers, timeout=timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{source} request timed out") from e
        except httpx.DecodingError:
            raise
        except httpx.TooManyRedirects as e:
            raise NetworkError(f"{source} redirected too many times") from e
        except httpx.RequestError as e:
            raise NetworkError(f"{source} unreachable: {e}") from e

        if response.status_code == 404 or response.status_code >= 500:
            raise NetworkError(
                f"{source} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def fetch_structured_metadata(self, url: str) -> Metadata:
        """Structured metadata API: {status, data: {title, description, image: {url}, author}}."""
        response = await self._get(
            self.settings.metadata_endpoint,
            source="metadata service",
            timeout=self.settings.metadata_timeout_seconds,
            params={"url": url},
        )
        if response.status_code != 200:
            logger.info("Metadata service returned status %s", response.status_code)
            return Metadata()

        try:
            result = response.json()
        except ValueError:
            logger.info("Metadata service returned a non-JSON body")
            return Metadata()

        if not isinstance(result, dict):
            return Metadata()
        data = result.get("data")
        if result.get("status") != "success" or not isinstance(data, dict):
            logger.info("Metadata service returned error: %s", result.get("status"))
            return Metadata()

        image = data.get("image")
        return Metadata(
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            image=_text(image.get("url")) if isinstance(image, dict) else "",
            author=_text(data.get("author")),
            publish_date=_text(data.get("date")),
            source="metadata",
        )

    async def fetch_open_graph(self, url: str) -> Metadata:
        """Fetch the page itself and read its Open-Graph tags."""
        response = await self._get(
            url,
            source="page fetch",
            timeout=self.settings.html_timeout_seconds,
            headers={
                "User-Agent": self.settings.mobile_user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
        )
        if response.status_code != 200 or not response.text:
            logger.info("Page fetch returned status %s", response.status_code)
            return Metadata()

        metadata = parse_open_graph(response.text)
        logger.info(
            "HTML scraping result: title=%r has_image=%s",
            metadata.title[:50],
            bool(metadata.image),
        )
        return metadata

    async def fetch_youtube_oembed(self, url: str) -> Metadata:
        """Official oEmbed endpoint: {title, author_name, thumbnail_url}."""
        response = await self._get(
            self.settings.youtube_oembed_endpoint,
            source="oEmbed",
            timeout=self.settings.oembed_timeout_seconds,
            params={"url": url, "format": "json"},
        )
        if response.status_code != 200:
            logger.info("oEmbed returned status %s", response.status_code)
            return Metadata()

        try:
            data = response.json()
        except ValueError:
            return Metadata()
        if not isinstance(data, dict):
            return Metadata()

        return Metadata(
            title=_text(data.get("title")),
            image=_text(data.get("thumbnail_url")),
            author=_text(data.get("author_name")),
            source="oembed",
        )

    async def fetch_reader(self, url: str) -> Metadata:
        """Readability service: GET {endpoint}<url> -> markdown content plus metadata."""
        headers = {"Accept": "application/json"}
        if self.settings.reader_api_key:
            headers["Authorization"] = f"Bearer {self.settings.reader_api_key}"

        response = await self._get(
            f"{self.settings.reader_endpoint}{url}",
            source="reader service",
            timeout=self.settings.reader_timeout_seconds,
            headers=headers,
        )
        if response.status_code >= 400:
            logger.info("Reader service returned status %s", response.status_code)
            return Metadata()

        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text

        metadata = parse_reader_payload(payload)
        logger.info(
            "Reader extracted %d chars, title=%r",
            len(metadata.content),
            metadata.title[:50],
        )
        return metadata

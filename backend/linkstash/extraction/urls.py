"""URL validation and URL-derived fallbacks (usernames, thumbnails, titles)."""

import re
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import HttpUrl, TypeAdapter, ValidationError

from linkstash.errors import InvalidUrlError
from linkstash.extraction.platforms import Platform

_http_url = TypeAdapter(HttpUrl)

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)
_YOUTUBE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def validate_url(raw: str) -> str:
    """
    Normalize and validate a user-supplied URL.

    Prefixes https:// when no http(s) scheme is present. Returns the
    normalized string, not the parser's re-serialization, so that
    duplicate detection compares what the user actually saved.

    Raises:
        InvalidUrlError: If the input cannot be parsed as an HTTP URL.
    """
    url = (raw or "").strip()
    if not url:
        raise InvalidUrlError(raw)
    if not _SCHEME.match(url):
        url = f"https://{url}"

    try:
        parsed = _http_url.validate_python(url)
    except ValidationError as e:
        raise InvalidUrlError(raw) from e

    host = parsed.host or ""
    if "." not in host and host != "localhost" and ":" not in host:
        raise InvalidUrlError(raw)
    return url


def extract_username(url: str, platform: Platform) -> str | None:
    """Pull the account handle out of a social URL, if it carries one."""
    if platform == Platform.INSTAGRAM:
        # instagram.com/<user>/reel/<id>; instagram.com/reel/<id> has none
        match = re.search(r"instagram\.com/([^/?#]+)/(?:reel|reels|p)/", url)
        if match and match.group(1) not in ("reel", "reels", "p"):
            return match.group(1)
        return None
    if platform == Platform.TIKTOK:
        match = re.search(r"tiktok\.com/@([^/?#]+)", url)
        return match.group(1) if match else None
    if platform == Platform.TWITTER:
        match = re.search(r"(?:twitter\.com|x\.com)/([^/?#]+)/status/", url)
        if match and match.group(1) not in ("i", "intent"):
            return match.group(1)
        return None
    return None


def extract_video_id(url: str, platform: Platform) -> str | None:
    """Extract the platform video id used by thumbnail templates."""
    parsed = urlparse(url)
    if platform == Platform.YOUTUBE:
        host = (parsed.hostname or "").lower()
        candidate = None
        if host.endswith("youtu.be"):
            candidate = parsed.path.strip("/").split("/")[0]
        elif parsed.path == "/watch":
            candidate = (parse_qs(parsed.query).get("v") or [None])[0]
        else:
            match = re.match(r"^/(?:shorts|embed|live)/([^/?#]+)", parsed.path)
            candidate = match.group(1) if match else None
        if candidate and _YOUTUBE_ID.match(candidate):
            return candidate
        return None
    if platform == Platform.TIKTOK:
        match = re.search(r"/video/(\d+)", parsed.path)
        return match.group(1) if match else None
    return None


def video_thumbnail_url(url: str, platform: Platform) -> str | None:
    """Build a thumbnail URL from a known template, if the platform has one."""
    video_id = extract_video_id(url, platform)
    if not video_id:
        return None
    if platform == Platform.YOUTUBE:
        return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"
    # TikTok thumbnails need an API call
    return None


def title_from_url(url: str) -> str:
    """
    Derive a readable title from the URL path, or the hostname.

    "https://example.com/blog/my-first_post.html" -> "My First Post"
    "https://x.com/" -> "X"
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return "Article"

    parts = [p for p in parsed.path.split("/") if p]
    if parts:
        last = unquote(parts[-1])
        if len(last) > 2:
            last = re.sub(r"\.[^/.]+$", "", last)
            words = re.sub(r"[-_]+", " ", last).split()
            if words:
                return " ".join(w[:1].upper() + w[1:] for w in words)

    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    label = host.split(".")[0].upper()
    return label or "Article"


def hostname(url: str) -> str:
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def truncate_words(text: str, max_words: int = 30) -> str:
    """Naive description: the first words of the raw content."""
    if not text:
        return ""
    words = text.split()
    suffix = "..." if len(words) > max_words else ""
    return " ".join(words[:max_words]) + suffix

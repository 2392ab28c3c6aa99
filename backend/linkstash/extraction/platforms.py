"""Platform classification and per-platform display configuration."""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse


class Platform(str, Enum):
    """Source platforms an article can come from."""

    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    REDDIT = "reddit"
    OTHER = "other"


@dataclass(frozen=True)
class PlatformConfig:
    """Display configuration for a platform."""

    name: str
    content_type: str
    color: str


PLATFORM_CONFIG: dict[Platform, PlatformConfig] = {
    Platform.YOUTUBE: PlatformConfig("YouTube", "Video", "#FF0000"),
    Platform.TIKTOK: PlatformConfig("TikTok", "Video", "#000000"),
    Platform.INSTAGRAM: PlatformConfig("Instagram", "Reel", "#E1306C"),
    Platform.TWITTER: PlatformConfig("Twitter", "Tweet", "#000000"),
    Platform.FACEBOOK: PlatformConfig("Facebook", "Post", "#1877F2"),
    Platform.REDDIT: PlatformConfig("Reddit", "Post", "#FF4500"),
    Platform.OTHER: PlatformConfig("Web", "Article", "#6B7280"),
}

# Checked in order; first match wins
_HOST_PATTERNS: list[tuple[Platform, tuple[str, ...]]] = [
    (Platform.TWITTER, ("twitter.com", "x.com", "t.co")),
    (Platform.FACEBOOK, ("facebook.com", "fb.com", "fb.watch")),
    (Platform.INSTAGRAM, ("instagram.com", "instagr.am")),
    (Platform.YOUTUBE, ("youtube.com", "youtu.be")),
    (Platform.TIKTOK, ("tiktok.com",)),
    (Platform.REDDIT, ("reddit.com", "redd.it")),
]

# Social platforms whose posts are frequently videos
VIDEO_PLATFORMS = frozenset({Platform.YOUTUBE, Platform.TIKTOK, Platform.INSTAGRAM})


def _hostname(url: str) -> str:
    try:
        host = urlparse(url if "://" in url else f"https://{url}").hostname or ""
    except ValueError:
        return ""
    return host.lower().rstrip(".")


def _matches_domain(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def classify(url: str) -> Platform:
    """
    Map a URL to its source platform.

    Pure and deterministic; unmatched URLs are Platform.OTHER.
    """
    host = _hostname(url)
    if not host:
        return Platform.OTHER

    for platform, domains in _HOST_PATTERNS:
        if any(_matches_domain(host, d) for d in domains):
            return platform
    return Platform.OTHER


def get_platform_config(platform: Platform) -> PlatformConfig:
    """Get platform config, defaulting to the generic web entry."""
    return PLATFORM_CONFIG.get(platform, PLATFORM_CONFIG[Platform.OTHER])


def platform_color(platform: Platform) -> str:
    return get_platform_config(platform).color


def content_type_for(url: str, platform: Platform) -> str:
    """Content type label, e.g. 'Reel' or 'Video'."""
    if platform == Platform.INSTAGRAM and "/p/" in (urlparse(url).path or ""):
        return "Post"
    return get_platform_config(platform).content_type


def seed_tags(url: str, platform: Platform) -> list[str]:
    """Default tags for a freshly extracted article."""
    config = get_platform_config(platform)
    return [config.name.lower(), content_type_for(url, platform).lower()]


def parse_platform(value: object) -> Platform | None:
    """Parse a free-form platform name (e.g. from an LLM) into the enumeration."""
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower()
    if candidate in ("x", "twitter/x", "x/twitter"):
        return Platform.TWITTER
    try:
        return Platform(candidate)
    except ValueError:
        return None

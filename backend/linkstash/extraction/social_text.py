"""Heuristics for pulling a post's own text out of reader output.

Reader services return the whole rendered page for microblog posts,
navigation and counters included. These functions keep only the text the
author wrote; they never generate text.
"""

import re

# Reader titles look like: Jane Doe on X: "post text here" / X
_TITLE_POST = re.compile(r'on X:\s*["\u201c](.+?)["\u201d](?:\s*/\s*X)?\s*$', re.DOTALL)

_MARKDOWN_IMAGE = re.compile(r"!\[[^\]]*\]\([^)]+\)")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BARE_URL = re.compile(r"https?://\S+")

UI_NOISE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^Title:.*$", re.MULTILINE),
    re.compile(r"^URL Source:.*$", re.MULTILINE),
    re.compile(r"^Markdown Content:.*$", re.MULTILINE),
    re.compile(r"^Published Time:.*$", re.MULTILINE),
    re.compile(r"Translate post", re.IGNORECASE),
    re.compile(r"Show more", re.IGNORECASE),
    re.compile(r"\d+:\d+\s*(?:AM|PM)", re.IGNORECASE),
    re.compile(r"·\s*\w+\s*\d+,\s*\d+"),
    re.compile(r"\d+(?:\.\d+)?[KM]?\s*(?:views?|replies|reposts?|likes?|bookmarks?)\b", re.IGNORECASE),
    re.compile(r"^(?:Quote|Reply|Repost|Like|Share)$", re.MULTILINE),
    re.compile(r"Post your reply", re.IGNORECASE),
    re.compile(r"What is happening\S*", re.IGNORECASE),
    re.compile(r"^X$", re.MULTILINE),
    re.compile(r"^@\w+$", re.MULTILINE),
]

NAVIGATION_LABELS = frozenset(
    {
        "home",
        "explore",
        "notifications",
        "messages",
        "grok",
        "lists",
        "bookmarks",
        "communities",
        "premium",
        "profile",
        "more",
        "settings",
    }
)

MAX_POST_LINE = 500
MIN_POST_LINE = 10
FALLBACK_LINES = 5
FALLBACK_CHARS = 300


def post_text_from_title(title: str) -> str:
    """Parse the quoted post text out of a reader title, or ''."""
    if not title:
        return ""
    match = _TITLE_POST.search(title.strip())
    return match.group(1).strip() if match else ""


def strip_markup(text: str) -> str:
    """Drop markdown images and bare URLs, keep link text."""
    text = _MARKDOWN_IMAGE.sub("", text)
    text = _MARKDOWN_LINK.sub(r"\1", text)
    return _BARE_URL.sub("", text)


def strip_ui_noise(text: str) -> str:
    for pattern in UI_NOISE_PATTERNS:
        text = pattern.sub("", text)
    return text


def is_candidate_line(line: str) -> bool:
    """Whether a trimmed line could be part of the post."""
    if len(line) < 3:
        return False
    if re.fullmatch(r"@\w+", line):
        return False
    if re.fullmatch(r"\d+", line):
        return False
    if line.lower() in NAVIGATION_LABELS:
        return False
    return True


def candidate_lines(content: str) -> list[str]:
    text = strip_ui_noise(strip_markup(content))
    lines = (line.strip() for line in text.split("\n"))
    return [line for line in lines if is_candidate_line(line)]


def extract_post_text(content: str) -> str:
    """
    Pick the post text from reader markdown.

    The longest candidate line under MAX_POST_LINE chars wins. If none is
    longer than MIN_POST_LINE, the first few candidate lines are joined.
    """
    if not content:
        return ""

    lines = candidate_lines(content)
    best = ""
    for line in lines:
        if len(best) < len(line) < MAX_POST_LINE:
            best = line

    if len(best) > MIN_POST_LINE:
        return best

    return " ".join(lines[:FALLBACK_LINES]).strip()[:FALLBACK_CHARS]


def truncate_title(text: str, limit: int = 50) -> str:
    """Shorten post text into a display title."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."

"""Cleanup Agent - asks an LLM to lift the original title/text out of noisy extraction output."""

import logging
from dataclasses import dataclass

import httpx

from linkstash.agents.llm import LLMClient, parse_llm_json
from linkstash.errors import LlmError
from linkstash.extraction.platforms import Platform

logger = logging.getLogger(__name__)


@dataclass
class CleanedText:
    """Title and description as returned by the model."""

    title: str
    description: str
    has_video: bool | None = None


@dataclass(frozen=True)
class CleanupPrompt:
    system: str
    subject: str
    title_instruction: str
    description_instruction: str


_EXTRACT_ONLY = (
    "IMPORTANT: Do NOT summarize or rewrite. Extract the original content and only fix "
    "obvious extraction errors like cut-off words, markdown residue or spelling mistakes."
)

PROMPTS: dict[Platform, CleanupPrompt] = {
    Platform.YOUTUBE: CleanupPrompt(
        system=(
            "You are a JSON API that extracts YouTube content. You MUST respond with ONLY valid "
            "JSON. Extract the ORIGINAL video title and description, only fix extraction errors."
        ),
        subject="this YouTube video",
        title_instruction="The ORIGINAL video title (fix cut-off words or spelling only, do not rewrite)",
        description_instruction="The ORIGINAL video description (preserve the original text)",
    ),
    Platform.TIKTOK: CleanupPrompt(
        system=(
            "You are a JSON API that extracts TikTok content. You MUST respond with ONLY valid "
            "JSON. Extract the ORIGINAL caption, only fix extraction errors."
        ),
        subject="this TikTok video",
        title_instruction="A short title taken from the caption (max 50 chars)",
        description_instruction="The ORIGINAL caption verbatim, including emojis and hashtags",
    ),
    Platform.INSTAGRAM: CleanupPrompt(
        system=(
            "You are a JSON API that extracts Instagram content. You MUST respond with ONLY valid "
            "JSON. Extract the ORIGINAL caption, only fix extraction errors."
        ),
        subject="this Instagram post",
        title_instruction="A short title taken from the caption (max 50 chars)",
        description_instruction="The ORIGINAL caption verbatim, including emojis and hashtags",
    ),
    Platform.REDDIT: CleanupPrompt(
        system=(
            "You are a JSON API that extracts Reddit content. You MUST respond with ONLY valid "
            "JSON. Extract the ORIGINAL post, only fix extraction errors."
        ),
        subject="this Reddit post",
        title_instruction="The ORIGINAL post title",
        description_instruction="The ORIGINAL post body (preserve the original text)",
    ),
}

ARTICLE_PROMPT = CleanupPrompt(
    system=(
        "You are a JSON API that extracts web content. You MUST respond with ONLY valid JSON. "
        "Extract the ORIGINAL article content, only fix extraction errors."
    ),
    subject="this article/web page",
    title_instruction="The ORIGINAL article title",
    description_instruction="The ORIGINAL description or intro paragraph (preserve the original text)",
)

USER_PROMPT = """Extract from {subject}:
1. title: {title_instruction}
2. description: {description_instruction}
3. hasVideo: true if the content embeds or is a video, false otherwise

{extract_only}

Content:
{content}

URL: {url}

Return ONLY valid JSON:
{{"title": "...", "description": "...", "hasVideo": false}}
"""


class CleanupAgent:
    """
    Light-touch LLM cleanup of extracted text.

    Never used for microblog posts: models there tend to invent post text.
    """

    MAX_CONTENT_CHARS = 2000
    TEMPERATURE = 0.3
    MAX_TOKENS = 300

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def build_prompt(self, platform: Platform, content: str, url: str) -> tuple[str, str]:
        """Return (system, user) prompts for a platform."""
        template = PROMPTS.get(platform, ARTICLE_PROMPT)
        user = USER_PROMPT.format(
            subject=template.subject,
            title_instruction=template.title_instruction,
            description_instruction=template.description_instruction,
            extract_only=_EXTRACT_ONLY,
            content=content[: self.MAX_CONTENT_CHARS],
            url=url,
        )
        return template.system, user

    async def clean(self, platform: Platform, content: str, url: str) -> CleanedText | None:
        """
        Ask the model for the original title/description.

        Returns None on any failure; callers fall back to programmatic values.
        """
        if platform == Platform.TWITTER:
            raise ValueError("Microblog posts must not go through LLM cleanup")

        system, prompt = self.build_prompt(platform, content, url)
        try:
            response_text = await self.llm.complete(
                system,
                prompt,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
            data = parse_llm_json(response_text)
        except LlmError as e:
            logger.info("LLM cleanup skipped for %s: %s", url, e)
            return None
        except httpx.HTTPError as e:
            logger.warning("LLM cleanup request failed for %s: %s", url, e)
            return None
        except Exception:
            logger.exception("Unexpected LLM cleanup error for %s", url)
            return None

        title = data.get("title")
        description = data.get("description")
        if not isinstance(title, str) or not title.strip():
            logger.info("LLM cleanup response missing title for %s", url)
            return None

        has_video = data.get("hasVideo")
        return CleanedText(
            title=title.strip(),
            description=description.strip() if isinstance(description, str) else "",
            has_video=has_video if isinstance(has_video, bool) else None,
        )

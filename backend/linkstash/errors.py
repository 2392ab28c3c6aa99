"""Exception hierarchy for the extraction pipeline and article storage."""


class LinkstashError(Exception):
    """Base class for all application errors."""

    user_message = "Something went wrong. Please try again."


class InvalidUrlError(LinkstashError):
    """The input could not be parsed as a URL, even after normalization."""

    user_message = "Please enter a valid URL."

    def __init__(self, raw: str):
        super().__init__(f"Invalid URL: {raw!r}")
        self.raw = raw


class NetworkError(LinkstashError):
    """Every strategy for a URL failed at the transport level."""

    user_message = "Network error. Please check your connection and try again."
    retryable = True

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DuplicateArticleError(LinkstashError):
    """An article with the same url or id is already stored."""

    user_message = "This article is already in your library!"

    def __init__(self, message: str, existing_id: str | None = None):
        super().__init__(message)
        self.existing_id = existing_id


class ArticleNotFoundError(LinkstashError):
    """A user action referenced an article id that does not exist."""

    user_message = "Article not found."

    def __init__(self, article_id: str):
        super().__init__(f"Article {article_id} not found")
        self.article_id = article_id


class EnrichmentFailure(LinkstashError):
    """Background enrichment failed. Logged, never surfaced."""


class LlmError(LinkstashError):
    """Base class for LLM call failures."""


class LlmUnavailableError(LlmError):
    """No API key is configured for the active provider."""


class LlmParseError(LlmError):
    """The model response did not contain a usable JSON object."""

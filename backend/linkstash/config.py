"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_name: str = "Linkstash"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"

    # AI/LLM Providers
    llm_provider: str = "openai"  # "openai", "anthropic" or "gemini"
    llm_model: str = "gpt-4o"
    anthropic_model: str = "claude-sonnet-4-20250514"
    gemini_model: str = "gemini-2.0-flash"
    llm_endpoint: str = "https://api.openai.com/v1/chat/completions"
    llm_timeout_seconds: float = 10.0
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""

    # Enrichment
    enrichment_enabled: bool = True
    enrichment_timeout_seconds: float = 30.0
    enrichment_max_tags: int = 3

    # Upstream extraction services
    metadata_endpoint: str = "https://api.microlink.io/"
    reader_endpoint: str = "https://r.jina.ai/"
    reader_api_key: str = ""
    youtube_oembed_endpoint: str = "https://www.youtube.com/oembed"
    metadata_timeout_seconds: float = 15.0
    html_timeout_seconds: float = 15.0
    oembed_timeout_seconds: float = 15.0
    reader_timeout_seconds: float = 30.0
    user_agent: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
    mobile_user_agent: str = (
        "Mozilla/5.0 (Linux; Android 10; Mobile) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.120 Mobile Safari/537.36"
    )

    # Storage
    database_url: str = "sqlite+aiosqlite:///./linkstash.db"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    def provider_api_key(self) -> str:
        """Configured key for the active LLM provider."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
        }.get(self.llm_provider, "")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

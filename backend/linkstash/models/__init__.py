"""Models package - SQLModel database models."""

from linkstash.models.article import Article

__all__ = ["Article"]

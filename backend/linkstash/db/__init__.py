"""Database engine and session helpers."""

from linkstash.db.session import create_engine, create_session_factory, init_db

__all__ = ["create_engine", "create_session_factory", "init_db"]

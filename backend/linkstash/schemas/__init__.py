"""Pydantic schemas for API payloads and partial updates."""

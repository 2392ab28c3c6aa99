"""Linkstash - read-it-later backend with a multi-strategy content extraction pipeline."""

__version__ = "0.1.0"

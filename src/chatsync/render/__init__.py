"""Render caching for message content."""

from .cache import DEFAULT_MAX_ENTRIES, CacheEntry, MarkdownRenderCache, fingerprint

__all__ = [
    "CacheEntry",
    "DEFAULT_MAX_ENTRIES",
    "MarkdownRenderCache",
    "fingerprint",
]

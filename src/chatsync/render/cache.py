"""Memoized rendering of message text.

Hides how rendered parts are keyed, invalidated and evicted, so the
presentation layer can re-render at streaming frequency without
re-parsing markup that has not changed.
"""

import hashlib
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..session.transcript import TranscriptStore

T = TypeVar("T")

DEFAULT_MAX_ENTRIES = 256


def fingerprint(text: str) -> str:
    """Cheap, deterministic summary of ``text`` used as an invalidation key."""
    return hashlib.blake2b(text.encode("utf-8"), digest_size=16).hexdigest()


@dataclass
class CacheEntry(Generic[T]):
    """One rendered part."""

    message_id: str
    part_index: int
    fingerprint: str
    value: T
    last_access: float = field(default_factory=time.monotonic)

    @property
    def key(self) -> tuple[str, int, str]:
        return (self.message_id, self.part_index, self.fingerprint)


class MarkdownRenderCache(Generic[T]):
    """LRU cache of rendered message parts.

    Holds at most one entry per ``(message_id, part_index)``; new text for
    the same part replaces the old entry instead of accumulating.

    Usage:
        cache = MarkdownRenderCache(render_markdown)
        cache.attach(store)  # cleared whenever the transcript is cleared
        node = cache.render(message.id, 0, part.text)
    """

    def __init__(self, converter: Callable[[str], T], max_entries: int = DEFAULT_MAX_ENTRIES):
        """Initialize the cache.

        Args:
            converter: Deterministic text-to-presentation function
            max_entries: Maximum number of parts kept before LRU eviction
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._converter = converter
        self._max_entries = max_entries
        self._entries: OrderedDict[tuple[str, int], CacheEntry[T]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def attach(self, store: TranscriptStore) -> "MarkdownRenderCache[T]":
        """Clear this cache whenever ``store`` is cleared."""
        store.add_clear_listener(self.clear)
        return self

    def render(self, message_id: str, part_index: int, text: str) -> T:
        """Return the rendered form of ``text``, converting only on change."""
        key = (message_id, part_index)
        digest = fingerprint(text)

        entry = self._entries.get(key)
        if entry is not None and entry.fingerprint == digest:
            entry.last_access = time.monotonic()
            self._entries.move_to_end(key)
            self.hits += 1
            return entry.value

        value = self._converter(text)
        self._entries[key] = CacheEntry(message_id, part_index, digest, value)
        self._entries.move_to_end(key)
        self.misses += 1
        self._evict()
        return value

    def resize(self, max_entries: int) -> None:
        """Change the entry bound, evicting immediately if needed."""
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._max_entries = max_entries
        self._evict()

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def entries(self) -> list[CacheEntry[T]]:
        """Entries from least to most recently used."""
        return list(self._entries.values())

    def _evict(self) -> None:
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

"""In-memory storage adapter."""

from __future__ import annotations

import threading
from collections import OrderedDict

from bookshelf.types import CacheEntry


class MemoryAdapter:
    """Thread-safe in-memory storage adapter with optional LRU eviction."""

    def __init__(self, max_items: int | None = None) -> None:
        if max_items is not None and max_items < 1:
            raise ValueError("max_items must be a positive integer")
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._tags: dict[str, set[str]] = {}
        self._max_items = max_items
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        """Get a cache entry by key."""
        with self._lock:
            entry = self._cache.get(key)
            if entry:
                self._cache.move_to_end(key)  # LRU touch
            return entry

    def set(self, entry: CacheEntry) -> None:
        """Store a cache entry."""
        with self._lock:
            self._remove(entry.key)
            self._cache[entry.key] = entry
            for tag in entry.tags:
                self._tags.setdefault(tag, set()).add(entry.key)
            if self._max_items and len(self._cache) > self._max_items:
                oldest = next(iter(self._cache))
                self._remove(oldest)

    def delete(self, key: str) -> bool:
        """Delete a cache entry."""
        with self._lock:
            return self._remove(key)

    def keys_for_tag(self, tag: str) -> set[str]:
        """Get the keys currently carrying a tag."""
        with self._lock:
            return set(self._tags.get(tag, ()))

    def delete_tag(self, tag: str) -> int:
        """Delete every entry carrying a tag."""
        with self._lock:
            keys = list(self._tags.get(tag, ()))
            for key in keys:
                self._remove(key)
            return len(keys)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()
            self._tags.clear()

    def disconnect(self) -> None:
        """Disconnect from the storage backend (no-op for memory)."""
        pass

    def __len__(self) -> int:
        return len(self._cache)

    def _remove(self, key: str) -> bool:
        # Caller holds self._lock
        entry = self._cache.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            bucket = self._tags.get(tag)
            if bucket is None:
                continue
            bucket.discard(key)
            if not bucket:
                del self._tags[tag]
        return True

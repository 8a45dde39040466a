"""Tag-aware response cache with stampede protection."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from bookshelf.adapters.base import StorageAdapter
from bookshelf.errors import ComputeError
from bookshelf.types import CacheEntry

logger = logging.getLogger(__name__)


@dataclass
class _Flight:
    """An in-progress compute shared by every caller of one key."""

    done: threading.Event = field(default_factory=threading.Event)
    payload: bytes | None = None
    error: ComputeError | None = None


class TaggedCache:
    """Get-or-compute cache whose entries are purged by tag.

    Usage:
        cache = TaggedCache(MemoryAdapter())
        page = cache.get_or_compute("getAllBooks-1-3", {"booksCache"}, render)
        cache.invalidate_tag("booksCache")

    Concurrent callers of the same uncached key share a single compute. If
    that compute fails, every caller of the flight gets the same ComputeError
    and nothing is stored; the next call computes again.
    """

    def __init__(self, adapter: StorageAdapter) -> None:
        self._adapter = adapter
        self._in_flight: dict[str, _Flight] = {}
        self._lock = threading.Lock()
        # Serializes stores against invalidations
        self._index_lock = threading.Lock()
        self._generations: dict[str, int] = {}

    @property
    def adapter(self) -> StorageAdapter:
        return self._adapter

    def get_or_compute(
        self,
        key: str,
        tags: Iterable[str],
        compute: Callable[[], bytes],
    ) -> bytes:
        """Return the cached payload for ``key`` or compute and store it.

        Args:
            key: Cache key
            tags: Tags the new entry is invalidated by
            compute: Produces the payload on a miss

        Returns:
            Cached or freshly computed payload

        Raises:
            ComputeError: ``compute`` or the storage backend failed (chained
                to its exception)
        """
        try:
            entry = self._adapter.get(key)
        except Exception as e:
            logger.warning("Cache lookup for %s failed: %s", key, e)
            raise ComputeError(key) from e
        if entry is not None:
            logger.debug("Cache hit for %s", key)
            return entry.payload

        tag_set = frozenset(tags)
        return self._coalesce(key, lambda: self._fetch(key, tag_set, compute))

    def get(self, key: str) -> bytes | None:
        """Raw get - escape hatch for manual cache access."""
        entry = self._adapter.get(key)
        return entry.payload if entry is not None else None

    def contains(self, key: str) -> bool:
        return self._adapter.get(key) is not None

    def delete(self, key: str) -> bool:
        """Raw delete - escape hatch for manual cache removal."""
        with self._index_lock:
            return self._adapter.delete(key)

    def invalidate_tag(self, tag: str) -> int:
        """Remove every entry carrying ``tag``. Idempotent.

        Returns:
            Number of entries removed
        """
        with self._index_lock:
            self._generations[tag] = self._generations.get(tag, 0) + 1
            removed = self._adapter.delete_tag(tag)
        logger.info("Invalidated tag %s (%d entries)", tag, removed)
        return removed

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Invalidate several tags. Returns the total number of entries removed."""
        return sum(self.invalidate_tag(tag) for tag in sorted(set(tags)))

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._index_lock:
            for tag in self._generations:
                self._generations[tag] += 1
            self._adapter.clear()

    def close(self) -> None:
        """Disconnect from the storage backend."""
        self._adapter.disconnect()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _fetch(
        self,
        key: str,
        tags: frozenset[str],
        compute: Callable[[], bytes],
    ) -> bytes:
        # A flight that finished between our miss and registering may have stored it
        entry = self._adapter.get(key)
        if entry is not None:
            return entry.payload

        with self._index_lock:
            generations = {tag: self._generations.get(tag, 0) for tag in tags}

        logger.debug("Cache miss for %s, computing", key)
        try:
            payload = compute()
        except Exception as e:
            logger.warning("Compute for %s failed: %s", key, e)
            raise ComputeError(key) from e

        with self._index_lock:
            if any(self._generations.get(t, 0) != g for t, g in generations.items()):
                logger.debug("Not storing %s: a tag was invalidated during compute", key)
                return payload
            self._adapter.set(CacheEntry(key=key, payload=payload, tags=tags))
        return payload

    def _coalesce(self, key: str, fetch: Callable[[], bytes]) -> bytes:
        """Coalesce concurrent requests for same key."""
        with self._lock:
            flight = self._in_flight.get(key)
            waiting = flight is not None
            if flight is None:
                flight = _Flight()
                self._in_flight[key] = flight

        if waiting:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            assert flight.payload is not None
            return flight.payload

        try:
            payload = fetch()
            flight.payload = payload
            return payload
        except ComputeError as e:
            flight.error = e
            raise
        except Exception as e:
            # Storage backend failed; leader and waiters see the same error
            logger.warning("Cache backend failed for %s: %s", key, e)
            flight.error = ComputeError(key)
            raise flight.error from e
        except BaseException:
            flight.error = ComputeError(key)
            raise
        finally:
            with self._lock:
                del self._in_flight[key]
            flight.done.set()

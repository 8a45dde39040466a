"""Base adapter protocol for cache storage backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from bookshelf.types import CacheEntry


@runtime_checkable
class StorageAdapter(Protocol):
    """Entry store plus tag index.

    Implementations keep the index consistent: every key listed under a tag
    has an entry carrying that tag, and a tag with no keys has no bucket.
    """

    def get(self, key: str) -> CacheEntry | None:
        """Get a cache entry by key."""
        ...

    def set(self, entry: CacheEntry) -> None:
        """Store an entry, replacing (delete + recreate) any previous one."""
        ...

    def delete(self, key: str) -> bool:
        """Delete an entry and its index records. Returns whether it existed."""
        ...

    def keys_for_tag(self, tag: str) -> set[str]:
        """Get the keys currently carrying a tag."""
        ...

    def delete_tag(self, tag: str) -> int:
        """Delete every entry carrying a tag. Returns the number removed."""
        ...

    def clear(self) -> None:
        """Clear all cached entries."""
        ...

    def disconnect(self) -> None:
        """Disconnect from the storage backend."""
        ...

"""Storage adapters for the bookshelf cache."""

from bookshelf.adapters.base import StorageAdapter
from bookshelf.adapters.memory import MemoryAdapter
from bookshelf.adapters.redis import RedisAdapter

__all__ = [
    "MemoryAdapter",
    "RedisAdapter",
    "StorageAdapter",
]

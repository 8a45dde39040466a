"""Redis storage adapter.

Layout under the configured prefix:
- ``{prefix}:cache:{key}``: hash with ``payload`` (bytes) and ``tags`` (JSON list)
- ``{prefix}:tag:{tag}``: set of keys carrying the tag

Redis drops a set when its last member is removed, so empty tag buckets
disappear on their own.
"""

from __future__ import annotations

import json
from typing import Any

from bookshelf.types import CacheEntry


# KEYS[1]: tag bucket, ARGV[1]: prefix. Removes each entry and its records in
# every bucket it is listed in; returns the number of entries removed.
_DELETE_TAG_SCRIPT = """
local removed = 0
for _, key in ipairs(redis.call("smembers", KEYS[1])) do
    local entry = ARGV[1] .. ":cache:" .. key
    local tags = redis.call("hget", entry, "tags")
    if tags then
        for _, tag in ipairs(cjson.decode(tags)) do
            redis.call("srem", ARGV[1] .. ":tag:" .. tag, key)
        end
        redis.call("del", entry)
        removed = removed + 1
    end
    redis.call("srem", KEYS[1], key)
end
return removed
"""


def _text(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def _payload(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


class RedisAdapter:
    """Sync Redis storage adapter."""

    def __init__(
        self,
        client: Any,  # redis.Redis
        *,
        prefix: str = "bookshelf",
    ) -> None:
        if not prefix:
            raise ValueError("prefix must not be empty")
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, *, prefix: str = "bookshelf") -> RedisAdapter:
        """Create an adapter with a new client for ``url``."""
        import redis

        return cls(redis.Redis.from_url(url), prefix=prefix)

    def _cache_key(self, key: str) -> str:
        """Generate full Redis key for cache entries."""
        return f"{self._prefix}:cache:{key}"

    def _tag_key(self, tag: str) -> str:
        """Generate full Redis key for a tag bucket."""
        return f"{self._prefix}:tag:{tag}"

    def _stored_tags(self, key: str) -> list[str] | None:
        data = self._client.hget(self._cache_key(key), "tags")
        if data is None:
            return None
        return list(json.loads(_text(data)))

    def get(self, key: str) -> CacheEntry | None:
        """Get a cache entry by key."""
        data = self._client.hgetall(self._cache_key(key))
        if not data:
            return None
        fields = {_text(k): v for k, v in data.items()}
        return CacheEntry(
            key=key,
            payload=_payload(fields["payload"]),
            tags=frozenset(json.loads(_text(fields["tags"]))),
        )

    def set(self, entry: CacheEntry) -> None:
        """Store a cache entry and index it under each of its tags."""
        old_tags = self._stored_tags(entry.key) or []
        pipe = self._client.pipeline(transaction=True)
        for tag in old_tags:
            pipe.srem(self._tag_key(tag), entry.key)
        pipe.delete(self._cache_key(entry.key))
        pipe.hset(
            self._cache_key(entry.key),
            mapping={
                "payload": entry.payload,
                "tags": json.dumps(sorted(entry.tags)),
            },
        )
        for tag in entry.tags:
            pipe.sadd(self._tag_key(tag), entry.key)
        pipe.execute()

    def delete(self, key: str) -> bool:
        """Delete a cache entry and remove it from its tag buckets."""
        tags = self._stored_tags(key)
        if tags is None:
            return False
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(self._cache_key(key))
        for tag in tags:
            pipe.srem(self._tag_key(tag), key)
        pipe.execute()
        return True

    def keys_for_tag(self, tag: str) -> set[str]:
        """Get the keys currently carrying a tag."""
        return {_text(k) for k in self._client.smembers(self._tag_key(tag))}

    def delete_tag(self, tag: str) -> int:
        """Delete every entry carrying a tag.

        Runs as one script so a ``set`` from another process cannot land
        between reading the bucket and emptying it.
        """
        removed = self._client.eval(
            _DELETE_TAG_SCRIPT, 1, self._tag_key(tag), self._prefix
        )
        return int(removed)

    def clear(self) -> None:
        """Clear all cached entries and tag buckets."""
        # Use SCAN to find and delete all keys under the prefix
        cursor = 0
        pattern = f"{self._prefix}:*"
        while True:
            cursor, keys = self._client.scan(cursor, match=pattern, count=100)
            if keys:
                self._client.delete(*keys)
            if cursor == 0:
                break

    def disconnect(self) -> None:
        """Close the Redis connection."""
        self._client.close()

"""bookshelf - Versioned, tag-cached bookstore catalog."""

__version__ = "0.1.0"

# Adapters
from bookshelf.adapters import (  # noqa: E402
    MemoryAdapter,
    RedisAdapter,
    StorageAdapter,
)

# Cache and write invalidation
from bookshelf.cache import TaggedCache  # noqa: E402
from bookshelf.errors import (  # noqa: E402
    BookshelfError,
    ComputeError,
    FieldResolutionError,
    NotFoundError,
    PermissionDeniedError,
    UnsupportedVersionError,
    ValidationError,
)
from bookshelf.invalidation import (  # noqa: E402
    AUTHORS_TAG,
    BOOKS_TAG,
    Timing,
    WriteOperation,
    tags_to_invalidate,
)
from bookshelf.keys import build_key  # noqa: E402

# Versioned projection
from bookshelf.projection import FieldSpec, project  # noqa: E402

# Core types
from bookshelf.types import CacheEntry, Pagination, VersionTag  # noqa: E402
from bookshelf.versioning import (  # noqa: E402
    parse_version,
    resolve_version,
    version_at_least,
)

__all__ = [
    "AUTHORS_TAG",
    "BOOKS_TAG",
    "BookshelfError",
    "CacheEntry",
    "ComputeError",
    "FieldResolutionError",
    "FieldSpec",
    "MemoryAdapter",
    "NotFoundError",
    "Pagination",
    "PermissionDeniedError",
    "RedisAdapter",
    "StorageAdapter",
    "TaggedCache",
    "Timing",
    "UnsupportedVersionError",
    "ValidationError",
    "VersionTag",
    "WriteOperation",
    "build_key",
    "parse_version",
    "project",
    "resolve_version",
    "tags_to_invalidate",
    "version_at_least",
]

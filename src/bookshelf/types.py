"""Core types for the bookshelf cache and versioning layer."""

from dataclasses import dataclass

# "1.0", "2.0" - ordered by bookshelf.versioning.parse_version
VersionTag = str


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cached payload with the tags it can be invalidated by."""

    key: str
    payload: bytes
    tags: frozenset[str]


@dataclass(frozen=True, slots=True)
class Pagination:
    """Page window requested by a listing call."""

    page: int = 1
    limit: int = 3

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit < 1:
            raise ValueError("limit must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# Range of a signed 64-bit SQL INTEGER; ids and offsets outside it match no row
SQL_INT_MIN = -(2**63)
SQL_INT_MAX = 2**63 - 1

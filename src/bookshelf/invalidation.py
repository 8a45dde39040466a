"""Which cache tags each write operation invalidates, and when."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from bookshelf.cache import TaggedCache

logger = logging.getLogger(__name__)

AUTHORS_TAG = "AuthorsCache"
BOOKS_TAG = "booksCache"


class WriteOperation(enum.Enum):
    CREATE_AUTHOR = "createAuthor"
    UPDATE_AUTHOR = "updateAuthor"
    DELETE_AUTHOR = "deleteAuthor"
    CREATE_BOOK = "createBook"
    UPDATE_BOOK = "updateBook"
    DELETE_BOOK = "deleteBook"


class Timing(enum.Enum):
    """When the tags are invalidated relative to the write."""

    BEFORE_WRITE = "before_write"
    AFTER_COMMIT = "after_commit"


@dataclass(frozen=True, slots=True)
class InvalidationRule:
    tags: frozenset[str]
    timing: Timing


# updateAuthor purges the books listings, not the authors ones. Kept as the
# service has always behaved; see test_update_author_invalidates_books_tag.
_RULES: dict[WriteOperation, InvalidationRule] = {
    WriteOperation.CREATE_AUTHOR: InvalidationRule(
        frozenset({AUTHORS_TAG}), Timing.BEFORE_WRITE
    ),
    WriteOperation.UPDATE_AUTHOR: InvalidationRule(
        frozenset({BOOKS_TAG}), Timing.AFTER_COMMIT
    ),
    WriteOperation.DELETE_AUTHOR: InvalidationRule(
        frozenset({AUTHORS_TAG}), Timing.BEFORE_WRITE
    ),
    WriteOperation.CREATE_BOOK: InvalidationRule(
        frozenset({BOOKS_TAG}), Timing.BEFORE_WRITE
    ),
    WriteOperation.UPDATE_BOOK: InvalidationRule(
        frozenset({BOOKS_TAG}), Timing.AFTER_COMMIT
    ),
    WriteOperation.DELETE_BOOK: InvalidationRule(
        frozenset({BOOKS_TAG}), Timing.BEFORE_WRITE
    ),
}


def rule_for(operation: WriteOperation) -> InvalidationRule:
    """Get the tags and timing of a write operation."""
    return _RULES[operation]


def tags_to_invalidate(operation: WriteOperation) -> frozenset[str]:
    """Get the cache tags a write operation must invalidate."""
    return rule_for(operation).tags


def invalidate_for(
    cache: TaggedCache, operation: WriteOperation, timing: Timing
) -> None:
    """Invalidate the operation's tags if its rule fires at ``timing``.

    Not transactional: an invalidation done before a write that then fails
    is not undone, and a reader can repopulate the cache between an early
    invalidation and the commit.
    """
    rule = rule_for(operation)
    if rule.timing is not timing:
        return
    logger.debug("Invalidating %s for %s", sorted(rule.tags), operation.value)
    cache.invalidate_tags(rule.tags)

"""Version-aware field projection.

Each resource declares an ordered table of FieldSpec rows:

    BOOK_FIELDS = [
        FieldSpec("id", attrgetter("id")),
        FieldSpec("comment", attrgetter("comment"), introduced_at="2.0"),
    ]

project() turns an entity into a plain dict holding only the fields visible
at the requested version (and serialization group).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from bookshelf.errors import FieldResolutionError
from bookshelf.types import VersionTag
from bookshelf.versioning import parse_version, version_at_least


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One exposed field of a resource."""

    name: str
    accessor: Callable[[Any], Any]
    introduced_at: VersionTag | None = None
    groups: frozenset[str] = field(default_factory=frozenset)
    # Field table used for a related entity or each member of a collection
    nested: Callable[[], Sequence[FieldSpec]] | None = None

    def visible(self, version: VersionTag, group: str | None) -> bool:
        if group is not None and self.groups and group not in self.groups:
            return False
        if self.introduced_at is None:
            return True
        return version_at_least(version, self.introduced_at)


def project(
    entity: Any,
    fields: Sequence[FieldSpec],
    version: VersionTag,
    *,
    group: str | None = None,
) -> dict[str, Any]:
    """Project ``entity`` onto the fields visible at ``version``.

    Args:
        entity: Object the accessors read from
        fields: Field table, in output order
        version: Requested response version
        group: Serialization group; fields declaring groups must list it

    Returns:
        Mapping of field name to value, in declaration order

    Raises:
        FieldResolutionError: An accessor failed; nothing is returned
        UnsupportedVersionError: ``version`` is not a dotted number
    """
    parse_version(version)  # rejects malformed versions even with no versioned field
    return _project(entity, fields, version, group)


def _project(
    entity: Any,
    fields: Sequence[FieldSpec],
    version: VersionTag,
    group: str | None,
) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for spec in fields:
        if not spec.visible(version, group):
            continue
        try:
            value = spec.accessor(entity)
        except Exception as e:
            raise FieldResolutionError(spec.name) from e

        if spec.nested is not None and value is not None:
            nested_fields = spec.nested()
            if _is_collection(value):
                value = [_project(v, nested_fields, version, group) for v in value]
            else:
                value = _project(value, nested_fields, version, group)
        result[spec.name] = value
    return result


def _is_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, dict))

"""
Field tables, hyperlinks and cache settings for each exposed resource.

Two serialization groups exist. ``getBooks`` renders a book with its
author (without the author's books); ``getAuthors`` renders an author with
its books (without each book's author).
"""

import json
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Request

from bookshelf.invalidation import AUTHORS_TAG, BOOKS_TAG
from bookshelf.keys import build_key
from bookshelf.projection import FieldSpec, project
from bookshelf.types import Pagination

from .security import ROLE_ADMIN, Principal

GET_BOOKS = "getBooks"
GET_AUTHORS = "getAuthors"

_BOTH = frozenset({GET_BOOKS, GET_AUTHORS})

AUTHOR_FIELDS: List[FieldSpec] = [
    FieldSpec("id", attrgetter("id"), groups=_BOTH),
    FieldSpec("lastName", attrgetter("last_name"), groups=_BOTH),
    FieldSpec("firstName", attrgetter("first_name"), groups=_BOTH),
    FieldSpec(
        "books",
        attrgetter("books"),
        groups=frozenset({GET_AUTHORS}),
        nested=lambda: BOOK_FIELDS,
    ),
]

BOOK_FIELDS: List[FieldSpec] = [
    FieldSpec("id", attrgetter("id"), groups=_BOTH),
    FieldSpec("title", attrgetter("title"), groups=_BOTH),
    FieldSpec("coverText", attrgetter("cover_text"), groups=_BOTH),
    FieldSpec(
        "author",
        attrgetter("author"),
        groups=frozenset({GET_BOOKS}),
        nested=lambda: AUTHOR_FIELDS,
    ),
    FieldSpec(
        "comment",
        attrgetter("comment"),
        introduced_at="2.0",
        groups=frozenset({GET_BOOKS}),
    ),
]


@dataclass(frozen=True)
class Relation:
    """A hyperlink rendered under ``_links``."""

    name: str
    route: str
    required_role: Optional[str] = None


@dataclass(frozen=True)
class Resource:
    name: str
    fields: Sequence[FieldSpec]
    group: str
    relations: Sequence[Relation]
    cache_tag: str
    list_operation: str


AUTHORS = Resource(
    name="Author",
    fields=AUTHOR_FIELDS,
    group=GET_AUTHORS,
    relations=(
        Relation("self", "detailAuthor"),
        Relation("delete", "deleteAuthor", ROLE_ADMIN),
        Relation("update", "updateAuthor", ROLE_ADMIN),
    ),
    cache_tag=AUTHORS_TAG,
    list_operation="getAllAuthors",
)

BOOKS = Resource(
    name="Book",
    fields=BOOK_FIELDS,
    group=GET_BOOKS,
    relations=(
        Relation("self", "detailBook"),
        Relation("delete", "deleteBook", ROLE_ADMIN),
        Relation("update", "updateBook", ROLE_ADMIN),
    ),
    cache_tag=BOOKS_TAG,
    list_operation="getAllBooks",
)


def build_links(
    resource: Resource,
    entity: Any,
    request: Request,
    principal: Optional[Principal] = None,
) -> Dict[str, Dict[str, str]]:
    """Render the relations the caller may follow. No principal means self only."""
    links: Dict[str, Dict[str, str]] = {}
    for relation in resource.relations:
        if relation.required_role is not None:
            if principal is None or not principal.has_role(relation.required_role):
                continue
        links[relation.name] = {
            "href": str(request.url_for(relation.route, id=entity.id))
        }
    return links


def render(
    resource: Resource,
    entity: Any,
    version: str,
    request: Request,
    principal: Optional[Principal] = None,
) -> Dict[str, Any]:
    body = project(entity, resource.fields, version, group=resource.group)
    body["_links"] = build_links(resource, entity, request, principal)
    return body


def listing_key(
    resource: Resource, pagination: Pagination, version: str, default_version: str
) -> str:
    """Cache key of one listing page, e.g. ``getAllBooks-1-3``.

    Pages rendered at a non-default version get the version as an extra
    key part so versions never share an entry.
    """
    params = [("page", str(pagination.page)), ("limit", str(pagination.limit))]
    if version != default_version:
        params.append(("version", version))
    return build_key(resource.list_operation, params)


def dump(body: Any) -> bytes:
    return json.dumps(body, ensure_ascii=False).encode("utf-8")

"""Request-scoped values shared by the catalog routers."""

from typing import Optional

from fastapi import Header, Query, Request

from bookshelf.cache import TaggedCache
from bookshelf.config import Settings
from bookshelf.errors import UnsupportedVersionError
from bookshelf.types import SQL_INT_MAX, Pagination
from bookshelf.versioning import is_valid_version, resolve_version


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cache(request: Request) -> TaggedCache:
    return request.app.state.cache


def get_version(request: Request, accept: Optional[str] = Header(default=None)) -> str:
    """Resolve the response version from the Accept header.

    A token that is not a dotted number cannot be ordered against field
    versions and is rejected; any well-formed token is accepted.
    """
    default = get_settings(request).default_api_version
    version = resolve_version(accept, default)
    if not is_valid_version(version):
        raise UnsupportedVersionError(version)
    return version


def get_pagination(
    request: Request,
    page: Optional[int] = Query(
        default=None, ge=1, le=SQL_INT_MAX, description="Page to fetch (1-indexed)"
    ),
    limit: Optional[int] = Query(
        default=None, ge=1, le=SQL_INT_MAX, description="Items per page"
    ),
) -> Pagination:
    settings = get_settings(request)
    return Pagination(
        page=page if page is not None else settings.default_page,
        limit=limit if limit is not None else settings.default_limit,
    )

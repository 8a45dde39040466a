"""
Author endpoints.

Endpoints under /api/authors:
- GET    /          : paginated list (cached, tag ``AuthorsCache``)
- GET    /{id}      : one author with its books
- POST   /          : create (ROLE_ADMIN), optional ``idBook`` to attach
- PUT    /{id}      : rename (ROLE_ADMIN)
- DELETE /{id}      : delete, cascading to the author's books
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session, selectinload

from bookshelf.cache import TaggedCache
from bookshelf.config import Settings
from bookshelf.invalidation import Timing, WriteOperation, invalidate_for
from bookshelf.types import Pagination

from .database import get_db
from .dependencies import get_cache, get_pagination, get_settings, get_version
from .models import Author, Book
from .repository import Repository
from .resources import AUTHORS, dump, listing_key, render
from .schemas import AuthorPayload
from .security import ROLE_ADMIN, Principal, get_principal, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/authors", tags=["Authors"])

JSON = "application/json"


@router.get("", name="authors")
def list_authors(
    request: Request,
    pagination: Pagination = Depends(get_pagination),
    version: str = Depends(get_version),
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> Response:
    key = listing_key(AUTHORS, pagination, version, settings.default_api_version)

    def compute() -> bytes:
        authors = Repository(db, Author).find_page(
            pagination, selectinload(Author.books)
        )
        return dump([render(AUTHORS, a, version, request) for a in authors])

    payload = cache.get_or_compute(key, {AUTHORS.cache_tag}, compute)
    return Response(content=payload, media_type=JSON)


@router.get("/{id}", name="detailAuthor")
def get_author(
    id: int,
    request: Request,
    version: str = Depends(get_version),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    author = Repository(db, Author).get_or_404(id)
    return Response(
        content=dump(render(AUTHORS, author, version, request, principal)),
        media_type=JSON,
    )


@router.post("", name="createAuthor", status_code=status.HTTP_201_CREATED)
def create_author(
    payload: AuthorPayload,
    request: Request,
    version: str = Depends(get_version),
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
    principal: Principal = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to create an author")
    ),
) -> Response:
    invalidate_for(cache, WriteOperation.CREATE_AUTHOR, Timing.BEFORE_WRITE)

    author = Author(last_name=payload.last_name, first_name=payload.first_name)
    book = Repository(db, Book).find_by_id(payload.id_book)
    if book is not None:
        author.books.append(book)

    Repository(db, Author).save(author)
    invalidate_for(cache, WriteOperation.CREATE_AUTHOR, Timing.AFTER_COMMIT)
    logger.info(f"Created author {author.id}")

    location = str(request.url_for("detailAuthor", id=author.id))
    return Response(
        content=dump(render(AUTHORS, author, version, request, principal)),
        status_code=status.HTTP_201_CREATED,
        headers={"Location": location},
        media_type=JSON,
    )


@router.put("/{id}", name="updateAuthor", status_code=status.HTTP_204_NO_CONTENT)
def update_author(
    id: int,
    payload: AuthorPayload,
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
    principal: Principal = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to edit an author")
    ),
) -> Response:
    repository = Repository(db, Author)
    author = repository.get_or_404(id)
    invalidate_for(cache, WriteOperation.UPDATE_AUTHOR, Timing.BEFORE_WRITE)

    author.first_name = payload.first_name
    author.last_name = payload.last_name
    repository.save(author)

    invalidate_for(cache, WriteOperation.UPDATE_AUTHOR, Timing.AFTER_COMMIT)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{id}", name="deleteAuthor", status_code=status.HTTP_204_NO_CONTENT)
def delete_author(
    id: int,
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
) -> Response:
    repository = Repository(db, Author)
    author = repository.get_or_404(id)

    invalidate_for(cache, WriteOperation.DELETE_AUTHOR, Timing.BEFORE_WRITE)
    repository.delete(author)
    invalidate_for(cache, WriteOperation.DELETE_AUTHOR, Timing.AFTER_COMMIT)

    logger.info(f"Deleted author {id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

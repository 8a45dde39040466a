"""
Book endpoints.

Endpoints under /api/books:
- GET    /          : paginated list (cached, tag ``booksCache``)
- GET    /{id}      : one book; ``comment`` appears from version 2.0
- POST   /          : create (ROLE_ADMIN), optional ``idAuthor``
- PUT    /{id}      : update title, cover text and author (ROLE_ADMIN)
- DELETE /{id}      : delete

An ``idAuthor`` that matches no author leaves the book without one.
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
from .resources import BOOKS, dump, listing_key, render
from .schemas import BookPayload
from .security import ROLE_ADMIN, Principal, get_principal, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["Books"])

JSON = "application/json"


@router.get("", name="books")
def list_books(
    request: Request,
    pagination: Pagination = Depends(get_pagination),
    version: str = Depends(get_version),
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> Response:
    key = listing_key(BOOKS, pagination, version, settings.default_api_version)

    def compute() -> bytes:
        books = Repository(db, Book).find_page(pagination, selectinload(Book.author))
        return dump([render(BOOKS, b, version, request) for b in books])

    payload = cache.get_or_compute(key, {BOOKS.cache_tag}, compute)
    return Response(content=payload, media_type=JSON)


@router.get("/{id}", name="detailBook")
def get_book(
    id: int,
    request: Request,
    version: str = Depends(get_version),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    book = Repository(db, Book).get_or_404(id)
    return Response(
        content=dump(render(BOOKS, book, version, request, principal)),
        media_type=JSON,
    )


@router.post("", name="createBook", status_code=status.HTTP_201_CREATED)
def create_book(
    payload: BookPayload,
    request: Request,
    version: str = Depends(get_version),
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
    principal: Principal = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to create a book")
    ),
) -> Response:
    invalidate_for(cache, WriteOperation.CREATE_BOOK, Timing.BEFORE_WRITE)

    book = Book(
        title=payload.title,
        cover_text=payload.cover_text,
        comment=payload.comment,
        author=Repository(db, Author).find_by_id(payload.id_author),
    )
    Repository(db, Book).save(book)
    invalidate_for(cache, WriteOperation.CREATE_BOOK, Timing.AFTER_COMMIT)
    logger.info(f"Created book {book.id}")

    location = str(request.url_for("detailBook", id=book.id))
    return Response(
        content=dump(render(BOOKS, book, version, request, principal)),
        status_code=status.HTTP_201_CREATED,
        headers={"Location": location},
        media_type=JSON,
    )


@router.put("/{id}", name="updateBook", status_code=status.HTTP_204_NO_CONTENT)
def update_book(
    id: int,
    payload: BookPayload,
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
    principal: Principal = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to edit a book")
    ),
) -> Response:
    repository = Repository(db, Book)
    book = repository.get_or_404(id)
    invalidate_for(cache, WriteOperation.UPDATE_BOOK, Timing.BEFORE_WRITE)

    book.title = payload.title
    book.cover_text = payload.cover_text
    book.author = Repository(db, Author).find_by_id(payload.id_author)
    repository.save(book)

    invalidate_for(cache, WriteOperation.UPDATE_BOOK, Timing.AFTER_COMMIT)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{id}", name="deleteBook", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    id: int,
    db: Session = Depends(get_db),
    cache: TaggedCache = Depends(get_cache),
) -> Response:
    repository = Repository(db, Book)
    book = repository.get_or_404(id)

    invalidate_for(cache, WriteOperation.DELETE_BOOK, Timing.BEFORE_WRITE)
    repository.delete(book)
    invalidate_for(cache, WriteOperation.DELETE_BOOK, Timing.AFTER_COMMIT)

    logger.info(f"Deleted book {id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

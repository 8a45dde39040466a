"""
Application factory for the catalog API.

The cache, engine and session factory are built once per app and kept on
``app.state``; routers reach them through dependencies.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from bookshelf import __version__
from bookshelf.adapters import MemoryAdapter, RedisAdapter
from bookshelf.cache import TaggedCache
from bookshelf.config import Settings, get_settings
from bookshelf.errors import BookshelfError, ValidationError

from . import authors, books
from .database import create_db_engine, create_session_factory, init_db

logger = logging.getLogger(__name__)


def build_cache(settings: Settings) -> TaggedCache:
    """Create the response cache described by ``settings``."""
    if settings.redis_url:
        logger.info("Using Redis response cache")
        adapter = RedisAdapter.from_url(settings.redis_url, prefix=settings.cache_prefix)
        return TaggedCache(adapter)
    return TaggedCache(MemoryAdapter(max_items=settings.cache_max_items))


def _error_body(exc: BookshelfError) -> dict:
    body = {"status": exc.status_code, "message": exc.message}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.violations
    return body


async def bookshelf_error_handler(request: Request, exc: BookshelfError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    violations = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        path = ".".join(loc[1:]) or (loc[0] if loc else "")
        violations.append((path, error.get("msg", "Invalid value")))
    return await bookshelf_error_handler(request, ValidationError(violations))


def create_app(
    settings: Optional[Settings] = None,
    *,
    cache: Optional[TaggedCache] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Runtime settings (default: read from the environment)
        cache: Response cache (default: built from settings)
        engine: Database engine (default: built from settings)
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    engine = engine or create_db_engine(settings.database_url, echo=settings.sql_debug)
    init_db(engine)
    cache = cache or build_cache(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Bookshelf API started")
        yield
        cache.close()
        engine.dispose()
        logger.info("Bookshelf API stopped")

    app = FastAPI(
        title="Bookshelf catalog API",
        description="Authors and books with versioned, cached responses.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = cache
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.add_exception_handler(BookshelfError, bookshelf_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(authors.router)
    app.include_router(books.router)
    return app

"""Shared pytest fixtures."""

import pytest
from fastapi.testclient import TestClient

from bookshelf import MemoryAdapter, TaggedCache
from bookshelf.api import create_app
from bookshelf.api.database import create_db_engine
from bookshelf.api.models import Author, Book
from bookshelf.config import Settings


@pytest.fixture
def adapter() -> MemoryAdapter:
    """Create a fresh MemoryAdapter for each test."""
    return MemoryAdapter()


@pytest.fixture
def cache(adapter: MemoryAdapter) -> TaggedCache:
    """Create a TaggedCache over the memory adapter."""
    return TaggedCache(adapter)


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", log_level="WARNING")


@pytest.fixture
def app(settings: Settings, cache: TaggedCache):
    """Create the API over an in-memory SQLite database."""
    engine = create_db_engine(settings.database_url)
    application = create_app(settings, cache=cache, engine=engine)
    yield application
    engine.dispose()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def catalog(app) -> dict:
    """Seed two authors and four books. Returns their ids."""
    with app.state.session_factory() as db:
        tolkien = Author(last_name="Tolkien", first_name="J.R.R")
        herbert = Author(last_name="Herbert", first_name="Frank")
        books = [
            Book(title="The Hobbit", cover_text="There and back again", author=tolkien),
            Book(
                title="The Fellowship of the Ring",
                cover_text="One ring",
                comment="First volume",
                author=tolkien,
            ),
            Book(title="Dune", cover_text="Arrakis", author=herbert),
            Book(title="Dune Messiah", cover_text=None, author=herbert),
        ]
        db.add_all([tolkien, herbert, *books])
        db.commit()
        return {
            "authors": [tolkien.id, herbert.id],
            "books": [b.id for b in books],
        }

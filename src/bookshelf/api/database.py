"""
Database engine and session management.

PostgreSQL gets a connection pool; SQLite (local development and tests)
gets foreign keys switched on so author deletes cascade to books.
"""

import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Create database engine with appropriate settings."""
    if not url.startswith("sqlite"):
        engine = create_engine(
            url,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,  # Surfaces as a compute failure when exhausted
            pool_recycle=1800,
            pool_pre_ping=True,
            echo=echo,
        )
        logger.info("Created pooled database engine")
        return engine

    kwargs = {}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, or each session would see its own empty database
        kwargs["poolclass"] = StaticPool

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False},  # Allow multi-thread access
        echo=echo,
        **kwargs,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    logger.info("Created SQLite engine")
    return engine


def init_db(engine: Engine) -> None:
    """Create missing tables."""
    Base.metadata.create_all(bind=engine)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/books")
        def list_books(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

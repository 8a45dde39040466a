"""HTTP boundary: FastAPI routers over SQLAlchemy persistence."""

from bookshelf.api.app import create_app

__all__ = ["create_app"]

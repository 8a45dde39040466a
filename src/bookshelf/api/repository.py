"""Persistence for authors and books."""

from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookshelf.errors import NotFoundError
from bookshelf.types import SQL_INT_MAX, SQL_INT_MIN, Pagination

from .models import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Single-table data access; every write commits on its own."""

    def __init__(self, session: Session, model: Type[ModelT]) -> None:
        self.session = session
        self.model = model

    def find_page(self, pagination: Pagination, *options) -> List[ModelT]:
        if pagination.offset > SQL_INT_MAX:
            return []
        stmt = (
            select(self.model)
            .options(*options)
            .order_by(self.model.id)
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        return list(self.session.scalars(stmt))

    def find_by_id(self, id: Optional[int]) -> Optional[ModelT]:
        if id is None or not SQL_INT_MIN <= id <= SQL_INT_MAX:
            return None
        return self.session.get(self.model, id)

    def get_or_404(self, id: int) -> ModelT:
        entity = self.find_by_id(id)
        if entity is None:
            raise NotFoundError(self.model.__name__, id)
        return entity

    def save(self, entity: ModelT) -> int:
        self.session.add(entity)
        self.session.commit()
        return entity.id

    def delete(self, entity: ModelT) -> None:
        self.session.delete(entity)
        self.session.commit()

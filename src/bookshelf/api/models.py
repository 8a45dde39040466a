"""
SQLAlchemy models for the catalog.

Deleting an author deletes its books (ORM cascade plus ON DELETE CASCADE).
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Author(Base):
    __tablename__ = "author"

    id = Column(Integer, primary_key=True, autoincrement=True)
    last_name = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=True)

    books = relationship(
        "Book",
        back_populates="author",
        cascade="all, delete",
        passive_deletes=True,
        order_by="Book.id",
    )

    def __repr__(self) -> str:
        return f"<Author {self.id} {self.last_name!r}>"


class Book(Base):
    __tablename__ = "book"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    cover_text = Column(Text, nullable=True)
    author_id = Column(
        Integer, ForeignKey("author.id", ondelete="CASCADE"), nullable=True, index=True
    )
    # Exposed from API version 2.0
    comment = Column(String(255), nullable=True)

    author = relationship("Author", back_populates="books")

    def __repr__(self) -> str:
        return f"<Book {self.id} {self.title!r}>"

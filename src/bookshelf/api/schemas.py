"""
Request bodies for the catalog endpoints.

Fields use the camelCase names of the JSON API. ``idAuthor``/``idBook``
name an entity to associate; an id that does not resolve means no
association rather than an error.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError


def _not_blank(value: str, message: str) -> str:
    if not value.strip():
        raise PydanticCustomError("not_blank", message)
    return value


class AuthorPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_name: str = Field(
        ...,
        alias="lastName",
        min_length=1,
        max_length=255,
        description="Required, 1 to 255 characters",
    )
    first_name: Optional[str] = Field(default=None, alias="firstName", max_length=255)
    id_book: Optional[int] = Field(
        default=None, alias="idBook", description="Book to attach on create"
    )

    @field_validator("last_name")
    @classmethod
    def last_name_not_blank(cls, value: str) -> str:
        return _not_blank(value, "The author's last name is required")


class BookPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255)
    cover_text: Optional[str] = Field(default=None, alias="coverText")
    comment: Optional[str] = Field(
        default=None, max_length=255, description="Set on create only"
    )
    id_author: Optional[int] = Field(default=None, alias="idAuthor")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        return _not_blank(value, "The book title is required")

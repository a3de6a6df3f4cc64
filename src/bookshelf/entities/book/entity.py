"""Entity: Book."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class Book(BaseModel):
    """Book entity representing a single row of the books table.

    An ``id`` of 0 marks a book that has not been persisted yet; stores assign
    the real id on insert. Text fields are never ``None``: absent values are
    held as empty strings.
    """

    id: int = Field(default=0, ge=0, description="Store-assigned identifier")
    title: str = Field(default="", description="Title")
    author: str = Field(default="", description="Author")
    published_date: str = Field(default="", description="Free-form publication date")
    image_url: str = Field(default="", description="Cover image URL")
    description: str = Field(default="", description="Description")
    created_by: str = Field(default="", description="Display name of the creator")
    created_by_id: str = Field(default="", description="Identifier of the creator")

    @field_validator(
        "title",
        "author",
        "published_date",
        "image_url",
        "description",
        "created_by",
        "created_by_id",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

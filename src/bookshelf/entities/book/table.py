"""Book database table model."""

import sqlalchemy as sa
from sqlalchemy.dialects import mysql
from sqlmodel import Field, SQLModel

# Unsigned on MySQL, plain INTEGER elsewhere so SQLite keeps its rowid alias.
_ID_TYPE = sa.Integer().with_variant(mysql.INTEGER(unsigned=True), "mysql")


def _text_column(name: str, length: int | None = 255) -> sa.Column:
    column_type = sa.String(length) if length else sa.Text()
    return sa.Column(name, column_type, nullable=True)


class BookTable(SQLModel, table=True):
    """Database persistence model for books.

    Column names follow the stored schema (``publishedDate``, ``imageUrl``,
    ...) while attribute names stay snake_case. Column order is significant:
    rows are decoded positionally in this order.
    """

    __tablename__ = "books"

    id: int | None = Field(
        default=None,
        sa_column=sa.Column(
            "id", _ID_TYPE, primary_key=True, autoincrement=True, nullable=False
        ),
    )
    title: str | None = Field(default=None, sa_column=_text_column("title"))
    author: str | None = Field(default=None, sa_column=_text_column("author"))
    published_date: str | None = Field(
        default=None, sa_column=_text_column("publishedDate")
    )
    image_url: str | None = Field(default=None, sa_column=_text_column("imageUrl"))
    description: str | None = Field(
        default=None, sa_column=_text_column("description", length=None)
    )
    created_by: str | None = Field(default=None, sa_column=_text_column("createdBy"))
    created_by_id: str | None = Field(
        default=None, sa_column=_text_column("createdById")
    )

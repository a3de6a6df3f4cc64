"""Book store abstraction and its implementations."""

from .book_database import BookDatabase, InMemoryBookDatabase
from .factory import create_book_database
from .sql_book_database import SQLBookDatabase

__all__ = [
    "BookDatabase",
    "InMemoryBookDatabase",
    "SQLBookDatabase",
    "create_book_database",
]

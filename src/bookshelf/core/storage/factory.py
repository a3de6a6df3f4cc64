"""Construction of book stores from the runtime configuration."""

from typing import Literal

from loguru import logger

from src.bookshelf.core.storage.book_database import BookDatabase, InMemoryBookDatabase
from src.bookshelf.core.storage.sql_book_database import SQLBookDatabase
from src.bookshelf.runtime.config.config_data import DatabaseConfig
from src.bookshelf.runtime.context import get_config

Backend = Literal["sql", "memory"]


def create_book_database(
    config: DatabaseConfig | None = None, backend: Backend = "sql"
) -> BookDatabase:
    """Create a book store.

    Args:
        config: Database settings. Defaults to the current context's
            ``database`` section.
        backend: ``"sql"`` for the relational store, ``"memory"`` for the
            in-memory store.

    Raises:
        ValueError: Unknown backend
        BookDatabaseError: The relational store could not be constructed
    """
    if backend == "memory":
        logger.info("Using in-memory book database")
        return InMemoryBookDatabase()
    if backend == "sql":
        return SQLBookDatabase(config or get_config().database)
    raise ValueError(f"Unknown book database backend: {backend!r}")

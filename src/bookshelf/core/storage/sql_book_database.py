"""Relational implementation of the book store.

Construction bootstraps the database and the ``books`` table when they are
missing, checks that the bound engine answers, and compiles the six
statements the store runs. Any failure along the way aborts construction, so
a ``SQLBookDatabase`` instance is always ready to use.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from loguru import logger
from sqlalchemy import (
    Connection,
    CursorResult,
    Engine,
    Executable,
    bindparam,
    create_engine,
    delete,
    insert,
    inspect,
    select,
    text,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateTable

from src.bookshelf.core.errors import (
    BookDatabaseError,
    BookNotFoundError,
    DatabaseConnectionError,
    PrepareError,
    RowCountMismatchError,
    ScanError,
    SchemaError,
)
from src.bookshelf.core.storage.book_database import BookDatabase, require_book_id
from src.bookshelf.entities.book import Book, BookTable
from src.bookshelf.runtime.config.config_data import DatabaseConfig

BOOKS = BookTable.__table__

# Rows are decoded positionally in this order.
BOOK_FIELDS: tuple[str, ...] = tuple(Book.model_fields)
_MAPPED_COLUMNS = inspect(BookTable).columns
BOOK_COLUMNS = tuple(_MAPPED_COLUMNS[field] for field in BOOK_FIELDS)

_ID_COLUMN = _MAPPED_COLUMNS["id"]
_DATA_FIELDS = BOOK_FIELDS[1:]
_DATA_COLUMNS = BOOK_COLUMNS[1:]


def build_statements() -> dict[str, Executable]:
    """Build the statements run by the store, keyed by name."""
    # Bind names must not collide with column names in INSERT/UPDATE
    values = {
        column: bindparam(f"new_{field}")
        for field, column in zip(_DATA_FIELDS, _DATA_COLUMNS)
    }
    by_id = _ID_COLUMN == bindparam("book_id")
    listing = select(*BOOK_COLUMNS).order_by(_MAPPED_COLUMNS["title"])

    return {
        "list": listing,
        "list_by": listing.where(
            _MAPPED_COLUMNS["created_by_id"] == bindparam("owner_id")
        ),
        "get": select(*BOOK_COLUMNS).where(by_id),
        "insert": insert(BOOKS).values(values),
        "update": update(BOOKS).where(by_id).values(values),
        "delete": delete(BOOKS).where(by_id),
    }


def scan_book(row: Sequence[Any]) -> Book:
    """Decode a result row into a book.

    NULL text columns become empty strings.

    Raises:
        ScanError: The row does not have the book shape
    """
    try:
        values = dict(zip(BOOK_FIELDS, row, strict=True))
        return Book(**values)
    except (ValueError, TypeError) as e:
        raise ScanError(f"could not read row: {e}") from e


def _book_values(book: Book) -> dict[str, str]:
    return {f"new_{field}": getattr(book, field) for field in _DATA_FIELDS}


def namespace_exists(connection: Connection, name: str) -> bool:
    """Check whether the database (schema) ``name`` exists."""
    return inspect(connection).has_schema(name)


def table_exists(connection: Connection, name: str) -> bool:
    """Check whether the books table exists inside ``name``."""
    return inspect(connection).has_table(BOOKS.name, schema=name)


def create_schema(connection: Connection, config: DatabaseConfig, create_namespace: bool) -> None:
    """Create the database (when asked) and the books table inside it."""
    if create_namespace:
        quoted = connection.dialect.identifier_preparer.quote_identifier(config.name)
        logger.info("Creating database {}", config.name)
        connection.execute(
            text(
                f"CREATE DATABASE IF NOT EXISTS {quoted} "
                f"DEFAULT CHARACTER SET = '{config.charset}' "
                f"DEFAULT COLLATE '{config.collation}'"
            )
        )

    # Route the unqualified books table into the configured database
    scoped = connection.execution_options(schema_translate_map={None: config.name})
    logger.info("Creating table {}.{}", config.name, BOOKS.name)
    scoped.execute(CreateTable(BOOKS, if_not_exists=True))


class SQLBookDatabase(BookDatabase):
    """Book store backed by a relational database through SQLAlchemy.

    Args:
        config: Connection settings; ``config.name`` is the database holding
            the books table.
        engine: Optional engine already bound to the database. When given it
            is used for bootstrapping as well.

    The store owns its engine, injected or not: ``close`` disposes it, and so
    does any failure during construction.

    Raises:
        DatabaseConnectionError: The server cannot be reached
        SchemaError: The database or the table cannot be created
        PrepareError: A statement cannot be compiled
    """

    def __init__(self, config: DatabaseConfig, engine: Engine | None = None):
        self._config = config

        injected = engine is not None
        if not injected:
            logger.info("Connecting to {}", self._redacted_address())
            server_engine = self._create_engine("")
            try:
                self._ensure_table_exists(server_engine)
            finally:
                server_engine.dispose()
            engine = self._create_engine(config.name)

        try:
            if injected:
                self._ensure_table_exists(engine)
            self._check_connection(engine)
            self._statements = self._prepare_statements(engine)
        except BookDatabaseError:
            engine.dispose()
            raise
        self._engine = engine
        logger.info("Book database {} ready", config.name)

    def _redacted_address(self) -> str:
        redacted = {"password": None, "password_file": None, "password_env_var": None}
        return self._config.model_copy(update=redacted).data_store_name()

    def _create_engine(self, database: str) -> Engine:
        try:
            return create_engine(
                self._config.connection_url(database),
                echo=self._config.echo,
                pool_pre_ping=True,
            )
        except (SQLAlchemyError, ImportError) as e:
            raise DatabaseConnectionError(
                f"could not get a connection: {e}"
            ) from e

    def _ensure_table_exists(self, engine: Engine) -> None:
        name = self._config.name
        try:
            with engine.connect() as conn:
                has_namespace = namespace_exists(conn, name)
                has_table = has_namespace and table_exists(conn, name)
        except SQLAlchemyError as e:
            logger.error("Could not inspect database {}: {}", name, e)
            raise DatabaseConnectionError(
                "could not connect to the database. could be bad address, "
                f"or this address is not allowed access: {e}"
            ) from e

        if has_table:
            logger.debug("Table {}.{} already exists", name, BOOKS.name)
            return

        try:
            with engine.begin() as conn:
                create_schema(conn, self._config, create_namespace=not has_namespace)
        except SQLAlchemyError as e:
            logger.error("Could not create schema {}: {}", name, e)
            raise SchemaError(f"could not create schema {name}: {e}") from e

    def _check_connection(self, engine: Engine) -> None:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"could not establish a good connection: {e}"
            ) from e

    def _prepare_statements(self, engine: Engine) -> dict[str, Executable]:
        # Compiling here surfaces statement errors before the store is
        # handed out; executions then reuse SQLAlchemy's compiled cache.
        statements = {}
        for name, statement in build_statements().items():
            try:
                statement.compile(dialect=engine.dialect)
            except SQLAlchemyError as e:
                raise PrepareError(f"prepare {name}: {e}") from e
            logger.debug("Prepared {} statement", name)
            statements[name] = statement
        return statements

    def _query(self, operation: str, name: str, params: dict[str, Any] | None = None) -> list[Book]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(self._statements[name], params or {}).all()
        except SQLAlchemyError as e:
            logger.error("{} failed: {}", operation, e)
            raise BookDatabaseError(f"{operation}: could not execute statement: {e}") from e

        return [scan_book(row) for row in rows]

    def _exec_affecting_one_row(
        self, operation: str, name: str, params: dict[str, Any]
    ) -> CursorResult:
        """Execute a mutation in its own transaction, requiring one affected row.

        Any other row count rolls the transaction back.
        """
        try:
            with self._engine.begin() as conn:
                result = conn.execute(self._statements[name], params)
                if result.rowcount != 1:
                    raise RowCountMismatchError(operation, result.rowcount)
                return result
        except SQLAlchemyError as e:
            logger.error("{} failed: {}", operation, e)
            raise BookDatabaseError(f"{operation}: could not execute statement: {e}") from e

    def list_books(self) -> list[Book]:
        """List all books ordered by title."""
        return self._query("list_books", "list")

    def list_books_created_by(self, owner_id: str) -> list[Book]:
        """List the owner's books ordered by title; an empty id lists all."""
        if owner_id == "":
            return self.list_books()
        return self._query("list_books_created_by", "list_by", {"owner_id": owner_id})

    def get_book(self, book_id: int) -> Book:
        """Get the book with ``book_id``."""
        books = self._query("get_book", "get", {"book_id": book_id})
        if not books:
            raise BookNotFoundError(book_id)
        return books[0]

    def add_book(self, book: Book) -> int:
        """Insert ``book`` and return the assigned id."""
        result = self._exec_affecting_one_row("add_book", "insert", _book_values(book))
        try:
            book_id = result.inserted_primary_key[0]
        except (SQLAlchemyError, TypeError, IndexError) as e:
            raise BookDatabaseError(f"add_book: could not get last insert ID: {e}") from e
        logger.debug("Added book {} ({!r})", book_id, book.title)
        return book_id

    def update_book(self, book: Book) -> None:
        """Replace every column of the row with ``book.id``."""
        require_book_id(book.id, "update_book")
        params = _book_values(book) | {"book_id": book.id}
        self._exec_affecting_one_row("update_book", "update", params)
        logger.debug("Updated book {}", book.id)

    def delete_book(self, book_id: int) -> None:
        """Delete the row with ``book_id``."""
        require_book_id(book_id, "delete_book")
        self._exec_affecting_one_row("delete_book", "delete", {"book_id": book_id})
        logger.debug("Deleted book {}", book_id)

    def namespace_exists(self) -> bool:
        """Check whether the configured database exists."""
        with self._engine.connect() as conn:
            return namespace_exists(conn, self._config.name)

    def table_exists(self) -> bool:
        """Check whether the books table exists."""
        with self._engine.connect() as conn:
            return table_exists(conn, self._config.name)

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error(
                "Database health check failed",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            return False

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        self._engine.dispose()
        logger.info("Book database {} closed", self._config.name)

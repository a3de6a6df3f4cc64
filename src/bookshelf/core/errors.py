"""Error kinds raised by book stores."""


class BookDatabaseError(Exception):
    """Base class for every error raised by a book store."""


class DatabaseConnectionError(BookDatabaseError):
    """The store could not be reached or authenticated against."""


class SchemaError(BookDatabaseError):
    """Creating the database or the books table failed."""


class PrepareError(BookDatabaseError):
    """A required statement could not be compiled."""


class BookNotFoundError(BookDatabaseError):
    """No book matched the requested id."""

    def __init__(self, book_id: int):
        super().__init__(f"could not find book with id {book_id}")
        self.book_id = book_id


class InvalidArgumentError(BookDatabaseError, ValueError):
    """A mutating operation was called with an unassigned id."""


class RowCountMismatchError(BookDatabaseError):
    """A mutating statement did not affect exactly one row."""

    def __init__(self, operation: str, rows_affected: int):
        super().__init__(
            f"{operation}: expected 1 row affected, got {rows_affected}"
        )
        self.operation = operation
        self.rows_affected = rows_affected


class ScanError(BookDatabaseError):
    """A result row could not be decoded into a book."""

"""Book store interface and in-memory implementation.

Every store exposes the same contract: books are listed ordered by title,
single-row mutations must touch exactly one row, and mutations with an
unassigned id are rejected before the store is touched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from loguru import logger

from src.bookshelf.core.errors import (
    BookNotFoundError,
    InvalidArgumentError,
    RowCountMismatchError,
)
from src.bookshelf.entities.book import Book


class BookDatabase(ABC):
    """Abstract interface for book storage backends."""

    @abstractmethod
    def list_books(self) -> list[Book]:
        """List every book ordered by title.

        Returns:
            Books sorted by title, empty when the store is empty
        """
        pass

    @abstractmethod
    def list_books_created_by(self, owner_id: str) -> list[Book]:
        """List the books created by ``owner_id`` ordered by title.

        Args:
            owner_id: Creator identifier. An empty string disables the filter.

        Returns:
            Matching books sorted by title
        """
        pass

    @abstractmethod
    def get_book(self, book_id: int) -> Book:
        """Retrieve a book.

        Args:
            book_id: Identifier of the book

        Raises:
            BookNotFoundError: No book has this id
        """
        pass

    @abstractmethod
    def add_book(self, book: Book) -> int:
        """Insert a book, ignoring ``book.id``.

        Args:
            book: Book to insert

        Returns:
            The identifier assigned by the store
        """
        pass

    @abstractmethod
    def update_book(self, book: Book) -> None:
        """Replace every field of the stored book with ``book.id``.

        Raises:
            InvalidArgumentError: ``book.id`` is unassigned
            RowCountMismatchError: No stored book has this id
        """
        pass

    @abstractmethod
    def delete_book(self, book_id: int) -> None:
        """Delete a book.

        Raises:
            InvalidArgumentError: ``book_id`` is unassigned
            RowCountMismatchError: No stored book has this id
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resources."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if the store is healthy and available
        """
        pass

    def __enter__(self) -> BookDatabase:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def require_book_id(book_id: int, operation: str) -> None:
    """Reject an unassigned id before a mutation reaches the store."""
    if book_id == 0:
        raise InvalidArgumentError(
            f"{operation}: book with unassigned ID passed into {operation}"
        )


class InMemoryBookDatabase(BookDatabase):
    """In-memory book storage following the same contract as the SQL store."""

    def __init__(self):
        self._books: dict[int, Book] = {}
        self._next_id = 1

    def _sorted(self, books) -> list[Book]:
        return [book.model_copy() for book in sorted(books, key=lambda b: b.title)]

    def list_books(self) -> list[Book]:
        """Return copies of all books ordered by title."""
        return self._sorted(self._books.values())

    def list_books_created_by(self, owner_id: str) -> list[Book]:
        """Return copies of the owner's books ordered by title."""
        if owner_id == "":
            return self.list_books()
        return self._sorted(
            book for book in self._books.values() if book.created_by_id == owner_id
        )

    def get_book(self, book_id: int) -> Book:
        """Return a copy of the stored book."""
        if book_id not in self._books:
            raise BookNotFoundError(book_id)
        return self._books[book_id].model_copy()

    def add_book(self, book: Book) -> int:
        """Store a copy of the book under the next free id."""
        book_id = self._next_id
        self._next_id += 1
        self._books[book_id] = book.model_copy(update={"id": book_id})
        logger.debug("Added book {} ({!r}) in memory", book_id, book.title)
        return book_id

    def update_book(self, book: Book) -> None:
        """Replace the stored book with a copy of ``book``."""
        require_book_id(book.id, "update_book")
        if book.id not in self._books:
            raise RowCountMismatchError("update_book", 0)
        self._books[book.id] = book.model_copy()

    def delete_book(self, book_id: int) -> None:
        """Drop the stored book."""
        require_book_id(book_id, "delete_book")
        if self._books.pop(book_id, None) is None:
            raise RowCountMismatchError("delete_book", 0)

    def close(self) -> None:
        """Forget every stored book."""
        self._books.clear()

    def health_check(self) -> bool:
        """In-memory storage is always available."""
        return True

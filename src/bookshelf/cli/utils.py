"""Shared utilities for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.bookshelf.core.errors import BookDatabaseError
from src.bookshelf.core.storage import BookDatabase, create_book_database
from src.bookshelf.entities.book import Book

# Initialize Rich console for colored output
console = Console()


def fail(message: str, error: Exception | None = None) -> typer.Exit:
    """Print an error and build the exit to raise."""
    detail = f": {escape(str(error))}" if error is not None else ""
    console.print(f"[red]❌ {escape(message)}{detail}[/red]")
    return typer.Exit(code=1)


@contextmanager
def open_book_database(ctx: typer.Context) -> Iterator[BookDatabase]:
    """Open the configured book store for the duration of a command.

    Store errors raised by the command body are reported and turned into a
    non-zero exit.
    """
    backend = ctx.obj.get("backend", "sql") if ctx.obj else "sql"
    try:
        database = create_book_database(backend=backend)
    except BookDatabaseError as e:
        raise fail("Could not open the book database", e) from e

    with database:
        try:
            yield database
        except BookDatabaseError as e:
            raise fail("Book database operation failed", e) from e


def books_table(books: list[Book], title: str) -> Table:
    """Render books as a Rich table."""
    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="green")
    table.add_column("Author", style="blue")
    table.add_column("Published", style="magenta")
    table.add_column("Created By", style="yellow")

    for book in books:
        table.add_row(
            str(book.id),
            escape(book.title),
            escape(book.author),
            escape(book.published_date),
            escape(book.created_by),
        )

    return table


def book_details(book: Book) -> Table:
    """Render every field of a book as a two-column table."""
    table = Table(title=f"Book {book.id}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    for field, value in book.model_dump().items():
        table.add_row(field.replace("_", " ").title(), escape(str(value)))

    return table

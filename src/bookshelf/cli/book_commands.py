"""Book management CLI commands."""

import typer
from rich.prompt import Confirm

from src.bookshelf.core.errors import BookNotFoundError
from src.bookshelf.entities.book import Book

from .utils import book_details, books_table, console, fail, open_book_database

# Create the books subcommand app
books_app = typer.Typer(help="📚 Manage books in the configured store")


@books_app.command("list")
def list_books(
    ctx: typer.Context,
    owner: str = typer.Option("", "--owner", "-o", help="Only books created by this user ID"),
) -> None:
    """List books ordered by title."""
    with open_book_database(ctx) as database:
        books = database.list_books_created_by(owner)

    if not books:
        console.print("[yellow]No books found[/yellow]")
        return

    title = f"Books created by '{owner}'" if owner else "Books"
    console.print(books_table(books, title))
    console.print(f"\n[green]Found {len(books)} books[/green]")


@books_app.command("get")
def get_book(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="ID of the book"),
) -> None:
    """Show every field of a book."""
    with open_book_database(ctx) as database:
        try:
            book = database.get_book(book_id)
        except BookNotFoundError as e:
            raise fail(f"Book {book_id} not found") from e

    console.print(book_details(book))


@books_app.command("add")
def add_book(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t", help="Title"),
    author: str = typer.Option("", "--author", "-a", help="Author"),
    published_date: str = typer.Option("", "--published-date", "-p", help="Publication date"),
    image_url: str = typer.Option("", "--image-url", help="Cover image URL"),
    description: str = typer.Option("", "--description", "-d", help="Description"),
    created_by: str = typer.Option("", "--created-by", help="Creator display name"),
    created_by_id: str = typer.Option("", "--created-by-id", help="Creator user ID"),
) -> None:
    """Add a book and print its new ID."""
    book = Book(
        title=title,
        author=author,
        published_date=published_date,
        image_url=image_url,
        description=description,
        created_by=created_by,
        created_by_id=created_by_id,
    )

    with open_book_database(ctx) as database:
        book_id = database.add_book(book)

    console.print(f"[green]✅ Added book {book_id}: {title}[/green]")


@books_app.command("update")
def update_book(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="ID of the book"),
    title: str | None = typer.Option(None, "--title", "-t", help="Title"),
    author: str | None = typer.Option(None, "--author", "-a", help="Author"),
    published_date: str | None = typer.Option(None, "--published-date", "-p", help="Publication date"),
    image_url: str | None = typer.Option(None, "--image-url", help="Cover image URL"),
    description: str | None = typer.Option(None, "--description", "-d", help="Description"),
    created_by: str | None = typer.Option(None, "--created-by", help="Creator display name"),
    created_by_id: str | None = typer.Option(None, "--created-by-id", help="Creator user ID"),
) -> None:
    """Change the given fields of a book, keeping the others."""
    changes = {
        "title": title,
        "author": author,
        "published_date": published_date,
        "image_url": image_url,
        "description": description,
        "created_by": created_by,
        "created_by_id": created_by_id,
    }
    changes = {field: value for field, value in changes.items() if value is not None}

    with open_book_database(ctx) as database:
        try:
            book = database.get_book(book_id)
        except BookNotFoundError as e:
            raise fail(f"Book {book_id} not found") from e
        database.update_book(book.model_copy(update=changes))

    console.print(f"[green]✅ Updated book {book_id}[/green]")


@books_app.command("delete")
def delete_book(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="ID of the book"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Delete a book."""
    if not force and not Confirm.ask(f"Are you sure you want to delete book {book_id}?"):
        console.print("[yellow]Deletion cancelled[/yellow]")
        return

    with open_book_database(ctx) as database:
        database.delete_book(book_id)

    console.print(f"[green]✅ Deleted book {book_id}[/green]")

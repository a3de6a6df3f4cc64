"""Main CLI application module."""

from pathlib import Path

import typer
from rich.markup import escape

from src.bookshelf.core.errors import BookDatabaseError, BookNotFoundError
from src.bookshelf.entities.book import Book
from src.bookshelf.runtime.context import get_config, load_config, set_config
from src.bookshelf.runtime.logging_setup import configure_logging

from .book_commands import books_app
from .utils import book_details, console, fail, open_book_database

# Create the main CLI application
app = typer.Typer(
    help="📚 Bookshelf CLI - Manage the book records database",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(books_app, name="books")

DEMO_BOOK = Book(
    title="小朋友",
    author="小朋友",
    published_date="2018-06-28",
    image_url="http://www.baidu.com",
    description="哈哈啊哈哈哈哈啊",
    created_by="tiny",
    created_by_id="110",
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="Path to the YAML configuration file"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Override the log level"),
    backend: str = typer.Option(
        "sql", "--backend", "-b", help="Book store backend: sql or memory"
    ),
) -> None:
    """Load configuration and logging before any command runs."""
    if backend not in ("sql", "memory"):
        raise typer.BadParameter("must be 'sql' or 'memory'", param_hint="--backend")

    if config_file is not None:
        try:
            set_config(load_config(config_file))
        except (ValueError, OSError) as e:
            raise fail("Could not load configuration", e) from e

    configure_logging(level=log_level)
    ctx.obj = {"backend": backend}


@app.command("init")
def init_database(ctx: typer.Context) -> None:
    """Create the database and the books table when they are missing."""
    with open_book_database(ctx) as database:
        healthy = database.health_check()

    if not healthy:
        raise fail("Book database is not answering")

    if ctx.obj["backend"] == "memory":
        console.print("[green]✅ In-memory book database ready[/green]")
        return

    db_config = get_config().database.model_copy(
        update={"password": None, "password_file": None, "password_env_var": None}
    )
    console.print(
        f"[green]✅ Book database ready at {escape(db_config.data_store_name())}[/green]"
    )


@app.command("demo")
def demo(ctx: typer.Context) -> None:
    """Add a sample book and read it back."""
    with open_book_database(ctx) as database:
        try:
            book_id = database.add_book(DEMO_BOOK)
        except BookDatabaseError as e:
            raise fail("Could not add the sample book", e) from e

        try:
            book = database.get_book(book_id)
        except BookNotFoundError as e:
            raise fail(f"Sample book {book_id} disappeared", e) from e

    console.print(book_details(book))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

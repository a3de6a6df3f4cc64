"""Tests for the bookshelf command line interface."""

import pytest
from typer.testing import CliRunner

from src.bookshelf import cli
from src.bookshelf.cli import utils as cli_utils
from src.bookshelf.core.errors import DatabaseConnectionError
from src.bookshelf.core.storage import InMemoryBookDatabase
from src.bookshelf.entities.book import Book
from src.bookshelf.runtime.context import get_config, set_config

runner = CliRunner()


class KeepOpenBookDatabase(InMemoryBookDatabase):
    """In-memory store that survives the CLI closing it, so tests can inspect it."""

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep Loguru sinks away from the runner's temporary streams."""
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)


@pytest.fixture
def store(monkeypatch) -> KeepOpenBookDatabase:
    database = KeepOpenBookDatabase()
    monkeypatch.setattr(cli_utils, "create_book_database", lambda backend="sql": database)
    return database


class TestDemo:
    def test_demo_with_memory_backend(self):
        result = runner.invoke(cli.app, ["--backend", "memory", "demo"])

        assert result.exit_code == 0, result.output
        assert "小朋友" in result.output
        assert "2018-06-28" in result.output

    def test_demo_reports_connection_failure(self, monkeypatch):
        def unreachable(backend="sql"):
            raise DatabaseConnectionError("could not connect to the database")

        monkeypatch.setattr(cli_utils, "create_book_database", unreachable)

        result = runner.invoke(cli.app, ["demo"])

        assert result.exit_code == 1
        assert "Could not open the book database" in result.output

    def test_unknown_backend(self):
        result = runner.invoke(cli.app, ["--backend", "redis", "demo"])

        assert result.exit_code != 0


class TestInit:
    def test_init_memory(self):
        result = runner.invoke(cli.app, ["--backend", "memory", "init"])

        assert result.exit_code == 0, result.output
        assert "In-memory book database ready" in result.output

    def test_init_prints_address_without_password(self, store: KeepOpenBookDatabase):
        original_config = get_config()
        config = original_config.model_copy(deep=True)
        config.database.password = "hunter2"
        set_config(config)

        try:
            result = runner.invoke(cli.app, ["init"])
        finally:
            set_config(original_config)

        assert result.exit_code == 0, result.output
        assert "Book database ready at" in result.output
        assert "hunter2" not in result.output


class TestBookCommands:
    def test_list_empty(self, store: KeepOpenBookDatabase):
        result = runner.invoke(cli.app, ["books", "list"])

        assert result.exit_code == 0
        assert "No books found" in result.output

    def test_list_books(self, store: KeepOpenBookDatabase):
        store.add_book(Book(title="Zeta", created_by_id="alice-1"))
        store.add_book(Book(title="Alpha", created_by_id="bob-2"))

        result = runner.invoke(cli.app, ["books", "list"])

        assert result.exit_code == 0
        assert result.output.index("Alpha") < result.output.index("Zeta")
        assert "Found 2 books" in result.output

    def test_list_by_owner(self, store: KeepOpenBookDatabase):
        store.add_book(Book(title="Zeta", created_by_id="alice-1"))
        store.add_book(Book(title="Alpha", created_by_id="bob-2"))

        result = runner.invoke(cli.app, ["books", "list", "--owner", "alice-1"])

        assert result.exit_code == 0
        assert "Zeta" in result.output
        assert "Alpha" not in result.output

    def test_add(self, store: KeepOpenBookDatabase):
        result = runner.invoke(
            cli.app,
            ["books", "add", "--title", "Dune", "--author", "Frank Herbert", "--created-by-id", "alice-1"],
        )

        assert result.exit_code == 0, result.output
        assert "Added book 1" in result.output
        assert store.get_book(1).author == "Frank Herbert"
        assert store.get_book(1).created_by_id == "alice-1"

    def test_get(self, store: KeepOpenBookDatabase):
        book_id = store.add_book(Book(title="Dune", description="Spice."))

        result = runner.invoke(cli.app, ["books", "get", str(book_id)])

        assert result.exit_code == 0
        assert "Dune" in result.output
        assert "Spice." in result.output

    def test_get_missing(self, store: KeepOpenBookDatabase):
        result = runner.invoke(cli.app, ["books", "get", "99"])

        assert result.exit_code == 1
        assert "Book 99 not found" in result.output

    def test_update_keeps_other_fields(self, store: KeepOpenBookDatabase):
        book_id = store.add_book(Book(title="Dune", author="Frank Herbert"))

        result = runner.invoke(cli.app, ["books", "update", str(book_id), "--title", "Dune Messiah"])

        assert result.exit_code == 0, result.output
        assert store.get_book(book_id).title == "Dune Messiah"
        assert store.get_book(book_id).author == "Frank Herbert"

    def test_update_missing(self, store: KeepOpenBookDatabase):
        result = runner.invoke(cli.app, ["books", "update", "5", "--title", "Ghost"])

        assert result.exit_code == 1
        assert "Book 5 not found" in result.output

    def test_delete_with_force(self, store: KeepOpenBookDatabase):
        book_id = store.add_book(Book(title="Dune"))

        result = runner.invoke(cli.app, ["books", "delete", str(book_id), "--force"])

        assert result.exit_code == 0
        assert store.list_books() == []

    def test_delete_cancelled(self, store: KeepOpenBookDatabase):
        book_id = store.add_book(Book(title="Dune"))

        result = runner.invoke(cli.app, ["books", "delete", str(book_id)], input="n\n")

        assert result.exit_code == 0
        assert "Deletion cancelled" in result.output
        assert len(store.list_books()) == 1

    def test_delete_missing(self, store: KeepOpenBookDatabase):
        result = runner.invoke(cli.app, ["books", "delete", "3", "--force"])

        assert result.exit_code == 1
        assert "Book database operation failed" in result.output

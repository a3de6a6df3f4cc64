"""Entity package: Book."""

from .entity import Book
from .table import BookTable

__all__ = ["Book", "BookTable"]

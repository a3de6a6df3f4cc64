"""Entities module with entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model
- table.py: Database persistence model
"""

from .book import Book, BookTable

__all__ = ["Book", "BookTable"]

"""Bookshelf: data-access layer for a relational table of book records.

This package contains the book entity, the store interface with its SQL and
in-memory implementations, and the runtime configuration used to build them.
"""

__version__ = "0.1.0"

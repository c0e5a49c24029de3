"""Database package for flipdeck.

This package provides the DuckDB-backed card store.
Only FlashcardDatabase is exported as the public API.
"""

from .database import FlashcardDatabase

__all__ = ["FlashcardDatabase"]

"""Database package for vocabcore.

CardStore is the interface the session runner depends on; CardDatabase is
its DuckDB implementation.
"""

from .database import CardDatabase
from .store import CardStore

__all__ = ["CardDatabase", "CardStore"]

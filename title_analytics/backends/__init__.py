"""Query backends for title analytics."""

from .base import QueryBackend
from .duckdb import DuckDBBackend

__all__ = ["QueryBackend", "DuckDBBackend"]

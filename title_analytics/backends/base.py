"""Backend interface: a SQL engine the loader and queries run against."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Optional
import pyarrow as pa


class QueryBackend(ABC):
    """
    A relational engine holding the title table.

    The loader exposes the parsed file as a view, stages and materializes
    it with SQL, and the queries read it back as Arrow tables. Parameters
    are passed by name (``$name`` in the SQL text).
    """

    @abstractmethod
    def register(self, view_name: str, data: pa.Table) -> None:
        """Expose an in-memory Arrow table to SQL as ``view_name``."""
        pass

    @abstractmethod
    def unregister(self, view_name: str) -> None:
        pass

    @abstractmethod
    def execute(self, query: str, params: Optional[dict] = None) -> Any:
        """Run a statement; the return value supports fetchone/fetchall."""
        pass

    @abstractmethod
    def query(self, query: str, params: Optional[dict] = None) -> pa.Table:
        """Run a SELECT and return the rows as a PyArrow table."""
        pass

    def scalar(self, query: str, params: Optional[dict] = None) -> Any:
        """First column of the first row, or None."""
        row = self.execute(query, params).fetchone()
        return row[0] if row else None

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Commit on success, roll back on error."""
        pass

    @abstractmethod
    def list_tables(self) -> list[str]:
        pass

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        pass

    def get_schema(self, table_name: str) -> pa.Schema:
        """Arrow schema of a table, read from an empty result."""
        return self.query(f"SELECT * FROM {table_name} LIMIT 0").schema

    def close(self) -> None:
        """Close any open connections."""
        pass

    def __enter__(self) -> "QueryBackend":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

"""
DuckDB backend.

In-memory by default; point ``DuckDBConfig.database_path`` at a file to
keep the loaded table between runs.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional
import pyarrow as pa

try:
    import duckdb
except ImportError:
    raise ImportError("duckdb is required. Install with: pip install duckdb")

from .base import QueryBackend
from ..config import DuckDBConfig
from ..logging import get_logger


logger = get_logger("backends.duckdb")


class DuckDBBackend(QueryBackend):
    """DuckDB engine with a lazily opened connection."""

    def __init__(self, config: Optional[DuckDBConfig] = None):
        self.config = config or DuckDBConfig()
        self._conn: Optional[duckdb.DuckDBPyConnection] = None

        if not self.config.in_memory:
            Path(self.config.database_path).parent.mkdir(parents=True, exist_ok=True)

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = self._connect()
        return self._conn

    def _connect(self) -> duckdb.DuckDBPyConnection:
        target = self.config.get_connection_string()
        logger.debug(f"Opening DuckDB database {target}")
        conn = duckdb.connect(target, read_only=self.config.read_only)

        if self.config.threads:
            conn.execute(f"SET threads = {int(self.config.threads)}")
        if self.config.memory_limit:
            conn.execute(f"SET memory_limit = '{self.config.memory_limit}'")

        return conn

    def register(self, view_name: str, data: pa.Table) -> None:
        """Expose an Arrow table under ``view_name`` without copying it."""
        self.conn.register(view_name, data)

    def unregister(self, view_name: str) -> None:
        self.conn.unregister(view_name)

    def execute(self, query: str, params: Optional[dict] = None) -> duckdb.DuckDBPyConnection:
        """
        Execute a SQL statement.

        Args:
            query: SQL text, with ``$name`` placeholders
            params: Values for the placeholders

        Returns:
            The connection, positioned on the result
        """
        if params:
            return self.conn.execute(query, params)
        return self.conn.execute(query)

    def query(self, query: str, params: Optional[dict] = None) -> pa.Table:
        return self.execute(query, params).to_arrow_table()

    def list_tables(self) -> list[str]:
        """Base tables in the main schema, sorted by name."""
        rows = self.conn.execute(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'main' AND table_type = 'BASE TABLE' "
            "ORDER BY table_name"
        ).fetchall()
        return [row[0] for row in rows]

    def table_exists(self, table_name: str) -> bool:
        return table_name in self.list_tables()

    def describe(self, table_name: str) -> list[dict]:
        """Column name, DuckDB type and nullability for each column."""
        rows = self.conn.execute(f"DESCRIBE {table_name}").fetchall()
        return [
            {"column_name": row[0], "column_type": row[1], "null": row[2]}
            for row in rows
        ]

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        self.conn.execute("BEGIN TRANSACTION")
        try:
            yield self.conn
            self.conn.execute("COMMIT")
        except Exception:
            self.conn.execute("ROLLBACK")
            raise

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __del__(self):
        self.close()

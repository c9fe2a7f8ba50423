"""Tests for the DuckDB backend."""

import warnings

import pyarrow as pa
import pytest

from title_analytics.backends import DuckDBBackend
from title_analytics.config import DuckDBConfig


@pytest.fixture
def sample_data():
    """Create sample PyArrow table."""
    return pa.table({
        "show_id": ["s1", "s2", "s3"],
        "type": ["Movie", "TV Show", "Movie"],
        "release_year": [2020, 2021, 2019],
    })


@pytest.fixture
def backend(sample_data):
    """In-memory backend with the sample rows in test_table."""
    backend = DuckDBBackend()
    backend.register("incoming", sample_data)
    backend.execute("CREATE TABLE test_table AS SELECT * FROM incoming")
    backend.unregister("incoming")
    yield backend
    backend.close()


class TestDuckDBBackend:
    """Tests for DuckDBBackend."""

    def test_in_memory_by_default(self):
        backend = DuckDBBackend()
        assert backend.config.in_memory
        assert backend.list_tables() == []
        backend.close()

    def test_registered_view_is_not_a_table(self, sample_data):
        backend = DuckDBBackend()
        backend.register("incoming", sample_data)

        assert backend.scalar("SELECT COUNT(*) FROM incoming") == 3
        assert backend.list_tables() == []

        backend.unregister("incoming")
        backend.close()

    def test_query_with_params(self, backend):
        """Test executing SQL queries with named parameters."""
        result = backend.query(
            "SELECT show_id FROM test_table WHERE release_year > $year ORDER BY show_id",
            {"year": 2019},
        )
        assert result.column("show_id").to_pylist() == ["s1", "s2"]

    def test_query_raises_no_deprecation(self, backend):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            result = backend.query("SELECT count(*) AS n FROM test_table")
        assert result.column("n").to_pylist() == [3]

    def test_scalar(self, backend):
        assert backend.scalar("SELECT MAX(release_year) FROM test_table") == 2021
        assert backend.scalar("SELECT show_id FROM test_table WHERE show_id = $id", {"id": "s9"}) is None

    def test_table_exists_and_describe(self, backend):
        assert backend.table_exists("test_table")
        assert not backend.table_exists("other_table")

        columns = {col["column_name"]: col["column_type"] for col in backend.describe("test_table")}
        assert columns == {"show_id": "VARCHAR", "type": "VARCHAR", "release_year": "BIGINT"}
        assert backend.get_schema("test_table").names == ["show_id", "type", "release_year"]

    def test_transaction_commit(self, backend):
        with backend.transaction():
            backend.execute("DELETE FROM test_table WHERE show_id = 's1'")

        assert backend.scalar("SELECT COUNT(*) FROM test_table") == 2

    def test_transaction_rollback(self, backend):
        """Test transaction handling."""
        with pytest.raises(RuntimeError):
            with backend.transaction():
                backend.execute("DELETE FROM test_table")
                raise RuntimeError("boom")

        assert backend.scalar("SELECT COUNT(*) FROM test_table") == 3

    def test_file_database(self, temp_dir):
        config = DuckDBConfig(database_path=str(temp_dir / "db" / "titles.duckdb"))

        with DuckDBBackend(config) as backend:
            backend.execute("CREATE TABLE kept AS SELECT 42 AS answer")

        with DuckDBBackend(config) as backend:
            assert backend.scalar("SELECT answer FROM kept") == 42

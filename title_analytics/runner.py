"""
Query runner: one loaded dataset, many queries.
"""

from datetime import date
from pathlib import Path
from typing import Optional, Union
import pyarrow as pa

from .backends import DuckDBBackend
from .config import PlatformConfig
from .loader import LoadReport, TitleLoader
from .logging import get_logger
from .queries import QueryRegistry, TitleQueries, registry as default_registry


logger = get_logger("runner")


class QueryRunner:
    """
    Holds the loaded title table and runs queries against it.

    Usage:
        with QueryRunner(config) as runner:
            runner.load()
            runner.run("top-countries", {"n": "3"})
    """

    def __init__(
        self,
        config: Optional[PlatformConfig] = None,
        registry: Optional[QueryRegistry] = None,
        today: Optional[date] = None,
    ):
        self.config = config or PlatformConfig()
        self.registry = registry or default_registry
        self.backend = DuckDBBackend(self.config.duckdb)
        self.loader = TitleLoader(self.config.dataset, self.backend)
        self.queries = TitleQueries(self.backend, self.config.dataset.table_name, today=today)
        self.report: Optional[LoadReport] = None

    @property
    def loaded(self) -> bool:
        return self.report is not None

    def load(self, path: Optional[Union[str, Path]] = None) -> LoadReport:
        """Load (or reload) the dataset."""
        self.report = self.loader.load(path)
        return self.report

    def load_arrow(self, data: pa.Table, source: str = "<arrow>") -> LoadReport:
        self.report = self.loader.load_arrow(data, source)
        return self.report

    def _ensure_loaded(self) -> None:
        if not self.loaded:
            self.load()

    def run(self, name: str, params: Optional[dict] = None) -> pa.Table:
        """Run a registered query by name, loading the dataset first if needed."""
        self._ensure_loaded()
        return self.registry.run(self.queries, name, params)

    def run_all(self, params: Optional[dict[str, dict]] = None) -> dict[str, pa.Table]:
        """
        Run every registered query.

        Args:
            params: Parameters per query name. Queries with a required
                parameter that is not supplied are skipped.

        Returns:
            Results keyed by query name, in registry order

        Raises:
            QueryParameterInvalid: a key of ``params`` is not a registered
                query, or one of its parameters is unknown or unusable
        """
        params = params or {}
        for name, query_params in params.items():
            self.registry.get(name).check(query_params)

        self._ensure_loaded()
        results = {}

        for spec in self.registry.specs():
            query_params = params.get(spec.name, {})
            missing = [p for p in spec.required_params if p not in query_params]
            if missing:
                logger.info(f"Skipping {spec.name}: no value for {', '.join(missing)}")
                continue
            results[spec.name] = self.registry.run(self.queries, spec.name, query_params)

        return results

    def close(self) -> None:
        self.backend.close()

    def __enter__(self) -> "QueryRunner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

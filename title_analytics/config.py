"""
Configuration for title analytics.

Supports environment variables and config files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import json


MEMORY_DATABASE = ":memory:"


@dataclass
class DatasetConfig:
    """Configuration for the source dataset."""

    path: Path = field(default_factory=lambda: Path("data/titles.csv"))
    delimiter: str = ","
    encoding: str = "utf-8"
    date_format: str = "%B %d, %Y"  # e.g. "September 25, 2021"
    table_name: str = "titles"
    strict: bool = False  # raise on the first malformed row instead of skipping

    def __post_init__(self):
        self.path = Path(self.path)


@dataclass
class DuckDBConfig:
    """Configuration for DuckDB."""

    database_path: str = MEMORY_DATABASE
    read_only: bool = False
    threads: Optional[int] = None
    memory_limit: Optional[str] = None  # e.g., "4GB"

    @property
    def in_memory(self) -> bool:
        return self.database_path == MEMORY_DATABASE

    def get_connection_string(self) -> str:
        return str(self.database_path)


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    console_colors: bool = True
    file_path: Optional[str] = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10 MB
    file_backup_count: int = 5
    json_enabled: bool = False


@dataclass
class PlatformConfig:
    """Main configuration."""

    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    duckdb: DuckDBConfig = field(default_factory=DuckDBConfig)
    logging: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_file(cls, path: Path) -> "PlatformConfig":
        """Load configuration from JSON file."""
        with open(path) as f:
            data = json.load(f)

        return cls(
            dataset=DatasetConfig(**data.get("dataset", {})),
            duckdb=DuckDBConfig(**data.get("duckdb", {})),
            logging=LogConfig(**data.get("logging", {})),
        )

    @classmethod
    def default(cls, base_path: Optional[Path] = None) -> "PlatformConfig":
        """Create default configuration."""
        if base_path is None:
            base_path = Path.cwd()

        return cls(
            dataset=DatasetConfig(path=base_path / "data" / "titles.csv"),
        )

    def apply_env(self) -> "PlatformConfig":
        """Override settings from environment variables."""
        dataset = os.getenv("TITLE_ANALYTICS_DATASET")
        if dataset:
            self.dataset.path = Path(dataset)

        database = os.getenv("TITLE_ANALYTICS_DATABASE")
        if database:
            self.duckdb.database_path = database

        level = os.getenv("TITLE_ANALYTICS_LOG_LEVEL")
        if level:
            self.logging.level = level.upper()

        return self

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "dataset": {
                "path": str(self.dataset.path),
                "delimiter": self.dataset.delimiter,
                "encoding": self.dataset.encoding,
                "date_format": self.dataset.date_format,
                "table_name": self.dataset.table_name,
                "strict": self.dataset.strict,
            },
            "duckdb": {
                "database_path": self.duckdb.database_path,
                "read_only": self.duckdb.read_only,
                "threads": self.duckdb.threads,
                "memory_limit": self.duckdb.memory_limit,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "date_format": self.logging.date_format,
                "console_colors": self.logging.console_colors,
                "file_path": self.logging.file_path,
                "file_max_bytes": self.logging.file_max_bytes,
                "file_backup_count": self.logging.file_backup_count,
                "json_enabled": self.logging.json_enabled,
            },
        }

    def save(self, path: Path) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

"""
Dataset ingestion.

Reads the delimited source file once and materializes the title table
in DuckDB. Rows that cannot become a record are skipped and counted.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union
import pyarrow as pa
import pyarrow.csv as pv

from .backends import QueryBackend
from .config import DatasetConfig
from .errors import DatasetLoadError, MalformedRowError, SchemaValidationError
from .logging import get_logger, log_execution_time
from .schemas import (
    COLUMN_ALIASES,
    RECORD_COLUMNS,
    TITLE_TYPES,
    StoredTitleSchema,
    TitleSchema,
)


logger = get_logger("loader")

LINE_COLUMN = "__line"
RAW_VIEW = "__raw_titles"
STAGING_TABLE = "__staging_titles"

# Reasons a row is rejected, checked in this order
MISSING_SHOW_ID = "missing show_id"
MISSING_TYPE = "missing type"
UNKNOWN_TYPE = "unknown type"
MISSING_TITLE = "missing title"
INVALID_RELEASE_YEAR = "invalid release_year"
DUPLICATE_SHOW_ID = "duplicate show_id"
WRONG_FIELD_COUNT = "wrong field count"


@dataclass
class LoadReport:
    """Outcome of loading the dataset."""

    source: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    rows_read: int = 0
    rows_loaded: int = 0
    malformed_rows: int = 0
    malformed_reasons: dict = field(default_factory=dict)
    unparsable_dates: int = 0
    invalid_durations: int = 0

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at and self.started_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add_malformed(self, reason: str, count: int = 1) -> None:
        self.malformed_rows += count
        self.malformed_reasons[reason] = self.malformed_reasons.get(reason, 0) + count

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "rows_read": self.rows_read,
            "rows_loaded": self.rows_loaded,
            "malformed_rows": self.malformed_rows,
            "malformed_reasons": dict(self.malformed_reasons),
            "unparsable_dates": self.unparsable_dates,
            "invalid_durations": self.invalid_durations,
        }


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class TitleLoader:
    """
    Loads the title dataset into a DuckDB backend.

    Every load replaces the table, so loading the same file twice
    leaves the backend in the same state.
    """

    def __init__(self, config: DatasetConfig, backend: QueryBackend):
        self.config = config
        self.backend = backend

    def load(self, path: Optional[Union[str, Path]] = None) -> LoadReport:
        """
        Load the configured CSV file (or ``path``) into the title table.

        Raises:
            DatasetLoadError: the file is missing, unreadable or lacks
                required columns
            MalformedRowError: a row is malformed and the config is strict
        """
        path = Path(path) if path is not None else self.config.path
        report = LoadReport(source=str(path), started_at=datetime.now())

        with log_execution_time(logger, f"load {path}", level=logging.INFO):
            data = self._read_csv(path, report)
            self._load(data, report)

        report.completed_at = datetime.now()
        return report

    def load_arrow(self, data: pa.Table, source: str = "<arrow>") -> LoadReport:
        """Load an in-memory Arrow table with string columns, one row per record."""
        report = LoadReport(source=source, started_at=datetime.now())
        self._load(data, report)
        report.completed_at = datetime.now()
        return report

    def _read_csv(self, path: Path, report: LoadReport) -> pa.Table:
        if not path.exists():
            raise DatasetLoadError(path, "file not found")
        if not path.is_file():
            raise DatasetLoadError(path, "not a regular file")

        bad_lines: list[int] = []

        def on_invalid_row(row) -> str:
            report.add_malformed(WRONG_FIELD_COUNT)
            if row.number is not None:
                bad_lines.append(row.number)
            logger.debug(
                f"Skipping line {row.number}: expected {row.expected_columns} "
                f"fields, got {row.actual_columns}"
            )
            return "error" if self.config.strict else "skip"

        string_columns = {
            name: pa.string() for name in [*RECORD_COLUMNS, *COLUMN_ALIASES]
        }

        try:
            data = pv.read_csv(
                path,
                read_options=pv.ReadOptions(encoding=self.config.encoding),
                parse_options=pv.ParseOptions(
                    delimiter=self.config.delimiter,
                    newlines_in_values=True,
                    invalid_row_handler=on_invalid_row,
                ),
                convert_options=pv.ConvertOptions(
                    column_types=string_columns,
                    strings_can_be_null=False,
                ),
            )
        except pa.ArrowInvalid as e:
            if self.config.strict and report.malformed_rows:
                line = bad_lines[0] if bad_lines else None
                raise MalformedRowError(WRONG_FIELD_COUNT, line) from e
            raise DatasetLoadError(path, str(e)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise DatasetLoadError(path, str(e)) from e

        report.rows_read += report.malformed_rows
        return data

    def _normalize_columns(self, data: pa.Table, source: str) -> pa.Table:
        """Apply header aliases, check required columns and add missing optional ones."""
        names = [name.strip() for name in data.column_names]
        for alias, canonical in COLUMN_ALIASES.items():
            if alias in names and canonical not in names:
                names[names.index(alias)] = canonical
        data = data.rename_columns(names)

        missing = [
            name for name in TitleSchema.required_field_names()
            if name not in data.column_names
        ]
        if missing:
            raise DatasetLoadError(source, f"missing required columns: {missing}")

        columns = {}
        for name in RECORD_COLUMNS:
            if name in data.column_names:
                columns[name] = data.column(name).cast(pa.string())
            else:
                columns[name] = pa.nulls(len(data), type=pa.string())
        columns[LINE_COLUMN] = pa.array(range(1, len(data) + 1), type=pa.int64())

        return pa.table(columns)

    def _load(self, data: pa.Table, report: LoadReport) -> None:
        data = self._normalize_columns(data, report.source)
        report.rows_read += len(data)

        self.backend.register(RAW_VIEW, data)
        try:
            self._stage()
            self._count_rejects(report)
            self._materialize()
        finally:
            self.backend.unregister(RAW_VIEW)
            self.backend.execute(f"DROP TABLE IF EXISTS {STAGING_TABLE}")

        self._validate()
        self._count_unusable_values(report)

        if report.malformed_rows:
            logger.warning(
                f"Skipped {report.malformed_rows:,} malformed rows: {report.malformed_reasons}"
            )
        logger.info(f"Loaded {report.rows_loaded:,} titles from {report.source}")

    def _stage(self) -> None:
        """Trim values, blank to NULL, and tag each row with a reject reason."""
        cleaned = ",\n".join(
            f"NULLIF(trim({name}), '') AS {name}"
            for name in RECORD_COLUMNS
            if name != "release_year"
        )
        types = ", ".join(_sql_literal(t) for t in TITLE_TYPES)

        self.backend.execute(f"""
            CREATE OR REPLACE TEMP TABLE {STAGING_TABLE} AS
            WITH cleaned AS (
                SELECT
                    {LINE_COLUMN},
                    {cleaned},
                    TRY_CAST(trim(release_year) AS BIGINT) AS release_year
                FROM {RAW_VIEW}
            ),
            checked AS (
                SELECT
                    *,
                    CASE
                        WHEN show_id IS NULL THEN {_sql_literal(MISSING_SHOW_ID)}
                        WHEN type IS NULL THEN {_sql_literal(MISSING_TYPE)}
                        WHEN type NOT IN ({types}) THEN {_sql_literal(UNKNOWN_TYPE)}
                        WHEN title IS NULL THEN {_sql_literal(MISSING_TITLE)}
                        WHEN release_year IS NULL THEN {_sql_literal(INVALID_RELEASE_YEAR)}
                    END AS field_reason
                FROM cleaned
            )
            -- the first valid row for a show_id wins
            SELECT
                * EXCLUDE (field_reason),
                COALESCE(
                    field_reason,
                    CASE WHEN ROW_NUMBER() OVER (
                        PARTITION BY show_id, field_reason IS NULL ORDER BY {LINE_COLUMN}
                    ) > 1 THEN {_sql_literal(DUPLICATE_SHOW_ID)} END
                ) AS reject_reason
            FROM checked
        """)

    def _count_rejects(self, report: LoadReport) -> None:
        rows = self.backend.execute(f"""
            SELECT reject_reason, COUNT(*), MIN({LINE_COLUMN})
            FROM {STAGING_TABLE}
            WHERE reject_reason IS NOT NULL
            GROUP BY reject_reason
            ORDER BY MIN({LINE_COLUMN})
        """).fetchall()

        if rows and self.config.strict:
            reason, _, first_row = rows[0]
            raise MalformedRowError(reason, first_row)

        for reason, count, _ in rows:
            report.add_malformed(reason, count)

        report.rows_loaded = self.backend.scalar(
            f"SELECT COUNT(*) FROM {STAGING_TABLE} WHERE reject_reason IS NULL"
        )

    def _materialize(self) -> None:
        table = self.config.table_name
        columns = ", ".join(RECORD_COLUMNS)
        date_format = _sql_literal(self.config.date_format)

        with self.backend.transaction():
            self.backend.execute(f"""
                CREATE OR REPLACE TABLE {table} AS
                SELECT
                    {columns},
                    ROW_NUMBER() OVER (ORDER BY {LINE_COLUMN}) AS row_num,
                    TRY_CAST(regexp_extract(duration, '^(\\d+)', 1) AS BIGINT) AS duration_value,
                    CAST(TRY_STRPTIME(date_added, {date_format}) AS DATE) AS date_added_parsed
                FROM {STAGING_TABLE}
                WHERE reject_reason IS NULL
                ORDER BY {LINE_COLUMN}
            """)

    def _validate(self) -> None:
        schema = self.backend.get_schema(self.config.table_name)
        errors = StoredTitleSchema.validate(schema.empty_table())
        if errors:
            raise SchemaValidationError(errors)

    def _count_unusable_values(self, report: LoadReport) -> None:
        unparsable, invalid = self.backend.execute(f"""
            SELECT
                COUNT(*) FILTER (WHERE date_added IS NOT NULL AND date_added_parsed IS NULL),
                COUNT(*) FILTER (WHERE duration_value IS NULL)
            FROM {self.config.table_name}
        """).fetchone()
        report.unparsable_dates = unparsable
        report.invalid_durations = invalid

        if unparsable:
            logger.warning(f"{unparsable:,} titles have an unparsable date_added")
        if invalid:
            logger.warning(f"{invalid:,} titles have no numeric duration")

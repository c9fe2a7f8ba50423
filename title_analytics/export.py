"""
Result export.

Writes query results to CSV, Parquet or JSON files, one file per query.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union
import pyarrow as pa
import pyarrow.csv as pv
import pyarrow.parquet as pq

from .logging import get_logger


logger = get_logger("export")

FORMATS = ("csv", "parquet", "json")


@dataclass
class ExportResult:
    """Files written by one export run."""

    output_dir: Path
    format: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    files: dict = field(default_factory=dict)  # query name -> path
    rows_written: int = 0

    def to_dict(self) -> dict:
        return {
            "output_dir": str(self.output_dir),
            "format": self.format,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "files": {name: str(path) for name, path in self.files.items()},
            "rows_written": self.rows_written,
        }


def write_table(data: pa.Table, path: Union[str, Path], format: str) -> Path:
    """
    Write one result table.

    Args:
        data: Query result
        path: Target file (parent directories are created)
        format: 'csv', 'parquet' or 'json'
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if format == "csv":
        pv.write_csv(data, path)
    elif format == "parquet":
        pq.write_table(data, path, compression="zstd")
    elif format == "json":
        # records orient, ISO dates
        data.to_pandas().to_json(path, orient="records", indent=2, date_format="iso")
    else:
        raise ValueError(f"Unknown export format: {format}")

    return path


def export_results(
    results: dict[str, pa.Table],
    output_dir: Union[str, Path],
    format: str = "csv",
) -> ExportResult:
    """Write every result to ``output_dir/<query name>.<format>``."""
    if format not in FORMATS:
        raise ValueError(f"Unknown export format: {format}")

    output_dir = Path(output_dir)
    export = ExportResult(output_dir=output_dir, format=format, started_at=datetime.now())

    for name, data in results.items():
        path = write_table(data, output_dir / f"{name}.{format}", format)
        export.files[name] = path
        export.rows_written += data.num_rows
        logger.debug(f"Wrote {data.num_rows} rows to {path}")

    export.completed_at = datetime.now()
    logger.info(f"Exported {len(export.files)} results to {output_dir}")
    return export

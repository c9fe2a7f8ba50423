"""
CLI entry point for title analytics.

Usage:
    title-analytics queries             List available queries
    title-analytics run <name>          Run one query
    title-analytics run-all             Run every query
    title-analytics load                Load the dataset and show the load report
    title-analytics describe            Show the loaded table schema
    title-analytics export <dir>        Write every query result to files
    title-analytics init-config <path>  Write a default config file
"""

import sys
from pathlib import Path
from typing import Optional

import click
import pyarrow as pa
from rich.console import Console
from rich.table import Table

from .config import PlatformConfig
from .errors import DatasetLoadError, MalformedRowError, QueryParameterInvalid, TitleAnalyticsError
from .export import FORMATS, export_results
from .logging import setup_logging
from .queries import registry
from .runner import QueryRunner


console = Console()
err_console = Console(stderr=True)


def get_config(
    config_path: Optional[str] = None,
    dataset: Optional[str] = None,
    database: Optional[str] = None,
    log_level: Optional[str] = None,
) -> PlatformConfig:
    """Load or create configuration; command-line options win over env and file."""
    if config_path:
        config = PlatformConfig.from_file(Path(config_path))
    else:
        config = PlatformConfig.default(Path.cwd())
    config.apply_env()

    if dataset:
        config.dataset.path = Path(dataset)
    if database:
        config.duckdb.database_path = database
    if log_level:
        config.logging.level = log_level.upper()
    return config


def parse_params(values: tuple[str, ...]) -> dict[str, str]:
    """Parse key=value pairs."""
    params = {}
    for v in values:
        if "=" not in v:
            raise click.BadParameter(f"expected key=value, got {v!r}", param_hint="--param")
        key, value = v.split("=", 1)
        params[key.strip()] = value
    return params


def parse_scoped_params(values: tuple[str, ...]) -> dict[str, dict[str, str]]:
    """Parse query.key=value pairs into per-query parameter dicts."""
    scoped: dict[str, dict[str, str]] = {}
    for key, value in parse_params(values).items():
        if "." not in key:
            raise click.BadParameter(
                f"expected query.key=value, got {key!r}", param_hint="--param"
            )
        query, name = key.split(".", 1)
        scoped.setdefault(query, {})[name] = value
    return scoped


def render(result: pa.Table, format: str, limit: Optional[int] = None, title: Optional[str] = None) -> None:
    """Print a result table."""
    df = result.to_pandas()
    if limit is not None:
        df = df.head(limit)

    if format == "table":
        table = Table(title=title, show_header=True, header_style="bold")
        for col in df.columns:
            table.add_column(col)
        for _, row in df.iterrows():
            table.add_row(*["" if v is None else str(v) for v in row])
        console.print(table)
        console.print(f"[dim]{result.num_rows} rows[/dim]\n")

    elif format == "csv":
        if title:
            print(f"# {title}")
        print(df.to_csv(index=False), end="")

    elif format == "json":
        print(df.to_json(orient="records", indent=2))


def _fail(message: str, code: int) -> None:
    err_console.print(f"[red]Error: {message}[/red]")
    sys.exit(code)


def _check_scoped_params(params: dict[str, dict[str, str]]) -> None:
    """Reject unknown query names and parameters before loading the dataset."""
    try:
        for name, query_params in params.items():
            registry.get(name).check(query_params)
    except QueryParameterInvalid as e:
        _fail(str(e), 2)


def _open_runner(ctx) -> QueryRunner:
    """Create a runner and load the dataset, exiting cleanly on load errors."""
    runner = QueryRunner(ctx.obj["config"], today=ctx.obj["today"])
    try:
        runner.load()
    except (DatasetLoadError, MalformedRowError) as e:
        runner.close()
        _fail(str(e), 1)
    return runner


@click.group()
@click.option("--config", "-c", help="Path to config file")
@click.option("--dataset", "-d", help="Path to the titles CSV file")
@click.option("--database", help="DuckDB database file (default: in-memory)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), help="Reference date for time windows")
@click.pass_context
def main(ctx, config, dataset, database, log_level, today):
    """Title Analytics CLI - reporting queries over a catalog of titles."""
    ctx.ensure_object(dict)
    platform_config = get_config(config, dataset, database, log_level)
    setup_logging(platform_config.logging)
    ctx.obj["config"] = platform_config
    ctx.obj["today"] = today.date() if today else None


@main.command()
def queries():
    """List available queries."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Parameters")
    table.add_column("Description")

    for spec in registry.specs():
        table.add_row(spec.name, spec.signature(), spec.description)

    console.print(table)


@main.command()
@click.argument("name")
@click.option("--param", "-p", multiple=True, help="Query parameter (key=value)")
@click.option("--format", "-f", type=click.Choice(["table", "csv", "json"]), default="table")
@click.option("--limit", "-l", type=int, default=None, help="Rows to display")
@click.pass_context
def run(ctx, name, param, format, limit):
    """Run one query by name."""
    params = parse_params(param)

    # Reject bad names and parameters before loading the dataset
    try:
        registry.get(name).bind(params)
    except QueryParameterInvalid as e:
        _fail(str(e), 2)

    runner = _open_runner(ctx)
    try:
        result = runner.run(name, params)
        render(result, format, limit)
    except QueryParameterInvalid as e:
        _fail(str(e), 2)
    except TitleAnalyticsError as e:
        _fail(str(e), 1)
    finally:
        runner.close()


@main.command("run-all")
@click.option("--param", "-p", multiple=True, help="Query parameter (query.key=value)")
@click.option("--format", "-f", type=click.Choice(["table", "csv", "json"]), default="table")
@click.option("--limit", "-l", type=int, default=20, help="Rows to display per query")
@click.pass_context
def run_all(ctx, param, format, limit):
    """Run every query; queries with required parameters need --param."""
    params = parse_scoped_params(param)
    _check_scoped_params(params)
    runner = _open_runner(ctx)
    try:
        for name, result in runner.run_all(params).items():
            render(result, format, limit, title=name)
    except QueryParameterInvalid as e:
        _fail(str(e), 2)
    finally:
        runner.close()


@main.command()
@click.pass_context
def load(ctx):
    """Load the dataset and show the load report."""
    runner = _open_runner(ctx)
    report = runner.report
    runner.close()

    console.print(f"[bold blue]Loaded {report.source}[/bold blue]")
    console.print(f"  Rows read: {report.rows_read:,}")
    console.print(f"  Rows loaded: {report.rows_loaded:,}")
    if report.malformed_rows:
        console.print(f"  [yellow]Malformed rows skipped: {report.malformed_rows:,}[/yellow]")
        for reason, count in report.malformed_reasons.items():
            console.print(f"    {reason}: {count:,}")
    console.print(f"  Unparsable dates: {report.unparsable_dates:,}")
    console.print(f"  Non-numeric durations: {report.invalid_durations:,}")
    console.print(f"  [dim]{report.duration_seconds:.3f}s[/dim]")


@main.command()
@click.pass_context
def describe(ctx):
    """Describe the loaded table schema."""
    runner = _open_runner(ctx)
    try:
        table_name = runner.config.dataset.table_name
        table = Table(title=f"Table: {table_name}", show_header=True)
        table.add_column("Column")
        table.add_column("Type")
        table.add_column("Nullable")

        for col in runner.backend.describe(table_name):
            table.add_row(col["column_name"], col["column_type"], col["null"])

        console.print(table)
    finally:
        runner.close()


@main.command()
@click.argument("output_dir", type=click.Path(file_okay=False))
@click.option("--format", "-f", type=click.Choice(FORMATS), default="csv")
@click.option("--param", "-p", multiple=True, help="Query parameter (query.key=value)")
@click.pass_context
def export(ctx, output_dir, format, param):
    """Write every query result to OUTPUT_DIR."""
    params = parse_scoped_params(param)
    _check_scoped_params(params)
    runner = _open_runner(ctx)
    try:
        result = export_results(runner.run_all(params), output_dir, format)
    except QueryParameterInvalid as e:
        _fail(str(e), 2)
    finally:
        runner.close()

    for name, path in result.files.items():
        console.print(f"  {name}: {path}")
    console.print(f"[bold green]Exported {len(result.files)} results![/bold green]")


@main.command("init-config")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def init_config(ctx, path):
    """Write the current configuration to PATH as JSON."""
    ctx.obj["config"].save(Path(path))
    console.print(f"Config saved: {path}")


if __name__ == "__main__":
    main()

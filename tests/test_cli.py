"""Tests for the command line interface."""

import json

import pytest
from click.testing import CliRunner

from title_analytics.cli import main
from title_analytics.config import PlatformConfig


@pytest.fixture
def cli():
    return CliRunner()


@pytest.fixture
def invoke(cli, titles_csv):
    """Invoke the CLI against the sample catalog."""
    def _invoke(*args):
        return cli.invoke(
            main,
            ["--dataset", str(titles_csv), "--log-level", "ERROR", "--today", "2024-06-01", *args],
        )
    return _invoke


class TestRun:
    """Tests for the run command."""

    def test_json_output(self, invoke):
        result = invoke("run", "count-by-type", "--format", "json")

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"type": "Movie", "total_content": 12},
            {"type": "TV Show", "total_content": 5},
        ]

    def test_csv_output_with_param(self, invoke):
        result = invoke("run", "top-countries", "-p", "n=2", "-f", "csv")

        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "country,total_content",
            "India,11",
            "United States,3",
        ]

    def test_time_window_uses_today(self, invoke):
        result = invoke("run", "recent-additions", "-p", "years=1", "-f", "json")

        assert result.exit_code == 0
        assert [r["show_id"] for r in json.loads(result.stdout)] == ["s17", "s15", "s14"]

    def test_table_output(self, invoke):
        result = invoke("run", "count-by-type")

        assert result.exit_code == 0
        assert "Movie" in result.stdout
        assert "2 rows" in result.stdout

    def test_limit(self, invoke):
        result = invoke("run", "count-by-genre", "-f", "json", "--limit", "2")
        assert len(json.loads(result.stdout)) == 2

    @pytest.mark.parametrize("args", [
        ["run", "no-such-query"],
        ["run", "by-director"],
        ["run", "top-countries", "-p", "n=0"],
        ["run", "top-countries", "-p", "n=many"],
        ["run", "top-countries", "-p", "limit=3"],
    ])
    def test_invalid_parameters_exit_2(self, invoke, args):
        result = invoke(*args)
        assert result.exit_code == 2
        assert "Error" in result.output

    def test_malformed_param_syntax(self, invoke):
        result = invoke("run", "top-countries", "-p", "n")
        assert result.exit_code == 2

    def test_missing_dataset_exit_1(self, cli, temp_dir):
        result = cli.invoke(main, [
            "--dataset", str(temp_dir / "absent.csv"), "--log-level", "ERROR",
            "run", "count-by-type",
        ])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestOtherCommands:
    """Tests for the remaining commands."""

    def test_queries(self, cli):
        result = cli.invoke(main, ["--log-level", "ERROR", "queries"])

        assert result.exit_code == 0
        assert "count-by-type" in result.stdout
        assert "documentaries" in result.stdout

    def test_run_all(self, invoke):
        result = invoke("run-all", "-f", "csv", "-p", "by-release-year.year=2021")

        assert result.exit_code == 0
        assert "# count-by-type" in result.stdout
        assert "# by-release-year" in result.stdout
        assert "# by-director" not in result.stdout

    def test_run_all_rejects_unscoped_param(self, invoke):
        result = invoke("run-all", "-p", "year=2021")
        assert result.exit_code == 2

    @pytest.mark.parametrize("command", ["run-all", "export"])
    def test_unknown_scoped_query_exit_2(self, invoke, temp_dir, command):
        args = [command] if command == "run-all" else [command, str(temp_dir / "out")]
        result = invoke(*args, "-p", "by-release-yr.year=2021")

        assert result.exit_code == 2
        assert "Error" in result.output
        assert not (temp_dir / "out").exists()

    def test_load(self, invoke):
        result = invoke("load")

        assert result.exit_code == 0
        assert "Rows loaded: 17" in result.stdout
        assert "Unparsable dates: 1" in result.stdout

    def test_describe(self, invoke):
        result = invoke("describe")

        assert result.exit_code == 0
        assert "release_year" in result.stdout
        assert "BIGINT" in result.stdout

    def test_export(self, invoke, temp_dir):
        out = temp_dir / "out"
        result = invoke("export", str(out), "-f", "json")

        assert result.exit_code == 0
        assert (out / "count-by-type.json").exists()
        assert not (out / "by-director.json").exists()

    def test_init_config(self, cli, temp_dir):
        path = temp_dir / "config.json"
        result = cli.invoke(main, ["--log-level", "ERROR", "--database", "titles.duckdb", "init-config", str(path)])

        assert result.exit_code == 0
        config = PlatformConfig.from_file(path)
        assert config.duckdb.database_path == "titles.duckdb"
        assert config.logging.level == "ERROR"

    def test_config_file(self, cli, titles_csv, temp_dir):
        path = temp_dir / "config.json"
        config = PlatformConfig.default(temp_dir)
        config.dataset.path = titles_csv
        config.logging.level = "ERROR"
        config.save(path)

        result = cli.invoke(main, ["--config", str(path), "run", "count-by-type", "-f", "json"])

        assert result.exit_code == 0
        assert len(json.loads(result.stdout)) == 2

"""Tests for the pgstruct command line."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from pgstruct_cli.errors import CatalogConnectionError, CatalogQueryError
from pgstruct_cli.main import app
from tests.fixtures import sample_catalog

runner = CliRunner()


@pytest.fixture
def cli_env(catalog, run_logger):
    """Route the generate command to the mock catalog and a temporary run store."""
    with patch("pgstruct_cli.commands.generate.PostgresIntrospector", return_value=catalog) as introspector_cls, \
            patch("pgstruct_cli.commands.generate.log_run", new=run_logger.log_run), \
            patch("pgstruct_cli.commands.runs.get_run_logger", return_value=run_logger):
        yield introspector_cls


class TestGenerateFromPostgres:
    """Tests for 'pgstruct generate from-postgres'."""

    def test_writes_files(self, cli_env, catalog, run_logger, tmp_path):
        output = tmp_path / "models"
        result = runner.invoke(app, [
            "generate", "from-postgres",
            "-d", "testdb",
            "--package", "models",
            "--output", str(output),
        ])

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in output.iterdir()) == [
            "Customer.go",
            "CustomerOrder.go",
            "PostalAddress.go",
            "fCustomerCount.go",
            "fCustomerOrders.go",
        ]
        assert (output / "Customer.go").read_text(encoding="utf-8").startswith("package models\n")
        assert "Total: 1 types, 2 tables/views, 2 functions; 0 skipped" in result.output
        assert catalog.closed
        assert cli_env.call_args.kwargs["database"] == "testdb"

        runs = run_logger.query_runs()
        assert len(runs) == 1
        assert runs[0]["status"] == "success"
        assert runs[0]["files_written"] == 5

    def test_dry_run_writes_nothing(self, cli_env, tmp_path):
        output = tmp_path / "models"
        result = runner.invoke(app, ["generate", "from-postgres", "--output", str(output), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert not output.exists()
        assert "package main" in result.output
        assert "Customer.go" in result.output

    def test_category_selection(self, cli_env, catalog, tmp_path):
        output = tmp_path / "out"
        result = runner.invoke(app, [
            "generate", "from-postgres",
            "--no-types", "--no-tables",
            "--output", str(output),
        ])

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in output.iterdir()) == ["fCustomerCount.go", "fCustomerOrders.go"]
        assert catalog.calls("list_tables") == []

    def test_nullable_policy(self, cli_env, tmp_path):
        result = runner.invoke(app, [
            "generate", "from-postgres",
            "--nullability", "nullable",
            "--no-accessors",
            "--output", str(tmp_path),
        ])

        assert result.exit_code == 0, result.output
        content = (tmp_path / "Customer.go").read_text(encoding="utf-8")
        assert "sql.NullInt32" in content
        assert "func (db *DB)" not in content

    def test_type_override(self, cli_env, tmp_path):
        result = runner.invoke(app, [
            "generate", "from-postgres",
            "--type-override", "numeric=decimal.Decimal@github.com/shopspring/decimal",
            "--output", str(tmp_path),
        ])

        assert result.exit_code == 0, result.output
        assert "decimal.Decimal" in (tmp_path / "CustomerOrder.go").read_text(encoding="utf-8")

    def test_invalid_nullability(self, cli_env, tmp_path):
        result = runner.invoke(app, ["generate", "from-postgres", "--nullability", "internal", "--output", str(tmp_path)])
        assert result.exit_code == 2

    def test_invalid_type_override(self, cli_env, tmp_path):
        result = runner.invoke(app, ["generate", "from-postgres", "--type-override", "numeric", "--output", str(tmp_path)])
        assert result.exit_code == 2

    def test_skipped_objects_do_not_fail_the_run(self, cli_env, catalog, tmp_path):
        catalog.table_columns["public.customer_order"][0].type_name = "geometry"
        result = runner.invoke(app, ["generate", "from-postgres", "--output", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Skipped Objects" in result.output
        assert "1 skipped" in result.output

    def test_category_failure_exits_with_error(self, run_logger, tmp_path):
        catalog = sample_catalog(fail={"list_tables": CatalogQueryError("permission denied", category="tables")})
        with patch("pgstruct_cli.commands.generate.PostgresIntrospector", return_value=catalog), \
                patch("pgstruct_cli.commands.generate.log_run", new=run_logger.log_run):
            result = runner.invoke(app, ["generate", "from-postgres", "--output", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error listing tables: permission denied" in result.output
        assert (tmp_path / "PostalAddress.go").exists()
        assert run_logger.query_runs()[0]["status"] == "error"

    def test_connection_failure(self, run_logger, tmp_path):
        catalog = sample_catalog(fail={"connect": CatalogConnectionError("connection refused")})
        with patch("pgstruct_cli.commands.generate.PostgresIntrospector", return_value=catalog), \
                patch("pgstruct_cli.commands.generate.log_run", new=run_logger.log_run):
            result = runner.invoke(app, ["generate", "from-postgres", "--output", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error: connection refused" in result.output
        assert catalog.closed
        run = run_logger.query_runs()[0]
        assert run["status"] == "error"
        assert run["error_code"] == "CONNECTION_ERROR"


class TestRunsCommands:
    """Tests for 'pgstruct runs'."""

    def test_list_show_and_stats(self, cli_env, run_logger, tmp_path):
        runner.invoke(app, ["generate", "from-postgres", "--output", str(tmp_path)])
        run_id = run_logger.query_runs()[0]["run_id"]

        result = runner.invoke(app, ["runs", "list"])
        assert result.exit_code == 0, result.output
        assert run_id in result.output

        result = runner.invoke(app, ["runs", "show", run_id])
        assert result.exit_code == 0, result.output
        assert f"Run: {run_id}" in result.output
        assert "Files written: 5" in result.output

        result = runner.invoke(app, ["runs", "stats"])
        assert result.exit_code == 0, result.output
        assert "Total: 1" in result.output

    def test_show_unknown_run(self, cli_env):
        result = runner.invoke(app, ["runs", "show", "deadbeef"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_list_without_runs(self, cli_env):
        result = runner.invoke(app, ["runs", "list"])
        assert result.exit_code == 0
        assert "No runs found" in result.output


class TestTopLevelCommands:
    """Tests for 'pgstruct config' and 'pgstruct health'."""

    def test_config(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Go package:" in result.output
        assert "Password configured:" in result.output

    def test_health(self, catalog):
        with patch("pgstruct_cli.catalog.PostgresIntrospector", return_value=catalog):
            result = runner.invoke(app, ["health", "-d", "testdb"])

        assert result.exit_code == 0, result.output
        assert "server version 150004" in result.output
        assert catalog.closed

    def test_health_connection_failure(self):
        catalog = sample_catalog(fail={"connect": CatalogConnectionError("connection refused")})
        with patch("pgstruct_cli.catalog.PostgresIntrospector", return_value=catalog):
            result = runner.invoke(app, ["health"])

        assert result.exit_code == 1
        assert "Cannot connect to PostgreSQL: connection refused" in result.output

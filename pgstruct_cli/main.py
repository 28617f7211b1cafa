"""pgstruct CLI - Main entry point."""

import logging
from typing import Optional

import typer
from rich.console import Console
from .commands import generate, runs
from .config import settings
from .errors import PgStructError

app = typer.Typer(
    name="pgstruct",
    help="Generate Go structs from PostgreSQL catalogs",
    add_completion=False,
)

# Add subcommands
app.add_typer(generate.app, name="generate")
app.add_typer(runs.app, name="runs")

console = Console()


@app.command()
def config():
    """Show current configuration."""
    console.print("[bold]Current Configuration[/bold]")
    console.print(f"  Host: {settings.pghost}")
    console.print(f"  Port: {settings.pgport}")
    console.print(f"  Database: {settings.pgdatabase or 'Not set'}")
    console.print(f"  User: {settings.pguser or 'Not set'}")
    console.print(f"  Password configured: {'Yes' if settings.pgpassword else 'No'}")
    console.print(f"  Go package: {settings.pgstruct_package}")
    console.print(f"  Output directory: {settings.pgstruct_output_dir or settings.pgstruct_package}")
    console.print(f"  Nullability: {settings.pgstruct_nullability}")
    console.print(f"  Accessors: {'Yes' if settings.pgstruct_accessors else 'No'}")
    console.print(f"  Run history: {'Enabled' if settings.cli_logging_enabled else 'Disabled'}")


@app.command()
def health(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Database host (or PGHOST env)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Database port (or PGPORT env)"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name (or PGDATABASE env)"),
    user: Optional[str] = typer.Option(None, "--user", "-U", help="Database user (or PGUSER env)"),
):
    """Check the connection to PostgreSQL."""
    from .catalog import PostgresIntrospector

    introspector = PostgresIntrospector(host=host, port=port, database=database, user=user)
    try:
        with introspector:
            version = introspector.server_version()
    except ImportError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except PgStructError as e:
        console.print(f"[red]Cannot connect to PostgreSQL: {e.message}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]Connected to {introspector.database} at {introspector.host}:{introspector.port} "
        f"(server version {version})[/green]"
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    pgstruct - Generate Go structs from PostgreSQL catalogs.

    Use 'pgstruct generate' commands to write one Go file per type, table and function.

    Examples:

        pgstruct generate from-postgres -d inventory -s public

        pgstruct health -d inventory

        pgstruct runs list
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    app()

"""Run history commands."""

import json

import typer
from typing import Optional
from rich.console import Console
from rich.table import Table

from ..logging import get_run_logger

app = typer.Typer(help="Inspect the history of generator runs")
console = Console()


@app.command("list")
def list_runs(
    status: Optional[str] = typer.Option(None, "--status", help="Filter by status: success, error, started"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Filter by database name"),
    since_hours: int = typer.Option(24, "--since-hours", help="Look back N hours"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of runs to show"),
):
    """List recent generator runs."""
    run_logger = get_run_logger()
    if not run_logger.enabled:
        console.print("[yellow]Run history is disabled (CLI_LOGGING_ENABLED=false).[/yellow]")
        return

    runs = run_logger.query_runs(status=status, database_name=database, since_hours=since_hours, limit=limit)
    if not runs:
        console.print("[yellow]No runs found.[/yellow]")
        return

    table = Table(title="Generator Runs")
    table.add_column("Run ID", style="cyan")
    table.add_column("Timestamp", style="blue")
    table.add_column("Database", style="green")
    table.add_column("Status")
    table.add_column("Files", style="magenta")
    table.add_column("Skipped", style="yellow")
    table.add_column("Duration (ms)")

    for run in runs:
        status_style = "green" if run["status"] == "success" else "red" if run["status"] == "error" else "yellow"
        table.add_row(
            run["run_id"],
            str(run["timestamp"]),
            run.get("database_name") or "N/A",
            f"[{status_style}]{run['status']}[/{status_style}]",
            str(run.get("files_written") or 0),
            str(run.get("objects_skipped") or 0),
            str(run.get("duration_ms") or ""),
        )

    console.print(table)


@app.command("show")
def show_run(run_id: str = typer.Argument(..., help="Run ID")):
    """Show the details of one run."""
    run = get_run_logger().get_run(run_id)
    if not run:
        console.print(f"[red]Run {run_id} not found[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Run: {run['run_id']}[/bold]")
    console.print(f"  Command: {run['command']} {run.get('subcommand') or ''}")
    console.print(f"  Timestamp: {run['timestamp']}")
    console.print(f"  Status: {run['status']}")
    console.print(f"  Database: {run.get('database_name') or 'N/A'} on {run.get('host') or 'N/A'}")
    console.print(f"  Schema filter: {run.get('schema_filter') or 'All schemas'}")
    console.print(f"  Object filter: {run.get('object_filter') or 'All objects'}")
    console.print(f"  App user: {run.get('app_user') or 'Any'}")
    console.print(f"  Server version: {run.get('server_version') or 'N/A'}")
    console.print(
        f"  Generated: {run.get('types_generated') or 0} types, "
        f"{run.get('tables_generated') or 0} tables/views, "
        f"{run.get('functions_generated') or 0} functions"
    )
    console.print(f"  Files written: {run.get('files_written') or 0}")
    console.print(f"  Duration: {run.get('duration_ms') or 0}ms")

    skipped = json.loads(run["skipped_objects"]) if run.get("skipped_objects") else []
    if skipped:
        console.print("\n[bold]Skipped objects:[/bold]")
        for item in skipped:
            console.print(f"  - {item['name']} ({item['category']}): {item['message']}")

    if run.get("error_message"):
        console.print(f"\n[red]Error ({run.get('error_type')}): {run['error_message']}[/red]")


@app.command("stats")
def run_stats(since_hours: int = typer.Option(24, "--since-hours", help="Look back N hours")):
    """Show run statistics."""
    stats = get_run_logger().get_stats(since_hours=since_hours)
    if "error" in stats:
        console.print(f"[yellow]{stats['error']}[/yellow]")
        return

    console.print(f"[bold]Runs in the last {stats['since_hours']} hours[/bold]")
    console.print(f"  Total: {stats['total_runs']}")
    console.print(f"  Succeeded: [green]{stats['success_count']}[/green]")
    console.print(f"  Failed: [red]{stats['error_count']}[/red]")
    console.print(f"  Average duration: {stats['avg_duration_ms']}ms")
    console.print(f"  Files written: {stats['total_files_written']}")
    console.print(f"  Objects skipped: {stats['total_objects_skipped']}")

    if stats["by_database"]:
        table = Table(title="By Database")
        table.add_column("Database", style="cyan")
        table.add_column("Runs", style="magenta")
        table.add_column("Succeeded", style="green")
        table.add_column("Failed", style="red")
        for row in stats["by_database"]:
            table.add_row(row["database_name"], str(row["count"]), str(row["success"]), str(row["errors"]))
        console.print(table)

    if stats["recent_errors"]:
        console.print("\n[bold]Recent errors:[/bold]")
        for error in stats["recent_errors"]:
            console.print(f"  - {error['run_id']} {error['timestamp']}: {error['error_message']}")

"""Go code generation commands - writes Go structs from PostgreSQL catalogs."""

import typer
from typing import Optional, List
from typing_extensions import Annotated
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from ..catalog import CatalogFilter, PostgresIntrospector
from ..codegen import (
    EmissionDriver,
    GenerationOptions,
    NullabilityPolicy,
    OutputWriter,
    RunReport,
    parse_type_override,
)
from ..config import settings
from ..errors import PgStructError
from ..logging import log_run

app = typer.Typer(help="Generate Go structs from database catalogs")
console = Console()

PUBLIC_POLICIES = {
    "plain": NullabilityPolicy.PLAIN,
    "nullable": NullabilityPolicy.NULLABLE,
}


def _parse_policy(value: Optional[str]) -> NullabilityPolicy:
    name = (value or settings.pgstruct_nullability).lower()
    if name not in PUBLIC_POLICIES:
        raise typer.BadParameter(f"expected one of: {', '.join(PUBLIC_POLICIES)}", param_hint="--nullability")
    return PUBLIC_POLICIES[name]


def _parse_overrides(values: Optional[List[str]]) -> dict:
    overrides = {}
    for value in values or []:
        try:
            type_name, target = parse_type_override(value)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--type-override")
        overrides[type_name] = target
    return overrides


def print_report(report: RunReport, dry_run: bool = False):
    """Print the generated files, skipped objects and failed categories."""
    if report.files:
        file_table = Table(title="Generated Files" if not dry_run else "Generated Files (dry run)")
        file_table.add_column("File", style="cyan")
        file_table.add_column("Object", style="green")
        file_table.add_column("Kind", style="blue")
        file_table.add_column("Lines", style="magenta")
        for generated in report.files:
            file_table.add_row(
                generated.filename,
                generated.qualified_name,
                generated.kind,
                str(generated.content.count("\n")),
            )
        console.print(file_table)
    else:
        console.print("[yellow]No structures generated[/yellow]")

    if report.skipped:
        skipped_table = Table(title="Skipped Objects")
        skipped_table.add_column("Object", style="cyan")
        skipped_table.add_column("Category", style="blue")
        skipped_table.add_column("Reason", style="red")
        for skipped in report.skipped:
            skipped_table.add_row(skipped.qualified_name, skipped.category, skipped.reason)
        console.print(skipped_table)

    for collision in report.collisions:
        console.print(
            f"[yellow]Warning: {collision.struct_name} generated from {collision.kept}; "
            f"{collision.discarded} discarded[/yellow]"
        )

    for failure in report.category_failures:
        console.print(f"[red]Error listing {failure.category}: {failure.error.message}[/red]")

    console.print(
        f"\n[bold]Total: {report.count('type')} types, {report.count('table')} tables/views, "
        f"{report.count('function')} functions; {len(report.skipped)} skipped[/bold]"
    )


@app.command("from-postgres")
def generate_from_postgres(
    types: bool = typer.Option(True, "--types/--no-types", help="Generate structs for user defined composite types"),
    tables: bool = typer.Option(True, "--tables/--no-tables", help="Generate structs for tables and views"),
    functions: bool = typer.Option(True, "--functions/--no-functions", help="Generate structs for function result sets"),
    nullability: Optional[str] = typer.Option(None, "--nullability", help="Field types: 'plain' (native Go types) or 'nullable' (sql.Null* wrappers)"),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Schema to generate for (default: all)"),
    objects: Optional[str] = typer.Option(None, "--objects", "-o", help="Comma-separated object names (default: all)"),
    app_user: Optional[str] = typer.Option(None, "--app-user", "-u", help="Only objects this user has privileges on"),
    package: Optional[str] = typer.Option(None, "--package", help="Go package name (or PGSTRUCT_PACKAGE env)"),
    output: Optional[str] = typer.Option(None, "--output", help="Output directory (default: the package name)"),
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Database host (or PGHOST env)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Database port (or PGPORT env)"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name (or PGDATABASE env)"),
    user: Optional[str] = typer.Option(None, "--user", "-U", help="Database user (or PGUSER env)"),
    password: Optional[str] = typer.Option(None, "--password", help="Database password (or PGPASSWORD env)"),
    accessors: Optional[bool] = typer.Option(None, "--accessors/--no-accessors", help="Generate List accessors and function wrappers"),
    type_override: Annotated[Optional[List[str]], typer.Option(
        "--type-override",
        help="Map a Postgres type to a Go type: typname=GoType[@import/path] (repeatable)",
    )] = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the generated code instead of writing files"),
):
    """Generate Go structs from a PostgreSQL database.

    One file is written per composite type, table/view and function result
    set. Objects whose types cannot be translated are skipped and listed.

    Examples:
        pgstruct generate from-postgres -d inventory -s public
        pgstruct generate from-postgres -d inventory --no-functions --nullability nullable
        pgstruct generate from-postgres -d inventory --type-override numeric=decimal.Decimal@github.com/shopspring/decimal
    """
    policy = _parse_policy(nullability)
    overrides = _parse_overrides(type_override)
    package_name = package or settings.pgstruct_package
    output_dir = output or settings.pgstruct_output_dir or package_name
    with_accessors = settings.pgstruct_accessors if accessors is None else accessors

    catalog_filter = CatalogFilter(schema=schema or "", objects=objects or "", app_user=app_user or "")
    introspector = PostgresIntrospector(
        host=host,
        port=port,
        database=database,
        user=user,
        password=password,
    )
    options = GenerationOptions(
        types=types,
        tables=tables,
        functions=functions,
        policy=policy,
        catalog_filter=catalog_filter,
        package=package_name,
        accessors=with_accessors,
        type_overrides=overrides,
    )
    writer = None if dry_run else OutputWriter(output_dir)

    console.print(Panel(
        f"[bold blue]Generating Go structs from PostgreSQL[/bold blue]\n"
        f"Database: {introspector.database} on {introspector.host}:{introspector.port}\n"
        f"Schema: {schema or 'All schemas'}\n"
        f"Categories: {', '.join(options.enabled_categories()) or 'none'}\n"
        f"Output: {'(dry run)' if dry_run else output_dir}",
        title="pgstruct"
    ))

    arguments = {
        "types": types,
        "tables": tables,
        "functions": functions,
        "nullability": policy.value,
        "package": package_name,
        "output": output_dir,
        "accessors": with_accessors,
        "type_overrides": list(type_override or []),
        "dry_run": dry_run,
    }

    try:
        with log_run(
            command="generate",
            subcommand="from-postgres",
            database_name=introspector.database,
            host=introspector.host,
            schema_filter=schema,
            object_filter=objects,
            app_user=app_user,
            arguments=arguments,
        ) as ctx:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task("Connecting to PostgreSQL...", total=None)
                driver = EmissionDriver(
                    introspector,
                    options,
                    writer=writer,
                    on_category=lambda category: progress.update(task, description=f"Generating {category}..."),
                )
                try:
                    report = driver.run()
                finally:
                    introspector.close()
            ctx.record_report(report)
    except ImportError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except PgStructError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    if dry_run:
        for generated in report.files:
            console.print(f"\n[bold]{generated.filename}[/bold]")
            console.print(Syntax(generated.content, "go"))

    print_report(report, dry_run=dry_run)

    if report.written:
        console.print(f"[green]Wrote {len(report.written)} file(s) to {output_dir}[/green]")

    if not report.succeeded:
        raise typer.Exit(report.exit_code)

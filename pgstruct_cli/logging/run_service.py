"""Run history service for pgstruct.

Provides a high-level interface for recording generator runs,
including automatic context capture and error handling.
"""

import logging
import os
import sys
import time
import traceback
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pgstruct_cli.logging.run_db import RunDatabase

logger = logging.getLogger(__name__)

# Global logger instance
_run_logger: Optional["RunLogger"] = None


def get_run_logger() -> "RunLogger":
    """Get or create the global run logger, configured from settings."""
    global _run_logger
    if _run_logger is None:
        from pgstruct_cli.config import settings

        _run_logger = RunLogger(
            db_path=settings.cli_logging_db_path,
            enabled=settings.cli_logging_enabled,
            retention_days=settings.cli_logging_retention_days,
        )
    return _run_logger


@dataclass
class RunContext:
    """Context for a generator run."""

    run_id: str
    command: str
    subcommand: Optional[str] = None
    database_name: Optional[str] = None
    host: Optional[str] = None
    schema_filter: Optional[str] = None
    object_filter: Optional[str] = None
    app_user: Optional[str] = None
    arguments: Dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)

    # Results that get populated during the run
    server_version: Optional[int] = None
    types_generated: int = 0
    tables_generated: int = 0
    functions_generated: int = 0
    files_written: int = 0
    skipped_objects: List[Dict[str, Any]] = field(default_factory=list)
    failed_categories: List[str] = field(default_factory=list)
    completed: bool = False

    def record_report(self, report) -> None:
        """Copy the counts of a driver ``RunReport`` into this context."""
        self.server_version = report.server_version
        self.types_generated = report.count("type")
        self.tables_generated = report.count("table")
        self.functions_generated = report.count("function")
        self.files_written = len(report.written)
        self.skipped_objects = [
            {
                "name": skipped.qualified_name,
                "category": skipped.category,
                "code": skipped.error.code,
                "message": skipped.error.message,
            }
            for skipped in report.skipped
        ]
        self.failed_categories = [failure.category for failure in report.category_failures]
        self.completed = True


class RunLogger:
    """High-level logger for generator runs.

    Example usage:
        run_logger = get_run_logger()

        with run_logger.log_run(
            command="generate",
            subcommand="from-postgres",
            database_name="inventory",
            host="localhost",
        ) as ctx:
            report = driver.run()
            ctx.record_report(report)

            # If error occurs, it's automatically logged
    """

    def __init__(self, db_path: Optional[str] = None, enabled: bool = True, retention_days: int = 30):
        """Initialize the run logger.

        Args:
            db_path: Path to the SQLite database. If None, uses default.
            enabled: Whether logging is enabled.
            retention_days: Runs older than this are deleted on start.
        """
        self.enabled = enabled
        self._db: Optional[RunDatabase] = None
        self._db_path = db_path

        if self.enabled:
            try:
                self._db = RunDatabase(db_path)
                self._db.initialize()
                # Clean up old runs on initialization
                self._db.cleanup_old_runs(retention_days)
            except Exception as e:
                logger.warning("Failed to initialize run history: %s", e)
                self.enabled = False

    @property
    def db(self) -> Optional[RunDatabase]:
        """Get the database instance."""
        return self._db

    def _get_environment_info(self) -> Dict[str, str]:
        """Get environment information for logging."""
        return {
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            "package_version": self._get_package_version(),
            "working_directory": os.getcwd(),
        }

    def _get_package_version(self) -> str:
        """Get the pgstruct-cli package version."""
        try:
            from importlib.metadata import version
            return version("pgstruct-cli")
        except Exception:
            return "unknown"

    @contextmanager
    def log_run(
        self,
        command: str,
        subcommand: Optional[str] = None,
        database_name: Optional[str] = None,
        host: Optional[str] = None,
        schema_filter: Optional[str] = None,
        object_filter: Optional[str] = None,
        app_user: Optional[str] = None,
        arguments: Optional[Dict[str, Any]] = None,
    ):
        """Context manager for logging a generator run.

        Args:
            command: Main command (e.g., 'generate')
            subcommand: Subcommand (e.g., 'from-postgres')
            database_name: Database name
            host: Database host
            schema_filter: Schema filter
            object_filter: Object name filter
            app_user: Application user filter
            arguments: All command arguments

        Yields:
            RunContext that can be updated during the run
        """
        run_id = str(uuid.uuid4())[:8]
        ctx = RunContext(
            run_id=run_id,
            command=command,
            subcommand=subcommand,
            database_name=database_name,
            host=host,
            schema_filter=schema_filter,
            object_filter=object_filter,
            app_user=app_user,
            arguments=arguments or {},
        )

        if not self.enabled or self._db is None:
            # If logging disabled, just yield context and return
            yield ctx
            return

        # Insert initial run entry
        try:
            env_info = self._get_environment_info()
            self._db.insert_run(
                run_id=run_id,
                command=command,
                subcommand=subcommand,
                database_name=database_name,
                host=host,
                schema_filter=schema_filter,
                object_filter=object_filter,
                app_user=app_user,
                arguments=arguments,
                python_version=env_info["python_version"],
                package_version=env_info["package_version"],
                working_directory=env_info["working_directory"],
            )
        except Exception as e:
            logger.warning("Failed to log run start: %s", e)

        try:
            yield ctx
        except Exception as e:
            duration_ms = int((time.time() - ctx.start_time) * 1000)
            self._update_run_results(ctx)
            try:
                self._db.update_error(
                    run_id=run_id,
                    error_message=getattr(e, "message", str(e)),
                    error_type=type(e).__name__,
                    error_code=getattr(e, "code", None),
                    error_traceback=traceback.format_exc(),
                    duration_ms=duration_ms,
                )
            except Exception as log_err:
                logger.warning("Failed to log run error: %s", log_err)

            logger.debug(
                "Run %s failed after %dms: %s",
                run_id,
                duration_ms,
                str(e),
            )

            # Re-raise the original exception
            raise

        duration_ms = int((time.time() - ctx.start_time) * 1000)
        self._update_run_results(ctx)
        try:
            if ctx.failed_categories:
                self._db.update_error(
                    run_id=run_id,
                    error_message="Listing failed for: " + ", ".join(ctx.failed_categories),
                    error_type="CatalogQueryError",
                    error_code="CATALOG_QUERY_ERROR",
                    duration_ms=duration_ms,
                )
            else:
                self._db.update_success(run_id, duration_ms)
        except Exception as e:
            logger.warning("Failed to log run completion: %s", e)

        logger.debug("Run %s finished in %dms", run_id, duration_ms)

    def _update_run_results(self, ctx: RunContext) -> None:
        """Update the run entry with collected results."""
        if not self._db or not ctx.completed:
            return

        try:
            self._db.update_generation_results(
                run_id=ctx.run_id,
                server_version=ctx.server_version,
                types_generated=ctx.types_generated,
                tables_generated=ctx.tables_generated,
                functions_generated=ctx.functions_generated,
                files_written=ctx.files_written,
                skipped_objects=ctx.skipped_objects,
                failed_categories=ctx.failed_categories,
            )
        except Exception as e:
            logger.warning("Failed to update run results: %s", e)

    def query_runs(
        self,
        command: Optional[str] = None,
        status: Optional[str] = None,
        database_name: Optional[str] = None,
        since_hours: int = 24,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Query runs with optional filters."""
        if not self.enabled or not self._db:
            return []

        return self._db.query_runs(
            command=command,
            status=status,
            database_name=database_name,
            since_hours=since_hours,
            limit=limit,
        )

    def get_stats(self, since_hours: int = 24) -> Dict[str, Any]:
        """Get statistics about runs."""
        if not self.enabled or not self._db:
            return {"error": "Logging not enabled"}

        return self._db.get_stats(since_hours=since_hours)

    def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific run by ID."""
        if not self.enabled or not self._db:
            return None

        return self._db.get_run_by_id(run_id)


def log_run(
    command: str,
    subcommand: Optional[str] = None,
    database_name: Optional[str] = None,
    host: Optional[str] = None,
    schema_filter: Optional[str] = None,
    object_filter: Optional[str] = None,
    app_user: Optional[str] = None,
    arguments: Optional[Dict[str, Any]] = None,
):
    """Convenience function to get a logging context manager.

    Example:
        with log_run("generate", "from-postgres", "inventory", "localhost") as ctx:
            ctx.record_report(driver.run())
    """
    return get_run_logger().log_run(
        command=command,
        subcommand=subcommand,
        database_name=database_name,
        host=host,
        schema_filter=schema_filter,
        object_filter=object_filter,
        app_user=app_user,
        arguments=arguments,
    )

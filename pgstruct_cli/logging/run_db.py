"""Database operations for generator run history."""

import sqlite3
import logging
import json
from pathlib import Path
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)


# SQL schema for run history
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS cli_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id TEXT UNIQUE NOT NULL,
    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
    command TEXT NOT NULL,
    subcommand TEXT,
    database_name TEXT,
    host TEXT,
    schema_filter TEXT,
    object_filter TEXT,
    app_user TEXT,
    arguments TEXT,  -- JSON of all arguments
    status TEXT DEFAULT 'started',  -- 'started', 'success', 'error'
    duration_ms INTEGER,

    -- Generation results
    server_version INTEGER,
    types_generated INTEGER,
    tables_generated INTEGER,
    functions_generated INTEGER,
    files_written INTEGER,
    objects_skipped INTEGER,
    skipped_objects TEXT,  -- JSON array of {name, category, code, message}
    failed_categories TEXT,  -- JSON array of category names

    -- Error information
    error_message TEXT,
    error_type TEXT,
    error_code TEXT,
    error_traceback TEXT,

    -- Environment info
    python_version TEXT,
    package_version TEXT,
    working_directory TEXT
);

CREATE INDEX IF NOT EXISTS idx_cli_runs_timestamp ON cli_runs(timestamp);
CREATE INDEX IF NOT EXISTS idx_cli_runs_run_id ON cli_runs(run_id);
CREATE INDEX IF NOT EXISTS idx_cli_runs_status ON cli_runs(status);
CREATE INDEX IF NOT EXISTS idx_cli_runs_database_name ON cli_runs(database_name);
"""


def get_default_run_db_path() -> str:
    """Get the default database path (~/.pgstruct/cli_runs.db)."""
    home = Path.home()
    pgstruct_dir = home / ".pgstruct"
    pgstruct_dir.mkdir(exist_ok=True)
    return str(pgstruct_dir / "cli_runs.db")


def _since(hours: int = 0, days: int = 0) -> str:
    """Cutoff in the format SQLite's CURRENT_TIMESTAMP uses."""
    cutoff = datetime.now(timezone.utc) - timedelta(hours=hours, days=days)
    return cutoff.strftime("%Y-%m-%d %H:%M:%S")


class RunDatabase:
    """SQLite database for generator run history."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses default.
        """
        self.db_path = db_path or get_default_run_db_path()
        self._connection: Optional[sqlite3.Connection] = None
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        try:
            conn = self._get_connection()
            conn.executescript(SCHEMA_SQL)
            self._initialized = True
            logger.debug("Run history database initialized at %s", self.db_path)
        except sqlite3.Error as e:
            logger.error("Failed to initialize run history database: %s", e)
            raise

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def insert_run(
        self,
        run_id: str,
        command: str,
        subcommand: Optional[str] = None,
        database_name: Optional[str] = None,
        host: Optional[str] = None,
        schema_filter: Optional[str] = None,
        object_filter: Optional[str] = None,
        app_user: Optional[str] = None,
        arguments: Optional[Dict[str, Any]] = None,
        python_version: Optional[str] = None,
        package_version: Optional[str] = None,
        working_directory: Optional[str] = None,
    ) -> int:
        """Insert a new run entry.

        Args:
            run_id: Unique identifier for this run
            command: Main command (e.g., 'generate')
            subcommand: Subcommand (e.g., 'from-postgres')
            database_name: Database that was introspected
            host: Database host
            schema_filter: Schema filter if specified
            object_filter: Object name filter if specified
            app_user: Application user filter if specified
            arguments: Dictionary of all command arguments
            python_version: Python version
            package_version: pgstruct version
            working_directory: Current working directory

        Returns:
            The row ID of the inserted entry
        """
        self.initialize()
        conn = self._get_connection()

        arguments_json = json.dumps(arguments, default=str) if arguments else None

        cursor = conn.execute(
            """
            INSERT INTO cli_runs (
                run_id, command, subcommand, database_name, host,
                schema_filter, object_filter, app_user, arguments, status,
                python_version, package_version, working_directory
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'started', ?, ?, ?)
            """,
            (
                run_id, command, subcommand, database_name, host,
                schema_filter, object_filter, app_user, arguments_json,
                python_version, package_version, working_directory,
            ),
        )
        return cursor.lastrowid

    def update_generation_results(
        self,
        run_id: str,
        server_version: Optional[int] = None,
        types_generated: int = 0,
        tables_generated: int = 0,
        functions_generated: int = 0,
        files_written: int = 0,
        skipped_objects: Optional[List[Dict[str, Any]]] = None,
        failed_categories: Optional[List[str]] = None,
    ) -> None:
        """Update run with code generation results.

        Args:
            run_id: Run identifier
            server_version: Server version number of the catalog
            types_generated: Number of composite type structs generated
            tables_generated: Number of table/view structs generated
            functions_generated: Number of function files generated
            files_written: Number of files written to disk
            skipped_objects: Objects left out, with the reason
            failed_categories: Categories whose listing failed
        """
        skipped_objects = skipped_objects or []
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE cli_runs
            SET server_version = ?, types_generated = ?, tables_generated = ?,
                functions_generated = ?, files_written = ?, objects_skipped = ?,
                skipped_objects = ?, failed_categories = ?
            WHERE run_id = ?
            """,
            (
                server_version, types_generated, tables_generated,
                functions_generated, files_written, len(skipped_objects),
                json.dumps(skipped_objects), json.dumps(failed_categories or []),
                run_id,
            ),
        )

    def update_success(
        self,
        run_id: str,
        duration_ms: int,
    ) -> None:
        """Mark run as successful.

        Args:
            run_id: Run identifier
            duration_ms: Total duration in milliseconds
        """
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE cli_runs
            SET status = 'success', duration_ms = ?
            WHERE run_id = ?
            """,
            (duration_ms, run_id),
        )

    def update_error(
        self,
        run_id: str,
        error_message: str,
        error_type: Optional[str] = None,
        error_code: Optional[str] = None,
        error_traceback: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Mark run as failed with error details.

        Args:
            run_id: Run identifier
            error_message: Error message
            error_type: Exception type
            error_code: PgStructError code, when there is one
            error_traceback: Full traceback
            duration_ms: Duration until error
        """
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE cli_runs
            SET status = 'error', error_message = ?, error_type = ?,
                error_code = ?, error_traceback = ?, duration_ms = ?
            WHERE run_id = ?
            """,
            (error_message, error_type, error_code, error_traceback, duration_ms, run_id),
        )

    def query_runs(
        self,
        command: Optional[str] = None,
        status: Optional[str] = None,
        database_name: Optional[str] = None,
        since_hours: int = 24,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Query run entries with optional filters.

        Args:
            command: Filter by command
            status: Filter by status
            database_name: Filter by database name
            since_hours: Look back N hours (default 24)
            limit: Maximum number of results
            offset: Offset for pagination

        Returns:
            List of run entries as dictionaries
        """
        self.initialize()
        conn = self._get_connection()

        conditions = ["timestamp >= ?"]
        params: List[Any] = [_since(hours=since_hours)]

        if command:
            conditions.append("command = ?")
            params.append(command)

        if status:
            conditions.append("status = ?")
            params.append(status)

        if database_name:
            conditions.append("database_name = ?")
            params.append(database_name)

        where_clause = " AND ".join(conditions)
        params.extend([limit, offset])

        query = f"""
            SELECT * FROM cli_runs
            WHERE {where_clause}
            ORDER BY timestamp DESC, id DESC
            LIMIT ? OFFSET ?
        """

        cursor = conn.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def get_run_by_id(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific run by ID.

        Args:
            run_id: Run identifier

        Returns:
            Run entry as dictionary or None
        """
        self.initialize()
        conn = self._get_connection()

        cursor = conn.execute(
            "SELECT * FROM cli_runs WHERE run_id = ?",
            (run_id,),
        )
        row = cursor.fetchone()

        return dict(row) if row else None

    def get_stats(self, since_hours: int = 24) -> Dict[str, Any]:
        """Get statistics about generator runs.

        Args:
            since_hours: Look back N hours

        Returns:
            Dict with statistics
        """
        self.initialize()
        conn = self._get_connection()

        since_time = _since(hours=since_hours)

        cursor = conn.execute(
            """
            SELECT
                COUNT(*) as total,
                SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) as success_count,
                SUM(CASE WHEN status = 'error' THEN 1 ELSE 0 END) as error_count,
                AVG(duration_ms) as avg_duration_ms,
                SUM(files_written) as total_files,
                SUM(objects_skipped) as total_skipped
            FROM cli_runs
            WHERE timestamp >= ?
            """,
            (since_time,),
        )
        row = cursor.fetchone()

        cursor = conn.execute(
            """
            SELECT database_name, COUNT(*) as count,
                   SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) as success,
                   SUM(CASE WHEN status = 'error' THEN 1 ELSE 0 END) as errors
            FROM cli_runs
            WHERE timestamp >= ? AND database_name IS NOT NULL
            GROUP BY database_name
            ORDER BY count DESC
            """,
            (since_time,),
        )
        db_stats = [dict(r) for r in cursor.fetchall()]

        cursor = conn.execute(
            """
            SELECT run_id, timestamp, command, subcommand, error_message, error_type
            FROM cli_runs
            WHERE timestamp >= ? AND status = 'error'
            ORDER BY timestamp DESC
            LIMIT 5
            """,
            (since_time,),
        )
        recent_errors = [dict(r) for r in cursor.fetchall()]

        return {
            "total_runs": row["total"] or 0,
            "success_count": row["success_count"] or 0,
            "error_count": row["error_count"] or 0,
            "avg_duration_ms": round(row["avg_duration_ms"] or 0, 2),
            "total_files_written": row["total_files"] or 0,
            "total_objects_skipped": row["total_skipped"] or 0,
            "since_hours": since_hours,
            "by_database": db_stats,
            "recent_errors": recent_errors,
        }

    def cleanup_old_runs(self, retention_days: int = 30) -> int:
        """Delete runs older than retention period.

        Args:
            retention_days: Number of days to retain runs

        Returns:
            Number of deleted rows
        """
        self.initialize()
        conn = self._get_connection()

        cursor = conn.execute(
            "DELETE FROM cli_runs WHERE timestamp < ?",
            (_since(days=retention_days),),
        )

        deleted = cursor.rowcount
        if deleted > 0:
            logger.info("Cleaned up %d old run entries", deleted)

        return deleted

    def __enter__(self):
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

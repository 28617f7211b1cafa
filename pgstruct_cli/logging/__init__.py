"""Run history for pgstruct.

Records every generator run in a local SQLite database to help with
debugging and auditing.
"""

from pgstruct_cli.logging.run_db import RunDatabase, get_default_run_db_path
from pgstruct_cli.logging.run_service import (
    RunContext,
    RunLogger,
    get_run_logger,
    log_run,
)

__all__ = [
    "RunDatabase",
    "get_default_run_db_path",
    "RunContext",
    "RunLogger",
    "get_run_logger",
    "log_run",
]

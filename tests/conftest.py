"""Shared pytest fixtures for pgstruct tests."""

import pytest

from pgstruct_cli.catalog.models import TableOrView
from pgstruct_cli.codegen.type_mappers import TypeTranslationTable
from pgstruct_cli.logging.run_service import RunLogger
from tests.fixtures import column, sample_catalog


@pytest.fixture
def translation_table():
    """A fresh translation table with no domains or composites registered."""
    return TypeTranslationTable()


@pytest.fixture
def account_columns():
    """(id integer not null primary key, name text, created_at timestamp)."""
    return [
        column("id", "int4", "integer", 1, is_required=True, is_primary_key=True),
        column("name", "text", "text", 2),
        column("created_at", "timestamp", "timestamp without time zone", 3),
    ]


@pytest.fixture
def account_table(account_columns):
    return TableOrView(
        schema_name="public",
        obj_name="account",
        obj_type="table",
        struct_name="Account",
        columns=account_columns,
    )


@pytest.fixture
def catalog():
    """A mock catalog with types, tables, views and functions."""
    return sample_catalog()


@pytest.fixture
def run_logger(tmp_path):
    """A RunLogger backed by a temporary SQLite file."""
    logger = RunLogger(db_path=str(tmp_path / "runs.db"))
    yield logger
    if logger.db:
        logger.db.close()

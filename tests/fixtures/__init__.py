"""Test fixtures package."""

from .mock_catalog import MockCatalogIntrospector, column, pg_type, sample_catalog

__all__ = [
    "MockCatalogIntrospector",
    "column",
    "pg_type",
    "sample_catalog",
]

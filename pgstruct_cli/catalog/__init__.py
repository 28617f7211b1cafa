"""Catalog introspection module for pgstruct.

This module reads type, table and function metadata from the PostgreSQL
system catalogs, already filtered by schema, object name and grantee.
"""

from .models import (
    CatalogFilter,
    ColumnMetadata,
    DomainMetadata,
    Function,
    ObjectMetadata,
    PgType,
    TableOrView,
    UserType,
)
from .base import CatalogIntrospector
from .queries import QueryStrategy, select_strategy
from .postgres import PostgresIntrospector

__all__ = [
    # Data models
    "CatalogFilter",
    "ColumnMetadata",
    "DomainMetadata",
    "Function",
    "ObjectMetadata",
    "PgType",
    "TableOrView",
    "UserType",
    # Base classes
    "CatalogIntrospector",
    # Query selection
    "QueryStrategy",
    "select_strategy",
    # Introspectors
    "PostgresIntrospector",
]

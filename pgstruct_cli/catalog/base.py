"""Abstract base class for catalog introspection."""

from abc import ABC, abstractmethod
from typing import Dict, List

from .models import (
    CatalogFilter,
    ColumnMetadata,
    DomainMetadata,
    Function,
    PgType,
    TableOrView,
    UserType,
)


class CatalogIntrospector(ABC):
    """Abstract base class for catalog introspection.

    Implementations return already-filtered metadata rows; the code
    generator makes no further filtering decisions. Listing methods may
    return several rows for one object (one per grantee when no application
    user is given).
    """

    @abstractmethod
    def connect(self):
        """Open and verify the catalog connection.

        Raises:
            CatalogConnectionError: the connection or its health check failed.
        """
        pass

    @abstractmethod
    def close(self):
        """Close the catalog connection."""
        pass

    @abstractmethod
    def server_version(self) -> int:
        """Return the server version number (e.g. 150004)."""
        pass

    @abstractmethod
    def list_domains(self) -> List[DomainMetadata]:
        """Return every domain type with its base type, unfiltered."""
        pass

    @abstractmethod
    def list_type_oids(self) -> Dict[str, PgType]:
        """Return catalog types keyed by OID text."""
        pass

    @abstractmethod
    def list_user_types(self, catalog_filter: CatalogFilter) -> List[UserType]:
        """Return user defined composite types."""
        pass

    @abstractmethod
    def list_type_columns(self, schema: str, type_name: str) -> List[ColumnMetadata]:
        """Return the attributes of a composite type, in ordinal order."""
        pass

    @abstractmethod
    def list_tables(self, catalog_filter: CatalogFilter) -> List[TableOrView]:
        """Return tables, views, materialized views and foreign tables."""
        pass

    @abstractmethod
    def list_table_columns(self, schema: str, table: str) -> List[ColumnMetadata]:
        """Return the columns of a table or view, in ordinal order."""
        pass

    @abstractmethod
    def list_functions(self, catalog_filter: CatalogFilter) -> List[Function]:
        """Return functions and procedures with their raw signatures."""
        pass

    def describe(self) -> Dict[str, str]:
        """Connection identity for generated file headers."""
        return {}

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

"""Mock catalog introspector for testing."""

from typing import Any, Dict, List, Optional

from pgstruct_cli.catalog.base import CatalogIntrospector
from pgstruct_cli.catalog.models import (
    CatalogFilter,
    ColumnMetadata,
    DomainMetadata,
    Function,
    PgType,
    TableOrView,
    UserType,
)
from pgstruct_cli.errors import CatalogConnectionError, CatalogQueryError


def column(
    name: str,
    type_name: str,
    native_type: Optional[str] = None,
    ordinal_position: int = 1,
    is_required: bool = False,
    is_primary_key: bool = False,
    description: str = "",
) -> ColumnMetadata:
    """Build a ColumnMetadata with the native type defaulting to the typname."""
    return ColumnMetadata(
        name=name,
        native_type=native_type or type_name,
        type_name=type_name,
        ordinal_position=ordinal_position,
        is_required=is_required,
        is_primary_key=is_primary_key,
        description=description,
    )


def pg_type(oid: int, type_name: str, native_type: Optional[str] = None, schema_name: str = "pg_catalog") -> PgType:
    return PgType(oid=oid, schema_name=schema_name, type_name=type_name, native_type=native_type or type_name)


class MockCatalogIntrospector(CatalogIntrospector):
    """In-memory CatalogIntrospector for testing without a PostgreSQL server.

    Listings are returned as configured; ``fail`` maps a method name to the
    exception it raises instead. Calls are recorded in ``call_history``.
    """

    def __init__(
        self,
        version: int = 150004,
        domains: Optional[List[DomainMetadata]] = None,
        type_oids: Optional[Dict[str, PgType]] = None,
        user_types: Optional[List[UserType]] = None,
        type_columns: Optional[Dict[str, List[ColumnMetadata]]] = None,
        tables: Optional[List[TableOrView]] = None,
        table_columns: Optional[Dict[str, List[ColumnMetadata]]] = None,
        functions: Optional[List[Function]] = None,
        fail: Optional[Dict[str, Exception]] = None,
    ):
        self.version = version
        self.domains = domains or []
        self.type_oids = type_oids or {}
        self.user_types = user_types or []
        self.type_columns = type_columns or {}
        self.tables = tables or []
        self.table_columns = table_columns or {}
        self.functions = functions or []
        self.fail = fail or {}
        self.host = "localhost"
        self.port = 5432
        self.database = "testdb"
        self.connected = False
        self.closed = False
        self.call_history: List[Dict[str, Any]] = []

    def _record(self, method: str, **kwargs):
        self.call_history.append({"method": method, **kwargs})
        if method in self.fail:
            raise self.fail[method]

    def calls(self, method: str) -> List[Dict[str, Any]]:
        return [call for call in self.call_history if call["method"] == method]

    def connect(self):
        self._record("connect")
        self.connected = True

    def close(self):
        self.closed = True

    def describe(self) -> Dict[str, str]:
        return {"host": self.host, "database": self.database}

    def server_version(self) -> int:
        self._record("server_version")
        return self.version

    def list_domains(self) -> List[DomainMetadata]:
        self._record("list_domains")
        return list(self.domains)

    def list_type_oids(self) -> Dict[str, PgType]:
        self._record("list_type_oids")
        return dict(self.type_oids)

    def list_user_types(self, catalog_filter: CatalogFilter) -> List[UserType]:
        self._record("list_user_types", catalog_filter=catalog_filter)
        return list(self.user_types)

    def list_type_columns(self, schema: str, type_name: str) -> List[ColumnMetadata]:
        key = f"{schema}.{type_name}"
        self._record("list_type_columns", key=key)
        if key in self.fail:
            raise self.fail[key]
        return list(self.type_columns.get(key, []))

    def list_tables(self, catalog_filter: CatalogFilter) -> List[TableOrView]:
        self._record("list_tables", catalog_filter=catalog_filter)
        return list(self.tables)

    def list_table_columns(self, schema: str, table: str) -> List[ColumnMetadata]:
        key = f"{schema}.{table}"
        self._record("list_table_columns", key=key)
        if key in self.fail:
            raise self.fail[key]
        return list(self.table_columns.get(key, []))

    def list_functions(self, catalog_filter: CatalogFilter) -> List[Function]:
        self._record("list_functions", catalog_filter=catalog_filter)
        return list(self.functions)


def sample_catalog(**overrides) -> MockCatalogIntrospector:
    """A small catalog: one composite type, a domain, two tables, two functions."""
    kwargs = dict(
        domains=[
            DomainMetadata(
                schema_name="public",
                obj_name="email_address",
                native_type="text",
                type_name="text",
            ),
        ],
        type_oids={
            "23": pg_type(23, "int4", "integer"),
            "25": pg_type(25, "text", "text"),
            "1114": pg_type(1114, "timestamp", "timestamp without time zone"),
        },
        user_types=[
            UserType(schema_name="public", obj_name="postal_address", obj_type="composite type"),
        ],
        type_columns={
            "public.postal_address": [
                column("street", "text", ordinal_position=1),
                column("zip_code", "varchar", "character varying(10)", ordinal_position=2),
            ],
        },
        tables=[
            TableOrView(schema_name="public", obj_name="customer", obj_type="table", privs="arwd"),
            # Same table again, granted to a second user
            TableOrView(schema_name="public", obj_name="customer", obj_type="table", privs="r"),
            TableOrView(schema_name="public", obj_name="customer_order", obj_type="view", obj_kind="v"),
        ],
        table_columns={
            "public.customer": [
                column("id", "int4", "integer", 1, is_required=True, is_primary_key=True),
                column("name", "text", "text", 2),
                column("email", "email_address", "email_address", 3, description="Primary contact"),
                column("address", "postal_address", "postal_address", 4),
                column("created_at", "timestamp", "timestamp without time zone", 5),
            ],
            "public.customer_order": [
                column("order_id", "int8", "bigint", 1),
                column("customer_id", "int4", "integer", 2),
                column("total", "numeric", "numeric(12,2)", 3),
            ],
        },
        functions=[
            Function(
                schema_name="public",
                obj_name="customer_orders",
                obj_type="function",
                argument_types="p_customer_id integer",
                result_types="TABLE(order_id integer, placed_at timestamp without time zone)",
                arg_types="23,23,1114",
                arg_modes="i,t,t",
                arg_names="p_customer_id,order_id,placed_at",
            ),
            Function(
                schema_name="public",
                obj_name="customer_count",
                obj_type="function",
                argument_types="",
                result_types="integer",
                arg_types="23",
                arg_modes="o",
                arg_names="int4",
            ),
        ],
    )
    kwargs.update(overrides)
    return MockCatalogIntrospector(**kwargs)

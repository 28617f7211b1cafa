"""PostgreSQL catalog introspector."""

import logging
from typing import Dict, List, Optional

from ..errors import CatalogConnectionError, CatalogQueryError
from .base import CatalogIntrospector
from .models import (
    CatalogFilter,
    ColumnMetadata,
    DomainMetadata,
    Function,
    PgType,
    TableOrView,
    UserType,
)
from .queries import (
    DOMAINS_SQL,
    PING_SQL,
    SERVER_VERSION_SQL,
    TABLE_COLUMNS_SQL,
    TABLES_SQL,
    TYPE_COLUMNS_SQL,
    TYPE_OIDS_SQL,
    USER_TYPES_SQL,
    QueryStrategy,
    select_strategy,
)

logger = logging.getLogger(__name__)


def _filter_params(catalog_filter: CatalogFilter) -> Dict[str, str]:
    return {
        "schema": catalog_filter.schema or "",
        "objects": catalog_filter.objects or "",
        "app_user": catalog_filter.app_user or "",
    }


def _column_from_row(row: Dict) -> ColumnMetadata:
    return ColumnMetadata(
        name=row["column_name"] or "",
        native_type=row["data_type"] or "",
        type_name=row["type_name"] or "",
        type_category=row.get("type_category") or "",
        ordinal_position=int(row["ordinal_position"]),
        is_required=bool(row["is_required"]),
        is_primary_key=bool(row.get("is_pk")),
        description=row.get("description") or "",
    )


class PostgresIntrospector(CatalogIntrospector):
    """Client for introspecting a PostgreSQL catalog.

    The session is opened read-only with autocommit so that a failed query
    does not abort the statements that follow it.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        connect_timeout: int = 10,
    ):
        """Initialize the introspector.

        Args:
            host: Server host (default: PGHOST setting)
            port: Server port (default: PGPORT setting)
            database: Database name (default: PGDATABASE setting)
            user: User name (default: PGUSER setting)
            password: Password (default: PGPASSWORD setting)
            connect_timeout: Seconds to wait for the connection
        """
        from ..config import settings

        self.host = host or settings.pghost
        self.port = port or settings.pgport
        self.database = database or settings.pgdatabase
        self.user = user or settings.pguser
        self.password = password or settings.pgpassword
        self.connect_timeout = connect_timeout
        self._connection = None
        self._server_version: Optional[int] = None
        self._strategy: Optional[QueryStrategy] = None

    def connect(self):
        """Connect to PostgreSQL and verify the connection."""
        if self._connection is not None:
            return self._connection

        try:
            import psycopg2
        except ImportError:
            raise ImportError(
                "psycopg2 is required for PostgreSQL connections. "
                "Install it with: pip install psycopg2-binary"
            )

        logger.debug("Connecting to %s:%s/%s as %s", self.host, self.port, self.database, self.user)
        try:
            self._connection = psycopg2.connect(
                host=self.host,
                port=self.port,
                dbname=self.database,
                user=self.user,
                password=self.password,
                connect_timeout=self.connect_timeout,
                application_name="pgstruct",
            )
            self._connection.set_session(readonly=True, autocommit=True)
            with self._connection.cursor() as cursor:
                cursor.execute(PING_SQL)
                cursor.fetchone()
        except psycopg2.Error as e:
            self.close()
            raise CatalogConnectionError(
                f"Unable to connect to {self.host}:{self.port}/{self.database}: {str(e).strip()}",
                details={"host": self.host, "port": self.port, "database": self.database},
            ) from e
        return self._connection

    def close(self):
        """Close the PostgreSQL connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def describe(self) -> Dict[str, str]:
        return {
            "host": self.host or "",
            "database": self.database or "",
        }

    def _execute_query(self, sql: str, params: Optional[Dict] = None, category: Optional[str] = None) -> List[Dict]:
        """Execute a SQL query and return rows as dicts keyed by column name.

        Raises:
            CatalogQueryError: the server rejected the query.
        """
        import psycopg2

        connection = self.connect()
        try:
            with connection.cursor() as cursor:
                cursor.execute(sql, params)
                names = [desc[0] for desc in cursor.description]
                return [dict(zip(names, row)) for row in cursor.fetchall()]
        except psycopg2.Error as e:
            raise CatalogQueryError(str(e).strip(), category=category) from e

    def server_version(self) -> int:
        if self._server_version is None:
            rows = self._execute_query(SERVER_VERSION_SQL, category="version")
            self._server_version = int(rows[0]["version"])
        return self._server_version

    @property
    def strategy(self) -> QueryStrategy:
        """Query variant for the connected server, chosen once."""
        if self._strategy is None:
            self._strategy = select_strategy(self.server_version())
            logger.debug("Using %s catalog queries for server %s", self._strategy.name, self._server_version)
        return self._strategy

    def list_domains(self) -> List[DomainMetadata]:
        rows = self._execute_query(DOMAINS_SQL, category="domains")
        return [
            DomainMetadata(
                schema_name=row["schema_name"],
                obj_name=row["obj_name"],
                native_type=row["data_type"],
                type_name=row["type_name"],
                type_category=row["type_category"] or "",
                is_required=bool(row["is_required"]),
                description=row["description"] or "",
            )
            for row in rows
        ]

    def list_type_oids(self) -> Dict[str, PgType]:
        rows = self._execute_query(TYPE_OIDS_SQL, category="type_oids")
        types = {}
        for row in rows:
            pg_type = PgType(
                oid=int(row["oid"]),
                schema_name=row["schema_name"],
                type_name=row["type_name"],
                native_type=row["data_type"],
                type_type=row["type_type"] or "b",
                type_category=row["type_category"] or "",
                base_oid=int(row["base_oid"] or 0),
                base_type_name=row["base_type_name"] or "",
            )
            types[str(pg_type.oid)] = pg_type
        return types

    def list_user_types(self, catalog_filter: CatalogFilter) -> List[UserType]:
        rows = self._execute_query(USER_TYPES_SQL, _filter_params(catalog_filter), category="types")
        return [
            UserType(
                schema_name=row["schema_name"],
                obj_name=row["obj_name"],
                obj_type=row["obj_type"],
                description=row["description"] or "",
            )
            for row in rows
        ]

    def list_type_columns(self, schema: str, type_name: str) -> List[ColumnMetadata]:
        rows = self._execute_query(
            TYPE_COLUMNS_SQL,
            {"schema": schema, "obj_name": type_name},
            category="types",
        )
        return [_column_from_row(row) for row in rows]

    def list_tables(self, catalog_filter: CatalogFilter) -> List[TableOrView]:
        rows = self._execute_query(TABLES_SQL, _filter_params(catalog_filter), category="tables")
        return [
            TableOrView(
                schema_name=row["schema_name"],
                obj_name=row["obj_name"],
                obj_type=row["obj_type"],
                obj_kind=row["obj_kind"],
                privs=row["privs"] or "",
                description=row["description"] or "",
            )
            for row in rows
        ]

    def list_table_columns(self, schema: str, table: str) -> List[ColumnMetadata]:
        rows = self._execute_query(
            TABLE_COLUMNS_SQL,
            {"schema": schema, "obj_name": table},
            category="tables",
        )
        return [_column_from_row(row) for row in rows]

    def list_functions(self, catalog_filter: CatalogFilter) -> List[Function]:
        rows = self._execute_query(
            self.strategy.functions_sql,
            _filter_params(catalog_filter),
            category="functions",
        )
        return [
            Function(
                schema_name=row["schema_name"],
                obj_name=row["obj_name"],
                obj_type=row["obj_type"],
                obj_kind=row["obj_kind"],
                privs=row["privs"] or "",
                description=row["description"] or "",
                argument_types=row["argument_types"] or "",
                result_types=row["result_types"] or "",
                arg_types=row["arg_types"] or "",
                arg_modes=row["arg_modes"] or "",
                arg_names=row["arg_names"] or "",
            )
            for row in rows
        ]

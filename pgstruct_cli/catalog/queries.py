"""Catalog queries.

Queries take psycopg2 named parameters. ``schema``, ``objects`` (a
comma-separated list) and ``app_user`` are empty strings when unrestricted.
"""

from dataclasses import dataclass
from string import Template

SERVER_VERSION_SQL = "SELECT current_setting ( 'server_version_num' )::int AS version"

PING_SQL = "SELECT 1 AS ok"

DOMAINS_SQL = """
SELECT n.nspname::text AS schema_name,
        t.typname::text AS obj_name,
        pg_catalog.format_type ( t.typbasetype, t.typtypmod ) AS data_type,
        bt.typname::text AS type_name,
        bt.typcategory::text AS type_category,
        t.typnotnull AS is_required,
        coalesce ( pg_catalog.obj_description ( t.oid, 'pg_type' ), '' ) AS description
    FROM pg_catalog.pg_type t
    JOIN pg_catalog.pg_namespace n
        ON ( n.oid = t.typnamespace )
    JOIN pg_catalog.pg_type bt
        ON ( bt.oid = t.typbasetype )
    WHERE t.typtype = 'd'
        AND n.nspname <> 'information_schema'
        AND n.nspname !~ '^pg_toast'
    ORDER BY n.nspname,
        t.typname
"""

TYPE_OIDS_SQL = """
SELECT t.oid::int AS oid,
        n.nspname::text AS schema_name,
        t.typname::text AS type_name,
        pg_catalog.format_type ( t.oid, NULL ) AS data_type,
        t.typtype::text AS type_type,
        t.typcategory::text AS type_category,
        coalesce ( bt.oid::int, 0 ) AS base_oid,
        coalesce ( bt.typname::text, '' ) AS base_type_name
    FROM pg_catalog.pg_type t
    JOIN pg_catalog.pg_namespace n
        ON n.oid = t.typnamespace
    LEFT JOIN pg_catalog.pg_type bt
        ON ( bt.oid = t.typbasetype )
    WHERE n.nspname <> 'information_schema'
        AND n.nspname !~ '^pg_toast'
        AND NOT ( t.typtype = 'c'
            AND n.nspname = 'pg_catalog' )
"""

USER_TYPES_SQL = """
SELECT n.nspname::text AS schema_name,
        t.typname::text AS obj_name,
        'composite type' AS obj_type,
        coalesce ( pg_catalog.obj_description ( t.oid, 'pg_type' ), '' ) AS description
    FROM pg_catalog.pg_type t
    JOIN pg_catalog.pg_namespace n
        ON n.oid = t.typnamespace
    JOIN pg_catalog.pg_class c
        ON c.oid = t.typrelid
    WHERE t.typtype = 'c'
        AND c.relkind = 'c'
        AND n.nspname <> 'pg_catalog'
        AND n.nspname <> 'information_schema'
        AND n.nspname !~ '^pg_toast'
        AND ( n.nspname = %(schema)s
            OR %(schema)s = '' )
        AND ( %(objects)s = ''
            OR t.typname = ANY ( regexp_split_to_array ( %(objects)s, ', *' ) ) )
    ORDER BY n.nspname,
        t.typname
"""

TYPE_COLUMNS_SQL = """
SELECT a.attname::text AS column_name,
        pg_catalog.format_type ( a.atttypid, a.atttypmod ) AS data_type,
        tc.typname::text AS type_name,
        tc.typcategory::text AS type_category,
        a.attnum AS ordinal_position,
        a.attnotnull AS is_required,
        false AS is_pk,
        coalesce ( pg_catalog.col_description ( a.attrelid, a.attnum ), '' ) AS description
    FROM pg_catalog.pg_attribute a
    JOIN pg_catalog.pg_type tt
        ON a.attrelid = tt.typrelid
    JOIN pg_catalog.pg_type tc
        ON a.atttypid = tc.oid
    JOIN pg_catalog.pg_namespace n
        ON ( n.oid = tt.typnamespace )
    WHERE tt.typtype = 'c'
        AND a.attnum > 0
        AND NOT a.attisdropped
        AND n.nspname = %(schema)s
        AND tt.typname = %(obj_name)s
    ORDER BY a.attnum
"""

# When no user is given there is one row per grantee of each object
TABLES_SQL = """
WITH obj AS (
    SELECT n.nspname::text AS schema_name,
            c.relname::text AS obj_name,
            c.relkind::text AS obj_kind,
            CASE c.relkind
                WHEN 'r' THEN 'table'
                WHEN 'p' THEN 'table'
                WHEN 'v' THEN 'view'
                WHEN 'm' THEN 'materialized view'
                WHEN 'f' THEN 'foreign table'
                END AS obj_type,
            coalesce ( pg_catalog.obj_description ( c.oid, 'pg_class' ), '' ) AS description,
            coalesce ( acl.acl::text, '' ) AS acl
        FROM pg_catalog.pg_class c
        JOIN pg_catalog.pg_namespace n
            ON n.oid = c.relnamespace
        LEFT JOIN LATERAL unnest ( c.relacl ) AS acl ( acl )
            ON true
        WHERE c.relkind IN ( 'r', 'p', 'v', 'm', 'f' )
            AND n.nspname <> 'pg_catalog'
            AND n.nspname <> 'information_schema'
            AND n.nspname !~ '^pg_toast'
            AND ( n.nspname = %(schema)s
                OR %(schema)s = '' )
            AND ( %(objects)s = ''
                OR c.relname = ANY ( regexp_split_to_array ( %(objects)s, ', *' ) ) )
)
SELECT obj.schema_name,
        obj.obj_name,
        obj.obj_kind,
        obj.obj_type,
        regexp_replace ( regexp_replace ( obj.acl, '^[^=]*=', '' ), '[/].*', '' ) AS privs,
        obj.description
    FROM obj
    WHERE ( %(app_user)s = ''
            OR obj.acl LIKE %(app_user)s || '=%%' )
    ORDER BY obj.schema_name,
        obj.obj_name,
        obj.obj_type
"""

TABLE_COLUMNS_SQL = """
SELECT a.attname::text AS column_name,
        pg_catalog.format_type ( a.atttypid, a.atttypmod ) AS data_type,
        t.typname::text AS type_name,
        t.typcategory::text AS type_category,
        a.attnum AS ordinal_position,
        a.attnotnull AS is_required,
        EXISTS (
            SELECT 1
                FROM pg_catalog.pg_constraint pk
                WHERE pk.conrelid = c.oid
                    AND pk.contype = 'p'
                    AND a.attnum = ANY ( pk.conkey ) ) AS is_pk,
        coalesce ( pg_catalog.col_description ( a.attrelid, a.attnum ), '' ) AS description
    FROM pg_catalog.pg_attribute a
    JOIN pg_catalog.pg_class c
        ON ( c.oid = a.attrelid )
    JOIN pg_catalog.pg_namespace n
        ON ( n.oid = c.relnamespace )
    JOIN pg_catalog.pg_type t
        ON ( t.oid = a.atttypid )
    WHERE a.attnum > 0
        AND NOT a.attisdropped
        AND n.nspname = %(schema)s
        AND c.relname = %(obj_name)s
    ORDER BY a.attnum
"""

# ${kind_columns} and ${kind_filter} vary with the server version
_FUNCTIONS_TEMPLATE = Template("""
WITH proc AS (
    SELECT p.oid,
            n.nspname::text AS schema_name,
            p.proname::text AS obj_name,
            ${kind_columns},
            pg_catalog.pg_get_function_result ( p.oid ) AS result_types,
            pg_catalog.pg_get_function_arguments ( p.oid ) AS argument_types,
            pg_catalog.obj_description ( p.oid, 'pg_proc' ) AS description,
            CASE
                WHEN p.proallargtypes IS NOT NULL
                    THEN regexp_replace ( p.proallargtypes::text, '[{}]', '', 'g' )
                END AS all_arg_types,
            CASE
                WHEN p.proargmodes IS NOT NULL
                    THEN regexp_replace ( p.proargmodes::text, '[{}]', '', 'g' )
                END AS all_arg_modes,
            coalesce (
                regexp_replace ( p.proargnames::text, '[{}]', '', 'g' ),
                array_to_string ( array_fill ( ''::text, ARRAY[p.pronargs::int] ), ',' ) ) AS all_arg_names,
            CASE
                WHEN p.proargtypes::text <> ''
                    THEN regexp_replace ( p.proargtypes::text, '[ ]+', ',', 'g' )
                END AS in_arg_types,
            CASE
                WHEN p.proargtypes::text <> ''
                    THEN regexp_replace ( regexp_replace ( p.proargtypes::text, '[^ ]+', 'i', 'g' ), '[ ]+', ',', 'g' )
                END AS in_arg_modes,
            CASE
                WHEN p.prorettype <> 'pg_catalog.void'::pg_catalog.regtype
                    THEN p.prorettype::oid::text
                END AS ret_arg_type,
            t.typname::text AS ret_arg_name
        FROM pg_catalog.pg_proc p
        JOIN pg_catalog.pg_namespace n
            ON n.oid = p.pronamespace
        LEFT JOIN pg_catalog.pg_type t
            ON ( t.oid = p.prorettype )
        WHERE ${kind_filter}
            AND NOT p.prorettype = 'pg_catalog.trigger'::pg_catalog.regtype
            AND n.nspname <> 'pg_catalog'
            AND n.nspname <> 'information_schema'
            AND n.nspname !~ '^pg_toast'
            AND ( n.nspname = %(schema)s
                OR %(schema)s = '' )
            AND ( %(objects)s = ''
                OR p.proname = ANY ( regexp_split_to_array ( %(objects)s, ', *' ) ) )
),
obj AS (
    SELECT p.schema_name,
            p.obj_name,
            p.obj_kind,
            p.obj_type,
            p.result_types,
            p.argument_types,
            p.description,
            coalesce ( a.acl::text, '' ) AS acl,
            CASE
                WHEN p.all_arg_types IS NOT NULL THEN p.all_arg_types
                WHEN p.in_arg_types IS NOT NULL AND p.ret_arg_type IS NOT NULL THEN p.in_arg_types || ',' || p.ret_arg_type
                WHEN p.in_arg_types IS NOT NULL THEN p.in_arg_types
                ELSE p.ret_arg_type
                END AS arg_types,
            CASE
                WHEN p.all_arg_types IS NOT NULL THEN p.all_arg_modes
                WHEN p.in_arg_types IS NOT NULL AND p.ret_arg_type IS NOT NULL THEN p.in_arg_modes || ',o'
                WHEN p.in_arg_types IS NOT NULL THEN p.in_arg_modes
                WHEN p.ret_arg_type IS NOT NULL THEN 'o'
                END AS arg_modes,
            CASE
                WHEN p.all_arg_types IS NOT NULL THEN p.all_arg_names
                WHEN p.in_arg_types IS NOT NULL AND p.ret_arg_type IS NOT NULL THEN p.all_arg_names || ',' || p.ret_arg_name
                WHEN p.in_arg_types IS NOT NULL THEN p.all_arg_names
                ELSE p.ret_arg_name
                END AS arg_names
        FROM proc p
        LEFT JOIN LATERAL unnest ( ( SELECT pp.proacl FROM pg_catalog.pg_proc pp WHERE pp.oid = p.oid ) ) AS a ( acl )
            ON true
)
SELECT DISTINCT obj.schema_name,
        obj.obj_name,
        obj.obj_kind,
        obj.obj_type,
        coalesce ( obj.result_types, '' ) AS result_types,
        coalesce ( obj.argument_types, '' ) AS argument_types,
        regexp_replace ( regexp_replace ( obj.acl, '^[^=]*=', '' ), '[/].*', '' ) AS privs,
        coalesce ( obj.description, '' ) AS description,
        coalesce ( obj.arg_types, '' ) AS arg_types,
        coalesce ( obj.arg_modes, '' ) AS arg_modes,
        coalesce ( obj.arg_names, '' ) AS arg_names
    FROM obj
    WHERE ( %(app_user)s = ''
            OR obj.acl = ''
            OR obj.acl LIKE %(app_user)s || '=%%' )
    ORDER BY obj.schema_name,
        obj.obj_name,
        obj.argument_types
""")


@dataclass(frozen=True)
class QueryStrategy:
    """Catalog query variants for a range of server versions."""

    name: str
    min_version: int
    functions_sql: str


PG11_STRATEGY = QueryStrategy(
    name="pg11+",
    min_version=110000,
    functions_sql=_FUNCTIONS_TEMPLATE.substitute(
        kind_columns=(
            "p.prokind::text AS obj_kind,\n"
            "            CASE p.prokind\n"
            "                WHEN 'p' THEN 'procedure'\n"
            "                ELSE 'function'\n"
            "                END AS obj_type"
        ),
        kind_filter="p.prokind IN ( 'f', 'p' )",
    ),
)

LEGACY_STRATEGY = QueryStrategy(
    name="legacy",
    min_version=0,
    functions_sql=_FUNCTIONS_TEMPLATE.substitute(
        kind_columns="'f'::text AS obj_kind,\n            'function'::text AS obj_type",
        kind_filter="NOT p.proisagg\n            AND NOT p.proiswindow",
    ),
)

STRATEGIES = (PG11_STRATEGY, LEGACY_STRATEGY)


def select_strategy(server_version: int) -> QueryStrategy:
    """Pick the query variant for a ``server_version_num`` value."""
    for strategy in STRATEGIES:
        if server_version >= strategy.min_version:
            return strategy
    return LEGACY_STRATEGY

"""PostgreSQL to Go type translation.

The base mapping is keyed on ``pg_type.typname`` (``int4``, ``_text``,
``timestamptz``...). Each entry carries one Go representation per
:class:`NullabilityPolicy`:

* ``PLAIN``: native Go types (``int32``, ``string``, ``time.Time``).
* ``NULLABLE``: ``database/sql`` null wrappers for every column, whatever the
  column's NOT NULL flag says (``sql.NullInt32``...), ``pq`` arrays for arrays.
* ``INTERNAL``: the nullable representation, plus an unwrap template that
  turns a scanned value back into the ``PLAIN`` type. Only used inside
  generated accessor bodies.

Integers map by declared width. ``numeric`` and ``money`` map to ``float64``:
arbitrary precision values lose precision past ~15 significant digits, use
``type_overrides`` to map them to a decimal type instead.
"""

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ..errors import UnknownTypeError

# Upper bound on domain -> domain -> ... hops before giving up
MAX_ALIAS_DEPTH = 16

SQL_IMPORT = "database/sql"
TIME_IMPORT = "time"
PQ_IMPORT = "github.com/lib/pq"


class NullabilityPolicy(Enum):
    """How "value absent" is represented in generated fields."""

    PLAIN = "plain"
    NULLABLE = "nullable"
    INTERNAL = "internal"


@dataclass(frozen=True)
class TargetType:
    """A Go type expression and what it takes to use it."""

    name: str
    imports: Tuple[str, ...] = ()
    unwrap: str = "{}"

    def unwrap_expr(self, expr: str) -> str:
        """Expression converting ``expr`` of this type to the plain type."""
        return self.unwrap.format(expr)


def _scalar(
    plain: str,
    wrapper: Optional[str] = None,
    unwrap: str = "{}",
    plain_imports: Tuple[str, ...] = (),
) -> Mapping[NullabilityPolicy, TargetType]:
    plain_type = TargetType(plain, plain_imports)
    if wrapper is None:
        return {policy: plain_type for policy in NullabilityPolicy}
    return {
        NullabilityPolicy.PLAIN: plain_type,
        NullabilityPolicy.NULLABLE: TargetType(wrapper, (SQL_IMPORT,)),
        NullabilityPolicy.INTERNAL: TargetType(wrapper, (SQL_IMPORT,), unwrap),
    }


def _array(element: str, pq_array: str) -> Mapping[NullabilityPolicy, TargetType]:
    plain = f"[]{element}"
    return {
        NullabilityPolicy.PLAIN: TargetType(plain),
        NullabilityPolicy.NULLABLE: TargetType(pq_array, (PQ_IMPORT,)),
        NullabilityPolicy.INTERNAL: TargetType(pq_array, (PQ_IMPORT,), plain + "({})"),
    }


_STRING = _scalar("string", "sql.NullString", "{}.String")
_TIME = _scalar("time.Time", "sql.NullTime", "{}.Time", (TIME_IMPORT,))
_FLOAT64 = _scalar("float64", "sql.NullFloat64", "{}.Float64")

STRING_TYPES = (
    "text", "varchar", "bpchar", "char", "name", "citext", "uuid",
    "json", "jsonb", "xml", "inet", "cidr", "macaddr", "macaddr8",
    "interval", "bit", "varbit", "tsvector", "tsquery",
)
TIME_TYPES = ("date", "time", "timetz", "timestamp", "timestamptz")

_base: Dict[str, Mapping[NullabilityPolicy, TargetType]] = {
    "int2": _scalar("int16", "sql.NullInt16", "{}.Int16"),
    "int4": _scalar("int32", "sql.NullInt32", "{}.Int32"),
    "int8": _scalar("int64", "sql.NullInt64", "{}.Int64"),
    "oid": _scalar("uint32", "sql.NullInt64", "uint32({}.Int64)"),
    "float4": _scalar("float32", "sql.NullFloat64", "float32({}.Float64)"),
    "float8": _FLOAT64,
    "numeric": _FLOAT64,
    "money": _FLOAT64,
    "bool": _scalar("bool", "sql.NullBool", "{}.Bool"),
    "bytea": _scalar("[]byte"),
    "_bool": _array("bool", "pq.BoolArray"),
    "_bytea": _array("[]byte", "pq.ByteaArray"),
    "_float4": _array("float32", "pq.Float32Array"),
    "_float8": _array("float64", "pq.Float64Array"),
    "_numeric": _array("float64", "pq.Float64Array"),
    # pq has no 16-bit array; smallint[] widens to int32
    "_int2": _array("int32", "pq.Int32Array"),
    "_int4": _array("int32", "pq.Int32Array"),
    "_int8": _array("int64", "pq.Int64Array"),
}
for _name in STRING_TYPES:
    _base[_name] = _STRING
    _base["_" + _name] = _array("string", "pq.StringArray")
for _name in TIME_TYPES:
    _base[_name] = _TIME

BASE_TYPES: Mapping[str, Mapping[NullabilityPolicy, TargetType]] = MappingProxyType(_base)

# format_type() spellings of the built-in types, by typname
FORMAT_TYPE_NAMES = {
    "smallint": "int2",
    "integer": "int4",
    "int": "int4",
    "bigint": "int8",
    "real": "float4",
    "double precision": "float8",
    "decimal": "numeric",
    "boolean": "bool",
    "character varying": "varchar",
    "character": "bpchar",
    "bit varying": "varbit",
    "timestamp without time zone": "timestamp",
    "timestamp with time zone": "timestamptz",
    "time without time zone": "time",
    "time with time zone": "timetz",
}

_MODIFIER_RE = re.compile(r"\([^)]*\)")


def _unqualified(name: str) -> str:
    """Drop a schema qualifier, splitting on the last dot outside quotes."""
    quoted = False
    cut = -1
    for index, char in enumerate(name):
        if char == '"':
            quoted = not quoted
        elif char == "." and not quoted:
            cut = index
    return name[cut + 1:]


def normalize_type_name(native_type: str) -> str:
    """Reduce a ``format_type()`` expression to the typname it refers to.

    ``"character varying(40)[]"`` becomes ``"_varchar"``, ``"integer"``
    becomes ``"int4"``, ``"public.email"`` becomes ``"email"``.
    """
    name = native_type.strip()
    is_array = False
    while name.endswith("[]"):
        is_array = True
        name = name[:-2].rstrip()

    name = _MODIFIER_RE.sub("", name)
    name = " ".join(name.split())
    name = _unqualified(name).strip('"')

    name = FORMAT_TYPE_NAMES.get(name.lower(), name)
    return "_" + name if is_array else name


def parse_type_override(spec: str) -> Tuple[str, TargetType]:
    """Parse ``typname=GoType[@import/path]`` into an override entry."""
    if "=" not in spec:
        raise ValueError(f"Invalid type override {spec!r}, expected typname=GoType")
    type_name, target = (part.strip() for part in spec.split("=", 1))
    go_type, _, import_path = target.partition("@")
    if not type_name or not go_type:
        raise ValueError(f"Invalid type override {spec!r}, expected typname=GoType")
    imports = (import_path.strip(),) if import_path.strip() else ()
    return type_name, TargetType(go_type.strip(), imports)


class TypeTranslationTable:
    """Translation state for one generator run.

    The base mapping is fixed. Domain aliases are registered once, from the
    catalog's domain scan, before anything is translated; composite types and
    table row types are registered as their structs are generated.
    """

    def __init__(self, type_overrides: Optional[Mapping[str, TargetType]] = None):
        self._base = BASE_TYPES
        self._overrides: Dict[str, TargetType] = dict(type_overrides or {})
        self._domains: Dict[str, str] = {}
        self._composites: Dict[str, str] = {}

    @property
    def domains(self) -> Mapping[str, str]:
        return MappingProxyType(self._domains)

    def register_domain(self, domain_name: str, base_type_name: str) -> None:
        self._domains[domain_name] = base_type_name

    def register_domains(self, domains: Iterable) -> int:
        """Register ``DomainMetadata`` rows; returns how many were added."""
        count = 0
        for domain in domains:
            self.register_domain(domain.obj_name, domain.type_name)
            count += 1
        return count

    def register_composite(self, type_name: str, struct_name: str) -> None:
        self._composites[type_name] = struct_name

    def _direct(self, type_name: str, policy: NullabilityPolicy) -> Optional[TargetType]:
        if type_name in self._overrides:
            return self._overrides[type_name]
        if type_name in self._base:
            return self._base[type_name][policy]
        if type_name in self._composites:
            struct_name = self._composites[type_name]
            if policy is NullabilityPolicy.NULLABLE:
                return TargetType("*" + struct_name)
            return TargetType(struct_name)
        return None

    def translate(self, type_name: str, policy: NullabilityPolicy) -> TargetType:
        """Translate a typname, following domain aliases, under ``policy``.

        Raises:
            UnknownTypeError: no mapping exists, or the alias chain does not
                end in a known type within ``MAX_ALIAS_DEPTH`` hops.
        """
        current = type_name
        for _ in range(MAX_ALIAS_DEPTH + 1):
            target = self._direct(current, policy)
            if target is not None:
                return target
            if current not in self._domains:
                break
            current = self._domains[current]
        raise UnknownTypeError(type_name)


"""Function signature decomposition into calling arguments and result columns."""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..catalog.models import ColumnMetadata, PgType
from ..errors import SignatureError, UnresolvedArgumentTypeError
from .type_mappers import FORMAT_TYPE_NAMES, normalize_type_name

ARGUMENT_MODES = ("IN", "OUT", "INOUT", "VARIADIC")
# pg_proc.proargmodes: i=in, o=out, b=inout, v=variadic, t=table column
INPUT_MODES = ("i", "v")

_MODIFIER_RE = re.compile(r"\([^)]*\)")


@dataclass
class Signature:
    """A function's inputs and outputs, each in declaration order."""
    calling_arguments: List[ColumnMetadata] = field(default_factory=list)
    result_columns: List[ColumnMetadata] = field(default_factory=list)

    @property
    def needs_result_struct(self) -> bool:
        """Zero or one result column is returned as a bare value."""
        return len(self.result_columns) > 1

    @property
    def scalar_result(self) -> Optional[ColumnMetadata]:
        if len(self.result_columns) == 1:
            return self.result_columns[0]
        return None

    def merged_columns(self) -> List[ColumnMetadata]:
        return [*self.result_columns, *self.calling_arguments]


def split_top_level(text: str) -> List[str]:
    """Split on commas that are not inside parentheses, brackets or quotes."""
    parts = []
    depth = 0
    quote = None
    current = []
    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return [part for part in parts if part]


def _is_bare_type(text: str) -> bool:
    """True when ``text`` is a multi-word built-in type with no argument name."""
    stripped = _MODIFIER_RE.sub("", text).replace("[]", " ")
    return " ".join(stripped.split()).lower() in FORMAT_TYPE_NAMES


def _split_name(entry: str) -> tuple:
    """Split ``name type`` into its parts; a quoted name may contain spaces."""
    if entry.startswith('"'):
        end = 1
        while True:
            end = entry.find('"', end)
            if end < 0:
                return "", entry
            if entry[end + 1:end + 2] != '"':
                break
            end += 2
        native_type = entry[end + 1:].strip()
        if not native_type:
            return "", entry
        return entry[1:end].replace('""', '"'), native_type

    name, sep, native_type = entry.partition(" ")
    if not sep or _is_bare_type(entry):
        return "", entry
    return name, native_type.strip()


def _parse_entry(entry: str, ordinal: int) -> tuple:
    """Parse ``[MODE] [name] type [DEFAULT expr]`` into (mode, column)."""
    mode = "IN"
    head, _, rest = entry.partition(" ")
    if head.upper() in ARGUMENT_MODES and rest:
        mode, entry = head.upper(), rest.strip()

    upper = entry.upper()
    default_at = upper.find(" DEFAULT ")
    if default_at >= 0:
        entry = entry[:default_at].rstrip()

    name, native_type = _split_name(entry)

    column = ColumnMetadata(
        name=name,
        native_type=native_type,
        type_name=normalize_type_name(native_type),
        ordinal_position=ordinal,
    )
    return mode, column


def decompose(argument_types_text: str, result_types_text: str) -> Signature:
    """Decompose the textual signature of a function.

    ``argument_types_text`` is ``pg_get_function_arguments()`` output such as
    ``"p_id integer, p_name text"``; ``result_types_text`` is
    ``pg_get_function_result()`` output, either ``"TABLE(id integer, ...)"``
    or a bare type.
    """
    signature = Signature()
    output_params = []

    for ordinal, entry in enumerate(split_top_level(argument_types_text or ""), start=1):
        mode, column = _parse_entry(entry, ordinal)
        if mode in ("IN", "VARIADIC"):
            signature.calling_arguments.append(column)
        else:
            output_params.append(column)

    result = (result_types_text or "").strip()
    if result.upper().startswith("SETOF "):
        result = result[6:].strip()

    if result.upper().startswith("TABLE(") and result.endswith(")"):
        for ordinal, entry in enumerate(split_top_level(result[6:-1]), start=1):
            _, column = _parse_entry(entry, ordinal)
            signature.result_columns.append(column)
    elif result.lower() == "record" and output_params:
        signature.result_columns.extend(output_params)
    elif result and result.lower() != "void":
        signature.result_columns.append(
            ColumnMetadata(
                name="",
                native_type=result,
                type_name=normalize_type_name(result),
                ordinal_position=1,
            )
        )
    return signature


def _split_list(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [item.strip().strip('"') for item in text.split(",")]


def decompose_positional(
    arg_types: str,
    arg_modes: str,
    arg_names: str,
    lookup: Callable[[str], Optional[PgType]],
) -> Signature:
    """Decompose the positional (OID list) form of a function signature.

    The three comma-joined lists run in parallel. Missing modes mean every
    argument is an input; missing names are empty. Input (``i``) and variadic
    (``v``) arguments are calling arguments; every other mode, INOUT (``b``)
    included, makes a result column. Each parameter lands in exactly one list.

    Raises:
        SignatureError: the lists have inconsistent lengths.
        UnresolvedArgumentTypeError: ``lookup`` does not know a type OID.
    """
    types = _split_list(arg_types)
    if not types:
        return Signature()

    modes = _split_list(arg_modes) or ["i"] * len(types)
    names = _split_list(arg_names)
    if len(modes) != len(types):
        raise SignatureError(
            f"Expected {len(types)} argument modes, got {len(modes)}",
            details={"arg_types": arg_types, "arg_modes": arg_modes},
        )
    if len(names) > len(types):
        raise SignatureError(
            f"Expected at most {len(types)} argument names, got {len(names)}",
            details={"arg_types": arg_types, "arg_names": arg_names},
        )
    names += [""] * (len(types) - len(names))

    signature = Signature()
    for position, (type_oid, mode, name) in enumerate(zip(types, modes, names), start=1):
        pg_type = lookup(type_oid)
        if pg_type is None:
            raise UnresolvedArgumentTypeError(type_oid)
        column = pg_type.to_column(name=name, ordinal_position=position)
        if mode in INPUT_MODES:
            signature.calling_arguments.append(column)
        else:
            signature.result_columns.append(column)
    return signature

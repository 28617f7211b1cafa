"""Struct field declaration ("stanza") rendering."""

from typing import List, Sequence

from ..catalog.models import ColumnMetadata
from .layout import (
    ColumnWidths,
    RenderMode,
    db_tag_token,
    field_name,
    internal_tag_token,
    json_tag_token,
    plan,
)
from .type_mappers import NullabilityPolicy, TypeTranslationTable


def _pad(token: str, width: int) -> str:
    return token.ljust(width)


def render(
    column: ColumnMetadata,
    widths: ColumnWidths,
    table: TypeTranslationTable,
    policy: NullabilityPolicy,
    mode: RenderMode = RenderMode.PUBLIC,
    emit_tags: bool = True,
    indent: str = "\t",
) -> str:
    """Render one field declaration.

    Public fields end with a comment holding the native type, ``[PK]`` and
    ``[Not Null]`` markers and the column description. Multi-line
    descriptions continue on following lines aligned under the comment.
    """
    target = table.translate(column.type_name, policy)
    parts = [
        indent,
        _pad(field_name(column), widths.name + 1),
        _pad(target.name, widths.type + 1),
    ]

    if mode is RenderMode.INTERNAL:
        parts.append(internal_tag_token(column))
        return "".join(parts)

    if emit_tags:
        parts.append(_pad(json_tag_token(column), widths.json_tag + 1))
        parts.append(_pad(db_tag_token(column), widths.db_tag))
    prefix = "".join(parts)

    comment = f" // [{column.native_type}]"
    if column.is_primary_key:
        comment += " [PK]"
    if column.is_required:
        comment += " [Not Null]"

    description_lines = column.description.splitlines() if column.description else []
    if description_lines:
        comment += f" {description_lines[0]}"

    lines = [(prefix + comment).rstrip()]
    continuation = indent + " " * (len(prefix) - len(indent) + 1) + "// "
    for extra in description_lines[1:]:
        lines.append((continuation + extra).rstrip())
    return "\n".join(lines)


def render_block(
    columns: Sequence[ColumnMetadata],
    table: TypeTranslationTable,
    policy: NullabilityPolicy,
    mode: RenderMode = RenderMode.PUBLIC,
    emit_tags: bool = True,
    indent: str = "\t",
) -> str:
    """Render every column of an object, in ordinal order, as one aligned block."""
    ordered = sorted(columns, key=lambda column: column.ordinal_position)
    widths = plan(ordered, table, policy, mode)
    lines: List[str] = [
        render(column, widths, table, policy, mode=mode, emit_tags=emit_tags, indent=indent)
        for column in ordered
    ]
    return "\n".join(lines)

"""Column layout planning for aligned struct field declarations."""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..catalog.models import ColumnMetadata
from .naming import upper_camel, lower_camel
from .type_mappers import NullabilityPolicy, TypeTranslationTable


class RenderMode(Enum):
    """Field declaration styles."""

    PUBLIC = "public"  # name, type, json + db tags, annotation comment
    INTERNAL = "internal"  # name, type, db tag only


@dataclass(frozen=True)
class ColumnWidths:
    """Widest rendered token of each kind across one object's columns."""

    name: int = 0
    type: int = 0
    json_tag: int = 0
    db_tag: int = 0


def field_name(column: ColumnMetadata) -> str:
    """Go field name for a column; unnamed slots are numbered by position."""
    return upper_camel(column.name) or f"Column{column.ordinal_position}"


def json_tag_token(column: ColumnMetadata) -> str:
    key = lower_camel(column.name) or f"column{column.ordinal_position}"
    return f'`json:"{key}"'


def db_tag_token(column: ColumnMetadata) -> str:
    return f'db:"{column.name}"`'


def internal_tag_token(column: ColumnMetadata) -> str:
    return f'`db:"{column.name}"`'


def plan(
    columns: Sequence[ColumnMetadata],
    table: TypeTranslationTable,
    policy: NullabilityPolicy,
    mode: RenderMode = RenderMode.PUBLIC,
) -> ColumnWidths:
    """Compute the token widths for one object's field block.

    Raises:
        UnknownTypeError: a column type cannot be translated under ``policy``.
    """
    name_width = type_width = json_width = db_width = 0
    for column in columns:
        name_width = max(name_width, len(field_name(column)))
        type_width = max(type_width, len(table.translate(column.type_name, policy).name))
        if mode is RenderMode.PUBLIC:
            json_width = max(json_width, len(json_tag_token(column)))
            db_width = max(db_width, len(db_tag_token(column)))
        else:
            db_width = max(db_width, len(internal_tag_token(column)))
    return ColumnWidths(name=name_width, type=type_width, json_tag=json_width, db_tag=db_width)

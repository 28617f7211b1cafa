"""Catalog metadata models consumed by the code generator."""

from typing import List
from dataclasses import dataclass, field


@dataclass
class ColumnMetadata:
    """One field, argument or result slot of a catalog object."""
    name: str
    native_type: str
    type_name: str
    type_category: str = ""
    ordinal_position: int = 0
    is_required: bool = False
    is_primary_key: bool = False
    description: str = ""


@dataclass
class CatalogFilter:
    """Schema, object and grantee filters applied by the catalog queries.

    Empty strings mean "no restriction", matching the query parameters.
    """
    schema: str = ""
    objects: str = ""
    app_user: str = ""

    def object_names(self) -> List[str]:
        """Split the comma-separated object filter."""
        return [name.strip() for name in self.objects.split(",") if name.strip()]


@dataclass
class ObjectMetadata:
    """Common shape of user types, tables/views and functions."""
    schema_name: str
    obj_name: str
    obj_type: str = ""
    description: str = ""
    struct_name: str = ""
    columns: List[ColumnMetadata] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.obj_name}"


@dataclass
class UserType(ObjectMetadata):
    """A user defined composite type."""
    obj_kind: str = "c"


@dataclass
class TableOrView(ObjectMetadata):
    """A table, view, materialized view or foreign table."""
    obj_kind: str = "r"
    privs: str = ""


@dataclass
class Function(ObjectMetadata):
    """A function or procedure.

    ``argument_types``/``result_types`` hold the textual signature from
    ``pg_get_function_arguments``/``pg_get_function_result``; ``arg_types``,
    ``arg_modes`` and ``arg_names`` hold the comma-joined positional lists.
    ``columns`` is populated with the merged result + argument columns once
    the signature has been decomposed.
    """
    obj_kind: str = "f"
    privs: str = ""
    argument_types: str = ""
    result_types: str = ""
    arg_types: str = ""
    arg_modes: str = ""
    arg_names: str = ""
    result_columns: List[ColumnMetadata] = field(default_factory=list)
    calling_arguments: List[ColumnMetadata] = field(default_factory=list)

    @property
    def signature_key(self) -> str:
        """Identity of this overload for duplicate detection."""
        return f"{self.qualified_name}({self.argument_types})"


@dataclass
class DomainMetadata:
    """A domain (alias) type and the base type it is declared over."""
    schema_name: str
    obj_name: str
    native_type: str
    type_name: str
    type_category: str = ""
    is_required: bool = False
    description: str = ""


@dataclass
class PgType:
    """A pg_type row used to resolve positional argument type OIDs."""
    oid: int
    schema_name: str
    type_name: str
    native_type: str
    type_type: str = "b"
    type_category: str = ""
    base_oid: int = 0
    base_type_name: str = ""

    def to_column(self, name: str = "", ordinal_position: int = 0) -> ColumnMetadata:
        return ColumnMetadata(
            name=name,
            native_type=self.native_type,
            type_name=self.type_name,
            type_category=self.type_category,
            ordinal_position=ordinal_position,
        )


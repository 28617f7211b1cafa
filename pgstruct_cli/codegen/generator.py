"""Go source file assembly.

Each generated file holds a provenance header, the imports its declarations
use, one struct and (optionally) the accessor methods for that struct.
Accessors are methods on a package level ``DB`` type embedding an
``sqlx.DB``, which the generated package is expected to declare.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set

from ..catalog.models import ColumnMetadata, Function, ObjectMetadata, TableOrView, UserType
from .layout import RenderMode, field_name
from .naming import go_identifier
from .signature import Signature
from .stanza import render_block
from .type_mappers import NullabilityPolicy, TypeTranslationTable

_SIMPLE_IDENTIFIER_RE = re.compile(r"^[a-z_][a-z0-9_$]*$")


@dataclass
class GeneratedFile:
    """One rendered Go source file, not yet written."""
    filename: str
    content: str
    kind: str
    qualified_name: str


@dataclass
class FileHeader:
    """Package identity and the filters the catalog was read with."""
    package: str = "main"
    host: str = ""
    database: str = ""
    schema: str = ""
    objects: str = ""
    app_user: str = ""


def sql_identifier(name: str) -> str:
    """Quote ``name`` for SQL unless it is a plain lower-case identifier."""
    if _SIMPLE_IDENTIFIER_RE.match(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def qualified_sql_name(obj: ObjectMetadata) -> str:
    return f"{sql_identifier(obj.schema_name)}.{sql_identifier(obj.obj_name)}"


def _comment_lines(text: str) -> List[str]:
    return [f"// {line}".rstrip() for line in text.splitlines()] if text else []


def _select_list(columns: Sequence[ColumnMetadata]) -> str:
    return ",\n        ".join(sql_identifier(column.name) for column in columns)


class GoFileGenerator:
    """Renders catalog objects as Go source files.

    ``policy`` is the run's public nullability policy (``PLAIN`` or
    ``NULLABLE``). Under ``PLAIN``, accessors scan into an anonymous struct
    of ``INTERNAL`` fields and unwrap every field into the public struct.
    """

    def __init__(
        self,
        table: TypeTranslationTable,
        policy: NullabilityPolicy = NullabilityPolicy.PLAIN,
        header: Optional[FileHeader] = None,
        accessors: bool = True,
    ):
        if policy is NullabilityPolicy.INTERNAL:
            raise ValueError("INTERNAL is not a public nullability policy")
        self.table = table
        self.policy = policy
        self.header = header or FileHeader()
        self.accessors = accessors

    @property
    def unwraps(self) -> bool:
        return self.policy is NullabilityPolicy.PLAIN

    def _collect_imports(self, imports: Set[str], columns: Iterable[ColumnMetadata], policy: NullabilityPolicy):
        for column in columns:
            imports.update(self.table.translate(column.type_name, policy).imports)

    def render_header(self, imports: Iterable[str]) -> List[str]:
        header = self.header
        lines = [
            f"package {header.package}",
            "",
            "// Postgresql structs generated for the following:",
            f"// Host: {header.host}",
            f"// Database: {header.database}",
        ]
        if header.schema:
            lines.append(f"// Schema: {header.schema}")
        if header.objects:
            lines.append(f"// Object Name: {header.objects}")
        if header.app_user:
            lines.append(f"// App user: {header.app_user}")
        lines.append("")

        imports = sorted(set(imports))
        if imports:
            lines.append("import (")
            lines.extend(f'\t"{path}"' for path in imports)
            lines.append(")")
            lines.append("")
        return lines

    def render_struct(self, struct_name: str, summary: str, description: str, columns: Sequence[ColumnMetadata]) -> List[str]:
        lines = [f"// {struct_name} struct for the {summary}"]
        lines.extend(_comment_lines(description))
        lines.append(f"type {struct_name} struct {{")
        if columns:
            lines.append(render_block(columns, self.table, self.policy))
        lines.append("}")
        return lines

    def _internal_scan(self, columns: Sequence[ColumnMetadata], slice_result: bool) -> List[str]:
        """Declares ``u``, an anonymous struct (slice) of nullable fields."""
        ordered = sorted(columns, key=lambda column: column.ordinal_position)
        prefix = "[]" if slice_result else ""
        return [
            f"\tvar u {prefix}struct {{",
            render_block(ordered, self.table, NullabilityPolicy.INTERNAL, mode=RenderMode.INTERNAL, indent="\t\t"),
            "\t}",
        ]

    def _unwrap_loop(self, struct_name: str, columns: Sequence[ColumnMetadata]) -> List[str]:
        ordered = sorted(columns, key=lambda column: column.ordinal_position)
        width = max(len(field_name(column)) for column in ordered) + 1
        lines = [
            "\tfor _, rec := range u {",
            f"\t\td = append(d, {struct_name}{{",
        ]
        for column in ordered:
            name = field_name(column)
            target = self.table.translate(column.type_name, NullabilityPolicy.INTERNAL)
            lines.append(f"\t\t\t{(name + ':').ljust(width + 1)}{target.unwrap_expr('rec.' + name)},")
        lines.extend(["\t\t})", "\t}"])
        return lines

    def render_list_accessor(self, obj: TableOrView) -> List[str]:
        """``List<Struct>`` selecting every column of a table or view."""
        func_name = f"List{obj.struct_name}"
        columns = sorted(obj.columns, key=lambda column: column.ordinal_position)
        target = "&u" if self.unwraps else "&d"
        lines = [
            f"// {func_name} returns the data from the {obj.qualified_name} {obj.obj_type}",
            f"func (db *DB) {func_name}() (d []{obj.struct_name}, err error) {{",
        ]
        if self.unwraps:
            lines.extend(self._internal_scan(columns, slice_result=True))
        lines.extend([
            f"\terr = db.Select({target}, `SELECT {_select_list(columns)}",
            f"    FROM {qualified_sql_name(obj)}`,",
            "\t)",
        ])
        if self.unwraps:
            lines.extend(self._unwrap_loop(obj.struct_name, columns))
        lines.extend(["\treturn", "}"])
        return lines

    def _parameters(self, arguments: Sequence[ColumnMetadata]) -> List[tuple]:
        params = []
        for position, argument in enumerate(arguments, start=1):
            name = go_identifier(argument.name, f"arg{position}")
            params.append((name, self.table.translate(argument.type_name, self.policy).name))
        return params

    def render_function_wrapper(self, function: Function, signature: Signature) -> List[str]:
        """Caller facing method running a function or procedure."""
        func_name = f"Call{function.struct_name}"
        params = self._parameters(signature.calling_arguments)
        param_list = ", ".join(f"{name} {go_type}" for name, go_type in params)
        placeholders = ", ".join(f"${n}" for n in range(1, len(params) + 1))
        call = f"{qualified_sql_name(function)} ( {placeholders} )" if params else f"{qualified_sql_name(function)} ()"
        call_args = ["\t\t" + ", ".join(name for name, _ in params) + ","] if params else []
        verb = "CALL" if function.obj_kind == "p" else "SELECT"

        lines = [f"// {func_name} calls the {function.qualified_name} {function.obj_type or 'function'}"]
        if not signature.needs_result_struct:
            lines.extend(_comment_lines(function.description))

        if signature.needs_result_struct:
            results = sorted(signature.result_columns, key=lambda column: column.ordinal_position)
            target = "&u" if self.unwraps else "&d"
            query = f"CALL {call}`," if verb == "CALL" else f"SELECT {_select_list(results)}\n    FROM {call}`,"
            lines.append(f"func (db *DB) {func_name}({param_list}) (d []{function.struct_name}, err error) {{")
            if self.unwraps:
                lines.extend(self._internal_scan(results, slice_result=True))
            lines.append(f"\terr = db.Select({target}, `{query}")
            lines.extend(call_args)
            lines.append("\t)")
            if self.unwraps:
                lines.extend(self._unwrap_loop(function.struct_name, results))
        elif signature.scalar_result is not None:
            result = signature.scalar_result
            public = self.table.translate(result.type_name, self.policy)
            internal = self.table.translate(result.type_name, NullabilityPolicy.INTERNAL)
            scan = self.unwraps and internal.name != public.name
            lines.append(f"func (db *DB) {func_name}({param_list}) (d {public.name}, err error) {{")
            if scan:
                lines.append(f"\tvar u {internal.name}")
            lines.append(f"\terr = db.Get({'&u' if scan else '&d'}, `{verb} {call}`,")
            lines.extend(call_args)
            lines.append("\t)")
            if scan:
                lines.append(f"\td = {internal.unwrap_expr('u')}")
        else:
            lines.append(f"func (db *DB) {func_name}({param_list}) (err error) {{")
            lines.append(f"\t_, err = db.Exec(`{verb} {call}`,")
            lines.extend(call_args)
            lines.append("\t)")
        lines.extend(["\treturn", "}"])
        return lines

    def _assemble(self, imports: Set[str], blocks: List[List[str]]) -> str:
        lines = self.render_header(imports)
        for index, block in enumerate(blocks):
            if index:
                lines.append("")
            lines.extend(block)
        return "\n".join(lines) + "\n"

    def generate_type(self, user_type: UserType) -> GeneratedFile:
        """Render a composite type as a struct.

        Raises:
            UnknownTypeError: an attribute type cannot be translated.
        """
        imports: Set[str] = set()
        self._collect_imports(imports, user_type.columns, self.policy)
        struct = self.render_struct(
            user_type.struct_name,
            f"{user_type.qualified_name} {user_type.obj_type or 'composite type'}",
            user_type.description,
            user_type.columns,
        )
        return GeneratedFile(
            filename=f"{user_type.struct_name}.go",
            content=self._assemble(imports, [struct]),
            kind="type",
            qualified_name=user_type.qualified_name,
        )

    def generate_table(self, obj: TableOrView) -> GeneratedFile:
        """Render a table or view as a struct plus its ``List`` accessor.

        Raises:
            UnknownTypeError: a column type cannot be translated.
        """
        imports: Set[str] = set()
        self._collect_imports(imports, obj.columns, self.policy)
        blocks = [
            self.render_struct(
                obj.struct_name,
                f"{obj.qualified_name} {obj.obj_type or 'table'}",
                obj.description,
                obj.columns,
            )
        ]
        if self.accessors:
            if self.unwraps:
                self._collect_imports(imports, obj.columns, NullabilityPolicy.INTERNAL)
            blocks.append(self.render_list_accessor(obj))
        return GeneratedFile(
            filename=f"{obj.struct_name}.go",
            content=self._assemble(imports, blocks),
            kind="table",
            qualified_name=obj.qualified_name,
        )

    def generate_function(self, function: Function, signature: Signature) -> Optional[GeneratedFile]:
        """Render a function's result struct and wrapper.

        Functions with at most one result column get no struct; without
        accessors they produce no file at all and None is returned.

        Raises:
            UnknownTypeError: an argument or result type cannot be translated.
        """
        if not signature.needs_result_struct and not self.accessors:
            return None

        imports: Set[str] = set()
        blocks = []
        if signature.needs_result_struct:
            self._collect_imports(imports, signature.result_columns, self.policy)
            blocks.append(
                self.render_struct(
                    function.struct_name,
                    f"result set from the {function.qualified_name} {function.obj_type or 'function'}",
                    function.description,
                    signature.result_columns,
                )
            )
        if self.accessors:
            self._collect_imports(imports, signature.calling_arguments, self.policy)
            self._collect_imports(imports, signature.result_columns, self.policy)
            if self.unwraps:
                self._collect_imports(imports, signature.result_columns, NullabilityPolicy.INTERNAL)
            blocks.append(self.render_function_wrapper(function, signature))

        return GeneratedFile(
            filename=f"f{function.struct_name}.go",
            content=self._assemble(imports, blocks),
            kind="function",
            qualified_name=function.qualified_name,
        )

"""Tests for Go source file assembly."""

import pytest

from pgstruct_cli.catalog.models import Function, UserType
from pgstruct_cli.codegen.generator import (
    FileHeader,
    GoFileGenerator,
    qualified_sql_name,
    sql_identifier,
)
from pgstruct_cli.codegen.signature import decompose
from pgstruct_cli.codegen.type_mappers import NullabilityPolicy
from pgstruct_cli.errors import UnknownTypeError
from tests.fixtures import column


@pytest.fixture
def header():
    return FileHeader(package="models", host="db1", database="app", schema="public")


def _function(name, argument_types, result_types, obj_kind="f", description=""):
    return Function(
        schema_name="public",
        obj_name=name,
        obj_type="procedure" if obj_kind == "p" else "function",
        obj_kind=obj_kind,
        struct_name="".join(part.title() for part in name.split("_")),
        argument_types=argument_types,
        result_types=result_types,
        description=description,
    )


class TestSqlIdentifier:
    """Tests for identifier quoting in generated queries."""

    def test_simple_names_are_bare(self):
        assert sql_identifier("order_items") == "order_items"

    def test_mixed_case_and_spaces_are_quoted(self):
        assert sql_identifier("Order") == '"Order"'
        assert sql_identifier("line item") == '"line item"'

    def test_embedded_quotes_are_doubled(self):
        assert sql_identifier('a"b') == '"a""b"'

    def test_qualified(self, account_table):
        assert qualified_sql_name(account_table) == "public.account"


class TestHeader:
    """Tests for the file header."""

    def test_provenance_lines(self, translation_table, account_table, header):
        generator = GoFileGenerator(translation_table, header=header, accessors=False)
        content = generator.generate_table(account_table).content

        assert content.startswith(
            "package models\n"
            "\n"
            "// Postgresql structs generated for the following:\n"
            "// Host: db1\n"
            "// Database: app\n"
            "// Schema: public\n"
        )
        assert "// Object Name:" not in content
        assert "// App user:" not in content

    def test_filters_are_listed_when_set(self, translation_table):
        generator = GoFileGenerator(
            translation_table,
            header=FileHeader(objects="account,invoice", app_user="app_rw"),
        )
        lines = generator.render_header([])
        assert "// Object Name: account,invoice" in lines
        assert "// App user: app_rw" in lines
        assert lines[0] == "package main"

    def test_imports_are_sorted_and_unique(self, translation_table):
        generator = GoFileGenerator(translation_table)
        lines = generator.render_header(["time", "database/sql", "time"])
        start = lines.index("import (")
        assert lines[start:start + 4] == ["import (", '\t"database/sql"', '\t"time"', ")"]

    def test_no_import_block_when_nothing_is_imported(self, translation_table):
        generator = GoFileGenerator(translation_table)
        assert "import (" not in generator.render_header([])


class TestTableFiles:
    """Tests for table and view files."""

    def test_struct_only(self, translation_table, account_table, header):
        generator = GoFileGenerator(translation_table, header=header, accessors=False)
        generated = generator.generate_table(account_table)

        assert generated.filename == "Account.go"
        assert generated.kind == "table"
        assert generated.qualified_name == "public.account"
        assert "// Account struct for the public.account table\ntype Account struct {\n" in generated.content
        assert 'import (\n\t"time"\n)' in generated.content
        assert "func (db *DB)" not in generated.content
        assert generated.content.endswith("}\n")

    def test_description_becomes_comment(self, translation_table, account_table):
        account_table.description = "Customer accounts\nOne row per login"
        content = GoFileGenerator(translation_table, accessors=False).generate_table(account_table).content
        assert "// Customer accounts\n// One row per login\ntype Account struct {" in content

    def test_list_accessor_unwraps_plain_types(self, translation_table, account_table):
        content = GoFileGenerator(translation_table).generate_table(account_table).content

        assert 'import (\n\t"database/sql"\n\t"time"\n)' in content
        assert "// ListAccount returns the data from the public.account table" in content
        assert "func (db *DB) ListAccount() (d []Account, err error) {" in content
        assert "\tvar u []struct {" in content
        assert "sql.NullInt32" in content
        assert (
            "\terr = db.Select(&u, `SELECT id,\n"
            "        name,\n"
            "        created_at\n"
            "    FROM public.account`,\n"
            "\t)\n"
        ) in content
        assert "\t\t\tID:" + " " * 8 + "rec.ID.Int32," in content
        assert "\t\t\tName:" + " " * 6 + "rec.Name.String," in content
        assert "\t\t\tCreatedAt: rec.CreatedAt.Time," in content
        assert content.rstrip().endswith("\treturn\n}")

    def test_list_accessor_scans_directly_under_nullable(self, translation_table, account_table):
        generator = GoFileGenerator(translation_table, policy=NullabilityPolicy.NULLABLE)
        content = generator.generate_table(account_table).content

        assert "var u" not in content
        assert "db.Select(&d, " in content
        assert "for _, rec := range u" not in content
        assert "CreatedAt sql.NullTime" in content

    def test_untranslatable_column(self, translation_table, account_table):
        account_table.columns.append(column("shape", "geometry", ordinal_position=4))
        with pytest.raises(UnknownTypeError):
            GoFileGenerator(translation_table).generate_table(account_table)

    def test_internal_is_not_a_public_policy(self, translation_table):
        with pytest.raises(ValueError):
            GoFileGenerator(translation_table, policy=NullabilityPolicy.INTERNAL)


class TestTypeFiles:
    """Tests for composite type files."""

    def test_composite(self, translation_table):
        user_type = UserType(
            schema_name="public",
            obj_name="postal_address",
            obj_type="composite type",
            struct_name="PostalAddress",
            columns=[column("street", "text", ordinal_position=1), column("zip", "varchar", ordinal_position=2)],
        )
        generated = GoFileGenerator(translation_table).generate_type(user_type)

        assert generated.filename == "PostalAddress.go"
        assert generated.kind == "type"
        assert "type PostalAddress struct {" in generated.content
        assert "import (" not in generated.content
        assert "func (db *DB)" not in generated.content


class TestFunctionFiles:
    """Tests for function result structs and wrappers."""

    def test_result_struct_and_wrapper(self, translation_table):
        function = _function("account_search", "p_id integer", "TABLE(id integer, name text)")
        signature = decompose(function.argument_types, function.result_types)
        generated = GoFileGenerator(translation_table).generate_function(function, signature)

        assert generated.filename == "fAccountSearch.go"
        assert generated.kind == "function"
        content = generated.content
        assert "// AccountSearch struct for the result set from the public.account_search function" in content
        assert "type AccountSearch struct {" in content
        assert "func (db *DB) CallAccountSearch(pID int32) (d []AccountSearch, err error) {" in content
        assert (
            "\terr = db.Select(&u, `SELECT id,\n"
            "        name\n"
            "    FROM public.account_search ( $1 )`,\n"
            "\t\tpID,\n"
            "\t)\n"
        ) in content
        assert "for _, rec := range u {" in content

    def test_scalar_result_has_no_struct(self, translation_table):
        function = _function("account_count", "", "integer", description="Number of accounts")
        signature = decompose(function.argument_types, function.result_types)
        content = GoFileGenerator(translation_table).generate_function(function, signature).content

        assert "struct {" not in content
        assert "// CallAccountCount calls the public.account_count function\n// Number of accounts\n" in content
        assert "func (db *DB) CallAccountCount() (d int32, err error) {" in content
        assert "\tvar u sql.NullInt32\n" in content
        assert "\terr = db.Get(&u, `SELECT public.account_count ()`,\n\t)\n" in content
        assert "\td = u.Int32\n" in content
        assert '"database/sql"' in content

    def test_scalar_result_under_nullable_scans_directly(self, translation_table):
        function = _function("account_count", "", "integer")
        signature = decompose(function.argument_types, function.result_types)
        generator = GoFileGenerator(translation_table, policy=NullabilityPolicy.NULLABLE)
        content = generator.generate_function(function, signature).content

        assert "(d sql.NullInt32, err error)" in content
        assert "db.Get(&d, " in content
        assert "var u" not in content

    def test_scalar_result_without_accessors_produces_no_file(self, translation_table):
        function = _function("account_count", "", "integer")
        signature = decompose(function.argument_types, function.result_types)
        assert GoFileGenerator(translation_table, accessors=False).generate_function(function, signature) is None

    def test_result_struct_without_accessors(self, translation_table):
        function = _function("account_search", "p_id integer", "TABLE(id integer, name text)")
        signature = decompose(function.argument_types, function.result_types)
        content = GoFileGenerator(translation_table, accessors=False).generate_function(function, signature).content

        assert "type AccountSearch struct {" in content
        assert "func (db *DB)" not in content

    def test_procedure_without_result(self, translation_table):
        function = _function("archive_account", "p_id integer, p_reason text", "", obj_kind="p")
        signature = decompose(function.argument_types, function.result_types)
        content = GoFileGenerator(translation_table).generate_function(function, signature).content

        assert "// CallArchiveAccount calls the public.archive_account procedure" in content
        assert "func (db *DB) CallArchiveAccount(pID int32, pReason string) (err error) {" in content
        assert "\t_, err = db.Exec(`CALL public.archive_account ( $1, $2 )`,\n\t\tpID, pReason,\n\t)\n" in content

    def test_unnamed_and_reserved_parameters(self, translation_table):
        function = _function("lookup", "integer, type text", "")
        signature = decompose(function.argument_types, function.result_types)
        content = GoFileGenerator(translation_table).generate_function(function, signature).content
        assert "func (db *DB) CallLookup(arg1 int32, type_ string) (err error) {" in content

"""Code emission driver: one generator run from catalog to files."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..catalog.base import CatalogIntrospector
from ..catalog.models import CatalogFilter, Function, PgType
from ..errors import FATAL_ERRORS, CatalogQueryError, PgStructError
from .dedup import Deduplicator, NameCollision
from .generator import FileHeader, GeneratedFile, GoFileGenerator
from .naming import upper_camel
from .signature import Signature, decompose, decompose_positional
from .type_mappers import NullabilityPolicy, TargetType, TypeTranslationTable
from .writer import OutputWriter

logger = logging.getLogger(__name__)

CATEGORIES = ("types", "tables", "functions")


@dataclass
class GenerationOptions:
    """What to generate and how."""
    types: bool = True
    tables: bool = True
    functions: bool = True
    policy: NullabilityPolicy = NullabilityPolicy.PLAIN
    catalog_filter: CatalogFilter = field(default_factory=CatalogFilter)
    package: str = "main"
    accessors: bool = True
    type_overrides: Dict[str, TargetType] = field(default_factory=dict)

    def enabled_categories(self) -> List[str]:
        return [category for category in CATEGORIES if getattr(self, category)]


@dataclass
class SkippedObject:
    """An object left out of the output, and why."""
    qualified_name: str
    category: str
    error: PgStructError

    @property
    def reason(self) -> str:
        return self.error.message


@dataclass
class CategoryFailure:
    """A category whose listing query failed."""
    category: str
    error: PgStructError


@dataclass
class RunReport:
    """Outcome of one generator run."""
    server_version: int = 0
    domains_registered: int = 0
    files: List[GeneratedFile] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    skipped: List[SkippedObject] = field(default_factory=list)
    category_failures: List[CategoryFailure] = field(default_factory=list)
    collisions: List[NameCollision] = field(default_factory=list)
    duplicates: int = 0

    def count(self, kind: str) -> int:
        return sum(1 for generated in self.files if generated.kind == kind)

    @property
    def succeeded(self) -> bool:
        """Per-object skips do not fail a run; category failures do."""
        return not self.category_failures

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1


class EmissionDriver:
    """Runs the catalog scan and emits one Go file per structure.

    Order: connect, version probe, domain alias bootstrap, type OID map
    (only when functions are generated), then user types, tables/views and
    functions. Failures before the first category end the run by raising.
    A failed category listing is recorded in the report and the run moves on
    to the next category. A failure on one object skips that object.
    """

    def __init__(
        self,
        introspector: CatalogIntrospector,
        options: Optional[GenerationOptions] = None,
        writer: Optional[OutputWriter] = None,
        on_category: Optional[Callable[[str], None]] = None,
    ):
        self.introspector = introspector
        self.options = options or GenerationOptions()
        self.writer = writer
        self.on_category = on_category
        self.table: Optional[TypeTranslationTable] = None
        self.type_map: Dict[str, PgType] = {}
        # Types and tables share one file namespace, function files another
        self._structs = Deduplicator()
        self._functions = Deduplicator()

    def _header(self) -> FileHeader:
        identity = self.introspector.describe()
        catalog_filter = self.options.catalog_filter
        return FileHeader(
            package=self.options.package,
            host=identity.get("host", ""),
            database=identity.get("database", ""),
            schema=catalog_filter.schema,
            objects=catalog_filter.objects,
            app_user=catalog_filter.app_user,
        )

    def bootstrap(self, report: RunReport):
        """Connection and the one-time catalog scans. Every failure is fatal."""
        self.introspector.connect()
        report.server_version = self.introspector.server_version()
        logger.info("Connected; server version %s", report.server_version)

        report.domains_registered = self.table.register_domains(self.introspector.list_domains())
        logger.debug("Registered %d domain aliases", report.domains_registered)

        if self.options.functions:
            self.type_map = self.introspector.list_type_oids()
            logger.debug("Loaded %d catalog types", len(self.type_map))

    def run(self) -> RunReport:
        """Generate every enabled category.

        Raises:
            CatalogConnectionError: the catalog could not be reached.
            CatalogQueryError: a bootstrap scan failed.
            OutputError: a generated file could not be written.
        """
        report = RunReport()
        self.table = TypeTranslationTable(self.options.type_overrides)
        self.type_map = {}
        self._structs.reset()
        self._functions.reset()
        self.bootstrap(report)

        generator = GoFileGenerator(
            self.table,
            policy=self.options.policy,
            header=self._header(),
            accessors=self.options.accessors,
        )
        handlers = {
            "types": self._generate_types,
            "tables": self._generate_tables,
            "functions": self._generate_functions,
        }
        for category in self.options.enabled_categories():
            if self.on_category:
                self.on_category(category)
            try:
                handlers[category](generator, report)
            except CatalogQueryError as e:
                logger.error("Listing %s failed: %s", category, e.message)
                report.category_failures.append(CategoryFailure(category, e))

        report.collisions = self._structs.collisions + self._functions.collisions
        return report

    def _emit(self, generated: GeneratedFile, report: RunReport):
        report.files.append(generated)
        if self.writer is not None:
            report.written.append(self.writer.write(generated))

    def _skip(self, report: RunReport, qualified_name: str, category: str, error: PgStructError):
        logger.warning("Skipping %s: %s", qualified_name, error.message)
        report.skipped.append(SkippedObject(qualified_name, category, error))

    def _generate_types(self, generator: GoFileGenerator, report: RunReport):
        for user_type in self.introspector.list_user_types(self.options.catalog_filter):
            user_type.struct_name = user_type.struct_name or upper_camel(user_type.obj_name)
            if not self._structs.admit(user_type.struct_name, user_type.qualified_name):
                report.duplicates += 1
                continue
            try:
                user_type.columns = self.introspector.list_type_columns(user_type.schema_name, user_type.obj_name)
                if not user_type.columns:
                    logger.debug("Type %s has no attributes", user_type.qualified_name)
                    continue
                generated = generator.generate_type(user_type)
            except FATAL_ERRORS:
                raise
            except PgStructError as e:
                self._skip(report, user_type.qualified_name, "types", e)
                continue
            self.table.register_composite(user_type.obj_name, user_type.struct_name)
            self._emit(generated, report)

    def _generate_tables(self, generator: GoFileGenerator, report: RunReport):
        for obj in self.introspector.list_tables(self.options.catalog_filter):
            obj.struct_name = obj.struct_name or upper_camel(obj.obj_name)
            if not self._structs.admit(obj.struct_name, obj.qualified_name):
                report.duplicates += 1
                continue
            try:
                obj.columns = self.introspector.list_table_columns(obj.schema_name, obj.obj_name)
                if not obj.columns:
                    logger.debug("%s %s has no columns", obj.obj_type, obj.qualified_name)
                    continue
                generated = generator.generate_table(obj)
            except FATAL_ERRORS:
                raise
            except PgStructError as e:
                self._skip(report, obj.qualified_name, "tables", e)
                continue
            self.table.register_composite(obj.obj_name, obj.struct_name)
            self._emit(generated, report)

    def decompose(self, function: Function) -> Signature:
        """Decompose a function signature, preferring the positional lists.

        Raises:
            UnresolvedArgumentTypeError: a type OID is missing from the type map.
            SignatureError: the positional lists are inconsistent.
        """
        if function.arg_types:
            return decompose_positional(
                function.arg_types,
                function.arg_modes,
                function.arg_names,
                self.type_map.get,
            )
        return decompose(function.argument_types, function.result_types)

    def _generate_functions(self, generator: GoFileGenerator, report: RunReport):
        for function in self.introspector.list_functions(self.options.catalog_filter):
            function.struct_name = function.struct_name or upper_camel(function.obj_name)
            if not self._functions.admit(function.struct_name, function.signature_key):
                report.duplicates += 1
                continue
            try:
                signature = self.decompose(function)
                function.calling_arguments = signature.calling_arguments
                function.result_columns = signature.result_columns
                function.columns = signature.merged_columns()
                generated = generator.generate_function(function, signature)
            except FATAL_ERRORS:
                raise
            except PgStructError as e:
                self._skip(report, function.qualified_name, "functions", e)
                continue
            if generated is None:
                logger.debug("No file for %s: scalar result and accessors disabled", function.qualified_name)
                continue
            self._emit(generated, report)

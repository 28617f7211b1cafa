"""Go code generation module for pgstruct.

Translates catalog metadata into aligned Go struct declarations and the
accessor methods that read them.
"""

from .naming import upper_camel, lower_camel, go_identifier
from .type_mappers import (
    NullabilityPolicy,
    TargetType,
    TypeTranslationTable,
    normalize_type_name,
    parse_type_override,
)
from .layout import ColumnWidths, RenderMode, plan
from .stanza import render, render_block
from .dedup import Deduplicator, NameCollision
from .signature import Signature, decompose, decompose_positional
from .generator import FileHeader, GeneratedFile, GoFileGenerator
from .writer import OutputWriter
from .driver import (
    CategoryFailure,
    EmissionDriver,
    GenerationOptions,
    RunReport,
    SkippedObject,
)

__all__ = [
    # Identifier casing
    "upper_camel",
    "lower_camel",
    "go_identifier",
    # Type translation
    "NullabilityPolicy",
    "TargetType",
    "TypeTranslationTable",
    "normalize_type_name",
    "parse_type_override",
    # Field rendering
    "ColumnWidths",
    "RenderMode",
    "plan",
    "render",
    "render_block",
    # Deduplication
    "Deduplicator",
    "NameCollision",
    # Function signatures
    "Signature",
    "decompose",
    "decompose_positional",
    # File generation
    "FileHeader",
    "GeneratedFile",
    "GoFileGenerator",
    "OutputWriter",
    # Run orchestration
    "CategoryFailure",
    "EmissionDriver",
    "GenerationOptions",
    "RunReport",
    "SkippedObject",
]

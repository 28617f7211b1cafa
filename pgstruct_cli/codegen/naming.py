"""Identifier casing for generated Go names and JSON keys."""

# Segments rendered fully upper-case wherever they appear
ACRONYMS = {"id", "html", "json", "url", "uuid", "sql", "api", "xml", "http"}

# Go reserved words
GO_RESERVED_WORDS = {
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
}


def _segments(identifier: str) -> list:
    return [segment for segment in identifier.split("_") if segment]


def _case_segment(segment: str) -> str:
    if segment.lower() in ACRONYMS:
        return segment.upper()
    return segment[:1].upper() + segment[1:]


def upper_camel(identifier: str) -> str:
    """Convert a snake_case catalog identifier to UpperCamelCase.

    >>> upper_camel("customer_id")
    'CustomerID'
    """
    return "".join(_case_segment(segment) for segment in _segments(identifier))


def lower_camel(identifier: str) -> str:
    """Convert a snake_case catalog identifier to lowerCamelCase.

    >>> lower_camel("customer_id")
    'customerID'
    """
    segments = _segments(identifier)
    if not segments:
        return ""
    head, rest = segments[0], segments[1:]
    return head.lower() + "".join(_case_segment(segment) for segment in rest)


def go_identifier(name: str, fallback: str) -> str:
    """Return ``name`` as a usable Go local identifier.

    Empty names (unnamed function arguments) use ``fallback``; reserved words
    get a trailing underscore and a leading digit gets an ``x`` prefix.
    """
    ident = lower_camel(name) or fallback
    if ident in GO_RESERVED_WORDS:
        return ident + "_"
    if ident[0].isdigit():
        return "x" + ident
    return ident

"""Error types for pgstruct."""

from typing import Optional, Dict, Any


class PgStructError(Exception):
    """Base exception for generator errors."""

    def __init__(self, message: str, code: str = "PGSTRUCT_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for reports and run logs."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class CatalogConnectionError(PgStructError):
    """Error connecting to, or pinging, the catalog database."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONNECTION_ERROR", details=details)


class CatalogQueryError(PgStructError):
    """A catalog query failed.

    ``category`` names the object category being listed ("types", "tables",
    "functions") or "bootstrap" for the one-time domain/type scans.
    """

    def __init__(self, message: str, category: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        if category:
            error_details["category"] = category
        super().__init__(message, code="CATALOG_QUERY_ERROR", details=error_details)
        self.category = category


class UnknownTypeError(PgStructError):
    """A native type name has no mapping and no resolvable domain alias."""

    def __init__(self, type_name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Unable to translate Pg type name {type_name!r}",
            code="UNKNOWN_TYPE",
            details=details or {"type_name": type_name},
        )
        self.type_name = type_name


class UnresolvedArgumentTypeError(PgStructError):
    """A function argument type OID is not present in the catalog type map."""

    def __init__(self, type_oid: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Unable to resolve argument type oid {type_oid!r}",
            code="UNRESOLVED_ARGUMENT_TYPE",
            details=details or {"type_oid": type_oid},
        )
        self.type_oid = type_oid


class SignatureError(PgStructError):
    """A function's argument lists could not be decomposed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="SIGNATURE_ERROR", details=details)


class OutputError(PgStructError):
    """A generated file could not be written."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to write {path}: {reason}",
            code="OUTPUT_ERROR",
            details={"path": path, "reason": reason},
        )
        self.path = path


# Errors that end the whole run rather than one object or category
FATAL_ERRORS = (CatalogConnectionError,)

"""Error definitions for hwprofiles.

Every error carries a stable ``code`` string for programmatic handling.
Store errors also derive from the matching builtin exception so callers
that only know about ``OSError`` or ``ValueError`` still catch them.
"""

# Error code constants
NOT_FOUND = "not_found"
PARSE_ERROR = "parse_error"
IO_ERROR = "io_error"
FORMAT_ERROR = "format_error"
CANCELLED = "cancelled"


class HwProfilesError(Exception):
    """Base class for all hwprofiles errors."""

    code = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class NotFoundError(HwProfilesError, FileNotFoundError):
    """Raised when a settings or profiles file does not exist on read."""

    code = NOT_FOUND


class ParseError(HwProfilesError, ValueError):
    """Raised when file content is not a valid encoding of the document."""

    code = PARSE_ERROR


class StoreIOError(HwProfilesError, OSError):
    """Raised when directory creation, file write or chmod fails."""

    code = IO_ERROR


class FormatError(HwProfilesError, ValueError):
    """Raised when an import source is not a valid profile collection."""

    code = FORMAT_ERROR


class ImportCancelledError(HwProfilesError):
    """Raised when the conflict decision process is aborted."""

    code = CANCELLED

    def __init__(self, message: str = "Profile import cancelled") -> None:
        super().__init__(message)


__all__ = [
    "CANCELLED",
    "FORMAT_ERROR",
    "FormatError",
    "HwProfilesError",
    "IO_ERROR",
    "ImportCancelledError",
    "NOT_FOUND",
    "NotFoundError",
    "PARSE_ERROR",
    "ParseError",
    "StoreIOError",
]

"""Error taxonomy shared by loaders, caches and the CLI."""

from __future__ import annotations


class PreviewError(Exception):
    """Base class for all errors raised by hoi4_preview."""


class UserError(PreviewError):
    """Error whose message is meant to be shown to the user as-is."""


class ResourceIOError(PreviewError, OSError):
    """Raised when a resource is missing or unreadable in every search layer."""

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        super().__init__(message or f"File not found: {path}")


class ParseError(PreviewError):
    """Raised when file content cannot be interpreted.

    Attributes:
        file: Resource the content came from (may be None for in-memory text)
        line: 1-based line of the offending token
        column: 1-based column of the offending token
    """

    def __init__(self, message: str, file: str | None = None, line: int | None = None, column: int | None = None):
        self.file = file
        self.line = line
        self.column = column
        self.message = message
        super().__init__(self._format())

    def _format(self) -> str:
        location = ""
        if self.file:
            location = f"In file {self.file}"
            if self.line is not None:
                location += f" (line {self.line}, column {self.column})"
            location += ": "
        elif self.line is not None:
            location = f"Line {self.line}, column {self.column}: "
        return location + self.message


class LoadCancelledError(PreviewError):
    """Raised when a loader session is cancelled while a load is in flight."""


class UnsupportedFormatError(UserError):
    """Raised for a recognised resource whose variant is not handled."""


class DependencyCycleError(PreviewError):
    """Raised when a loader reaches itself before it has ever produced a result."""

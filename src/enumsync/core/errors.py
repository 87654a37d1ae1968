"""
Error types for enum parsing, validation, and persistence.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class EnumSyncError(Exception):
    """Base exception for all enumsync errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(EnumSyncError):
    """
    Raised when source text has no recognizable enum structure.

    Examples:
    - No enum declaration at all
    - Enum body never closed
    - Member value expression that is not an integer expression
    """

    pass


class ValidationError(EnumSyncError):
    """
    Raised when an EnumDefinition cannot be generated.

    Examples:
    - Member name that is not a C# identifier, or is a keyword
    - Duplicate active member names
    - Empty enum name or malformed namespace
    - A name both active and soft-deleted

    Every offending item is listed in ``problems``.
    """

    def __init__(
        self,
        message: str,
        problems: list[str] | None = None,
        context: Optional["ErrorContext"] = None,
    ):
        self.problems = list(problems or [])
        super().__init__(message, context)

    def _format_message(self) -> str:
        base = super()._format_message()
        if not self.problems:
            return base
        return base + "\n" + "\n".join(f"  - {p}" for p in self.problems)


class StoreError(EnumSyncError):
    """Raised when a definition record cannot be read or written."""

    pass


class ConfigError(EnumSyncError):
    """Raised when enumsync.toml is malformed."""

    pass


class SourceEditError(EnumSyncError):
    """Raised when a hand-written source file cannot be edited in place."""

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the source file where error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet showing the error location
    """

    file: Path
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "Weapons.cs:10:5"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        lines = self.snippet.split("\n")
        formatted = []

        # Snippet starts up to 2 lines before the error line
        start_line = max(1, self.line - 2)

        for i, line in enumerate(lines):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)

            if line_num == self.line:
                marker_pos = len(prefix) + self.column - 1
                formatted.append(" " * marker_pos + "^^^")

        return "\n".join(formatted)


def snippet_around(text: str, line: int, radius: int = 2) -> str:
    """Return the lines of ``text`` around ``line`` (1-indexed)."""
    lines = text.split("\n")
    start = max(1, line - radius)
    end = min(len(lines), line + radius)
    return "\n".join(lines[start - 1 : end])


def make_parse_error(
    message: str,
    file: Path | None,
    text: str,
    offset: int,
) -> ParseError:
    """
    Helper to create a ParseError pointing at a character offset.

    Args:
        message: Error description
        file: Source file path, or None when parsing an in-memory string
        text: Full source text
        offset: Character offset of the problem

    Returns:
        ParseError with context attached when a file is known
    """
    if file is None:
        return ParseError(message)

    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    context = ErrorContext(
        file=file,
        line=line,
        column=column,
        snippet=snippet_around(text, line),
    )
    return ParseError(message, context)


__all__ = [
    "EnumSyncError",
    "ParseError",
    "ValidationError",
    "StoreError",
    "ConfigError",
    "SourceEditError",
    "ErrorContext",
    "make_parse_error",
    "snippet_around",
]

"""Exception hierarchy for statement imports.

Only parsing raises. Categorization never does: a dictionary miss or a
malformed rule is an absence value, not an error.

- ``ParseError``: a single date/amount token could not be interpreted.
- ``RowTransformError``: one CSV row cannot become a transaction. Recovered
  by the parser at row granularity.
- ``StructuralParseError``: the file as a whole is not recognizable. Fatal
  for the import; no partial results.
"""

from __future__ import annotations

from collections.abc import Sequence


class StatementImportError(Exception):
    """Base class for all errors raised by ``statement_import``."""


class ParseError(StatementImportError, ValueError):
    """Raised when a raw date or amount token cannot be parsed."""

    def __init__(self, message: str, *, token: str | None = None) -> None:
        super().__init__(message)
        self.token = token


class RowTransformError(StatementImportError, ValueError):
    """Raised when a single row is missing required fields or has bad values."""

    def __init__(self, message: str, *, available_headers: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.available_headers = tuple(available_headers)


class StructuralParseError(StatementImportError):
    """Raised when no recognizable header mapping exists for the file."""

    def __init__(self, message: str, *, headers: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.headers = tuple(headers)


__all__ = [
    "StatementImportError",
    "ParseError",
    "RowTransformError",
    "StructuralParseError",
]

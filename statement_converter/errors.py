"""
Exceptions raised while converting statements.

Each error carries the human readable message shown to the user plus the
fields that caused it, so callers and tests need not parse the message text.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class ConverterError(Exception):
    """Base exception for all conversion errors."""

    http_status: int = 422

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NormalizationError(ConverterError):
    """A statement could not be normalized for the given source format."""

    def __init__(self, message: str, source_format=None):
        self.source_format = source_format
        super().__init__(message)


class UnknownFormatError(NormalizationError):
    def __init__(self, value: Optional[str], choices: Iterable[str] = ()):
        self.value = value
        if value is None or not str(value).strip():
            message = "No bank type selected."
        else:
            message = f'Unknown source format: "{value}". Expected one of: {", ".join(choices)}'
        super().__init__(message)


class MissingColumnError(NormalizationError):
    def __init__(self, column: str, found_headers: List[str], source_format=None):
        self.column = column
        self.found_headers = list(found_headers)
        label = source_format.label if source_format is not None else "source"
        message = (
            f'Missing required {label} column header: "{column}". '
            f"Found headers: {', '.join(self.found_headers)}"
        )
        super().__init__(message, source_format=source_format)


class RowValidationError(NormalizationError):
    """A single row holds a missing or malformed value."""

    def __init__(self, message: str, row: int, field: str, value: Optional[str] = None, source_format=None):
        self.row = row
        self.field = field
        self.value = value
        super().__init__(message, source_format=source_format)


class CsvDecodeError(ConverterError):
    """The uploaded bytes could not be read as a rectangular CSV table."""

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__(f"Error parsing CSV: {', '.join(self.issues)}")

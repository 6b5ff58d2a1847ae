from __future__ import annotations

"""Exception hierarchy of the T212 export decoding engine.

Three scopes:
- batch level (EmptyInputError, SchemaError): abort the parse of one file
- row level (RowError subclasses): the batch parser skips the row
- aggregation level (AggregationError subclasses): abort a multi-file run
  before any file content is read

Each class carries an UPPER_SNAKE ``error_type`` used by the JSON Lines error log.
"""

__all__ = [
    "AggregationError",
    "DateRangeError",
    "DuplicateYearError",
    "EmptyInputError",
    "FieldParseError",
    "FilenameConventionError",
    "ImportCancelled",
    "ImportParseError",
    "RequiredFieldMissingError",
    "RowError",
    "SchemaError",
    "SevereMismatchError",
    "TimeParseError",
]


class ImportParseError(Exception):
    """Base class for every error raised by the importer."""
    error_type = "PARSE_ERROR"


class EmptyInputError(ImportParseError):
    """Input has no rows, no data rows after the header, or no files at all."""
    error_type = "EMPTY_INPUT"


class SchemaError(ImportParseError):
    """Header lacks a mandatory column or has an unknown column count."""
    error_type = "SCHEMA_ERROR"

    def __init__(
        self,
        message: str,
        *,
        missing_field: str | None = None,
        column_count: int | None = None,
    ) -> None:
        super().__init__(message)
        self.missing_field = missing_field
        self.column_count = column_count


class RowError(ImportParseError):
    """A single data row could not be decoded."""
    error_type = "ROW_ERROR"

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line_number = line_number

    def at_line(self, line_number: int) -> RowError:
        """Attach the CSV line number of the offending row and return self."""
        self.line_number = line_number
        return self

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class SevereMismatchError(RowError):
    error_type = "SEVERE_MISMATCH"

    def __init__(self, expected: int, actual: int, *, line_number: int | None = None) -> None:
        super().__init__(
            f"severe field count mismatch: expected {expected}, got {actual}",
            line_number=line_number,
        )
        self.expected = expected
        self.actual = actual


class RequiredFieldMissingError(RowError):
    error_type = "REQUIRED_FIELD_MISSING"

    def __init__(self, field: str, *, line_number: int | None = None) -> None:
        super().__init__(f"missing {field} field", line_number=line_number)
        self.field = field


class TimeParseError(RowError):
    error_type = "TIME_PARSE_ERROR"

    def __init__(self, value: str, *, line_number: int | None = None) -> None:
        super().__init__(f"failed to parse time {value!r}", line_number=line_number)
        self.value = value


class FieldParseError(RowError):
    error_type = "FIELD_PARSE_ERROR"

    def __init__(self, column: str, value: str, *, line_number: int | None = None) -> None:
        super().__init__(f"failed to parse {column}: {value!r} is not a number", line_number=line_number)
        self.column = column
        self.value = value


class AggregationError(ImportParseError):
    """A file set violates the yearly naming convention."""
    error_type = "AGGREGATION_ERROR"


class FilenameConventionError(AggregationError):
    error_type = "FILENAME_CONVENTION"

    def __init__(self, filename: str, reason: str | None = None) -> None:
        detail = reason or "expected from_YYYY-MM-DD_to_YYYY-MM-DD_<tag>.csv"
        super().__init__(f"invalid filename format: {filename} ({detail})")
        self.filename = filename


class DateRangeError(AggregationError):
    error_type = "DATE_RANGE"

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"{reason} in filename {filename}")
        self.filename = filename


class DuplicateYearError(AggregationError):
    error_type = "DUPLICATE_YEAR"

    def __init__(self, year: int, filenames: tuple[str, str]) -> None:
        super().__init__(f"duplicate year {year} found in filenames: {filenames[0]}, {filenames[1]}")
        self.year = year
        self.filenames = filenames


class ImportCancelled(ImportParseError):
    """A multi-file run was stopped through its cancellation event."""
    error_type = "CANCELLED"

"""Decoding engine for versioned T212 CSV exports."""

from .decoder import decode_transaction, parse_time
from .errors import (
    AggregationError,
    DateRangeError,
    DuplicateYearError,
    EmptyInputError,
    FieldParseError,
    FilenameConventionError,
    ImportCancelled,
    ImportParseError,
    RequiredFieldMissingError,
    RowError,
    SchemaError,
    SevereMismatchError,
    TimeParseError,
)
from .normalizer import normalize_record
from .schema import FormatVersion, validate_header

__all__ = [
    "AggregationError",
    "DateRangeError",
    "DuplicateYearError",
    "EmptyInputError",
    "FieldParseError",
    "FilenameConventionError",
    "FormatVersion",
    "ImportCancelled",
    "ImportParseError",
    "RequiredFieldMissingError",
    "RowError",
    "SchemaError",
    "SevereMismatchError",
    "TimeParseError",
    "decode_transaction",
    "normalize_record",
    "parse_time",
    "validate_header",
]

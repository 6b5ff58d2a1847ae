from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import UTC, datetime

from ..models.transaction import TransactionRecord
from .errors import RowError, TimeParseError
from .fields import (
    ACTION_COLUMN,
    TIME_COLUMN,
    build_field_map,
    extract_optional_fields,
    extract_required,
)
from .normalizer import normalize_record

"""Transaction decoding: one raw CSV row -> one TransactionRecord.

Pipeline per row: normalize width -> build field map -> required fields
(action, time) -> optional fields. Any failure aborts the row with a single
RowError tagged with the row's CSV line number; a partially populated record
is never returned.
"""

__all__ = [
    "TIME_FORMATS",
    "TIME_PATTERN",
    "decode_transaction",
    "parse_time",
]

# First match wins. The fractional variants cover exports that append
# milliseconds after the seconds field.
TIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S.%f",
)

# strptime alone accepts single-digit fields; exports always zero-pad
TIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2}(\.\d+)?", re.ASCII)


def parse_time(value: str) -> datetime:
    """Parse an export timestamp as UTC.

    Raises:
        TimeParseError: value is not zero-padded or no accepted format matches
    """
    if TIME_PATTERN.fullmatch(value) is None:
        raise TimeParseError(value)
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    raise TimeParseError(value)


def decode_transaction(
    header: Sequence[str],
    row: Sequence[str],
    line_number: int | None = None,
) -> TransactionRecord:
    """Decode one data row against its file header.

    Args:
        header: Header row of the file (already schema-validated)
        row: Raw cells of one data row
        line_number: CSV line number used in error messages (header = 1)

    Returns:
        The decoded TransactionRecord

    Raises:
        RowError: SevereMismatchError, RequiredFieldMissingError,
            TimeParseError or FieldParseError, tagged with ``line_number``
    """
    try:
        cells = normalize_record(header, row)
        field_map = build_field_map(header, cells)

        action = extract_required(field_map, ACTION_COLUMN)
        time = parse_time(extract_required(field_map, TIME_COLUMN))
        optional = extract_optional_fields(field_map)
    except RowError as e:
        if line_number is not None:
            e.at_line(line_number)
        raise

    return TransactionRecord(action=action, time=time, **optional)

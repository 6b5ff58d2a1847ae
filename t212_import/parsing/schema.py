from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum

from .errors import SchemaError

"""Header (schema) validation for T212 CSV exports.

The brokerage changed its export layout over time:
- 2021 exports: 23 columns
- 2022-2023 exports: 22 columns (no Result column)
- 2024+ exports: 27 columns (currency conversion amount columns added)

A header is accepted when every mandatory column is present (exact match
after trimming, case-sensitive) and the column count is one of the known
layouts. Column order is irrelevant: fields are always looked up by name.
"""

__all__ = [
    "FormatVersion",
    "KNOWN_COLUMN_COUNTS",
    "MANDATORY_COLUMNS",
    "detect_format_version",
    "validate_header",
]

MANDATORY_COLUMNS: tuple[str, ...] = ("Action", "Time", "ISIN", "Ticker", "Name")


class FormatVersion(IntEnum):
    """Known export layouts, valued by their column count."""
    V22 = 22  # 2022-2023
    V23 = 23  # 2021
    V27 = 27  # 2024+


KNOWN_COLUMN_COUNTS: frozenset[int] = frozenset(v.value for v in FormatVersion)


def detect_format_version(header: Sequence[str]) -> FormatVersion | None:
    """Classify a header by column count, None when the count is unknown."""
    try:
        return FormatVersion(len(header))
    except ValueError:
        return None


def validate_header(header: Sequence[str]) -> FormatVersion:
    """Validate a header row and return its format version.

    Mandatory columns are checked first, so a header missing one reports the
    missing name even when its column count is also wrong.

    Raises:
        SchemaError: missing mandatory column or unknown column count
    """
    present = {str(col).strip() for col in header}
    for required in MANDATORY_COLUMNS:
        if required not in present:
            raise SchemaError(f"missing required field: {required}", missing_field=required)

    version = detect_format_version(header)
    if version is None:
        expected = ", ".join(str(c) for c in sorted(KNOWN_COLUMN_COUNTS))
        raise SchemaError(
            f"CSV has {len(header)} columns, expected one of {expected}",
            column_count=len(header),
        )
    return version

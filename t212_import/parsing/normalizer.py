from __future__ import annotations

from collections.abc import Sequence

from .errors import SevereMismatchError

"""Record normalization: reconcile a data row's field count with its header.

Some export variants omit trailing optional cells or append stray ones. Minor
mismatches are repaired (pad with "" / truncate); rows less than half or more
than twice the header width are corrupt and rejected.
"""

__all__ = [
    "is_within_tolerance",
    "normalize_record",
]


def is_within_tolerance(header_len: int, row_len: int) -> bool:
    """Return True when a row of ``row_len`` cells can be repaired."""
    return header_len // 2 <= row_len <= header_len * 2


def normalize_record(header: Sequence[str], row: Sequence[str]) -> list[str]:
    """Return ``row`` resized to the header width.

    The input sequence is never modified; a new list is returned.

    Raises:
        SevereMismatchError: row width outside the repairable window
    """
    expected = len(header)
    actual = len(row)
    if actual == expected:
        return list(row)
    if not is_within_tolerance(expected, actual):
        raise SevereMismatchError(expected, actual)
    if actual < expected:
        return list(row) + [""] * (expected - actual)
    return list(row[:expected])

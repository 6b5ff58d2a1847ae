from __future__ import annotations

import csv
from pathlib import Path
from typing import TextIO

"""CSV reader for T212 exports.

The whole input is materialized before decoding starts. Rows keep their
original width (no padding): reconciling widths is the normalizer's job, so
the standard csv module is used instead of a DataFrame reader that would pad
ragged rows.

Reader settings mirror what the exports need:
- leading spaces after a delimiter are skipped
- blank lines are ignored
- a UTF-8 byte order mark on the first header cell is removed

Each record keeps the physical line it starts on (1-based), so error
messages point at the line an editor shows even after blank lines or quoted
cells spanning several lines.
"""

__all__ = [
    "CsvRecord",
    "DEFAULT_DELIMITER",
    "DEFAULT_ENCODING",
    "read_csv_file",
    "read_csv_records",
]

DEFAULT_DELIMITER = ","
DEFAULT_ENCODING = "utf-8-sig"
_BOM = "\ufeff"

# (physical start line, cells)
CsvRecord = tuple[int, list[str]]


def read_csv_records(stream: TextIO, delimiter: str = DEFAULT_DELIMITER) -> list[CsvRecord]:
    """Read every non-blank record of a text stream with its start line.

    Raises:
        csv.Error: malformed CSV the reader cannot recover from
    """
    reader = csv.reader(stream, delimiter=delimiter, skipinitialspace=True, strict=False)
    records: list[CsvRecord] = []
    start = 1
    for row in reader:
        if row:
            records.append((start, row))
        start = reader.line_num + 1
    if records and records[0][1] and records[0][1][0].startswith(_BOM):
        header = records[0][1]
        header[0] = header[0][len(_BOM):]
    return records


def read_csv_file(
    path: Path,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
) -> list[CsvRecord]:
    """Read a CSV file fully into memory, see read_csv_records().

    Raises:
        OSError: file cannot be opened
        UnicodeDecodeError: file is not valid in ``encoding``
    """
    with Path(path).open("r", newline="", encoding=encoding) as handle:
        return read_csv_records(handle, delimiter=delimiter)

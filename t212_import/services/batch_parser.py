from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from operator import attrgetter
from pathlib import Path
from typing import TextIO

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.export_file import FileStatus
from ..models.processing_result import FileStat, ProcessingOptions, ProcessingResult
from ..models.transaction import TransactionRecord
from ..parsing.decoder import decode_transaction
from ..parsing.errors import EmptyInputError, RowError
from ..parsing.reader import (
    DEFAULT_DELIMITER,
    DEFAULT_ENCODING,
    CsvRecord,
    read_csv_file,
    read_csv_records,
)
from ..parsing.schema import FormatVersion, validate_header
from .summary import calculate_summary

"""Batch parser: decode every data row of one export file.

Failure policy
--------------
- batch level (fatal for this file): empty input, header-only input, header
  failing schema validation
- row level (isolated): the row is skipped, a warning is logged for the first
  ``max_errors_displayed`` failures, later ones at DEBUG, followed by a
  count-based tally; one bad row never aborts the batch

Accepted transactions are stable-sorted ascending by time before the summary
is computed.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "LINE_NUMBER_OFFSET",
    "MAX_ERRORS_DISPLAYED",
    "STREAM_SOURCE",
    "parse_file",
    "parse_rows",
    "parse_stream",
    "validate_format",
]

MAX_ERRORS_DISPLAYED = 10
# without recorded line numbers: header is line 1, first data row is line 2
LINE_NUMBER_OFFSET = 2
STREAM_SOURCE = "<stream>"


def parse_rows(
    rows: Sequence[Sequence[str]],
    *,
    source: str = STREAM_SOURCE,
    error_log: ErrorLogBuffer | None = None,
    max_errors_displayed: int = MAX_ERRORS_DISPLAYED,
    options: ProcessingOptions | None = None,
    line_numbers: Sequence[int] | None = None,
) -> ProcessingResult:
    """Decode a fully materialized row set (header + data rows).

    Args:
        rows: Row 0 is the header, the rest are data rows
        source: Name used in log messages and error records
        error_log: Optional buffer receiving one ErrorRecord per skipped row
        max_errors_displayed: Number of row failures logged at WARNING
        options: ProcessingOptions to attach (defaults when None)
        line_numbers: Physical CSV line of each entry of ``rows``; when None
            rows are assumed to sit on consecutive lines

    Returns:
        ProcessingResult with time-sorted transactions, summary, failed_rows
        and a single FileStat describing this input

    Raises:
        EmptyInputError: no rows, or no data rows after the header
        SchemaError: header fails validation
    """
    started = time.perf_counter()
    if not rows:
        raise EmptyInputError(f"{source}: CSV input is empty")
    if line_numbers is not None and len(line_numbers) != len(rows):
        raise ValueError("line_numbers must have one entry per row")

    header = list(rows[0])
    version = validate_header(header)
    data_rows = rows[1:]
    if not data_rows:
        raise EmptyInputError(f"{source}: CSV input has no data rows after the header")

    transactions: list[TransactionRecord] = []
    failed = 0
    for index, row in enumerate(data_rows):
        if line_numbers is None:
            line_number = index + LINE_NUMBER_OFFSET
        else:
            line_number = line_numbers[index + 1]
        try:
            transaction = decode_transaction(header, row, line_number)
        except RowError as e:
            failed += 1
            if failed <= max_errors_displayed:
                logger.warning("%s: failed to parse transaction at %s", source, e)
            else:
                logger.debug("%s: failed to parse transaction at %s", source, e)
            if error_log is not None:
                error_log.append(
                    ErrorRecord.create(
                        file=source,
                        row=line_number,
                        error_type=e.error_type,
                        message=e.message,
                    )
                )
            continue
        transactions.append(transaction)

    if failed > max_errors_displayed:
        logger.warning(
            "%s: %d further row failures not shown", source, failed - max_errors_displayed
        )
    if failed:
        logger.info(
            "%s: parsed %d transactions, failed to parse %d",
            source,
            len(transactions),
            failed,
        )

    # list.sort is stable: equal timestamps keep their file order
    transactions.sort(key=attrgetter("time"))

    stat = FileStat(
        file_name=source,
        status=FileStatus.SUCCESS.value,
        parsed_rows=len(transactions),
        failed_rows=failed,
        elapsed_seconds=time.perf_counter() - started,
        format_version=int(version),
    )
    return ProcessingResult(
        transactions=transactions,
        summary=calculate_summary(transactions),
        processed_at=datetime.now(UTC),
        options=options if options is not None else ProcessingOptions(),
        failed_rows=failed,
        file_stats=[stat],
    )


def _parse_records(
    records: Sequence[CsvRecord],
    *,
    source: str,
    error_log: ErrorLogBuffer | None,
    max_errors_displayed: int,
    options: ProcessingOptions | None,
) -> ProcessingResult:
    return parse_rows(
        [row for _, row in records],
        source=source,
        error_log=error_log,
        max_errors_displayed=max_errors_displayed,
        options=options,
        line_numbers=[line for line, _ in records],
    )


def parse_stream(
    stream: TextIO,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    source: str = STREAM_SOURCE,
    error_log: ErrorLogBuffer | None = None,
    max_errors_displayed: int = MAX_ERRORS_DISPLAYED,
    options: ProcessingOptions | None = None,
) -> ProcessingResult:
    """Read a text stream fully and parse it, see parse_rows()."""
    records = read_csv_records(stream, delimiter=delimiter)
    return _parse_records(
        records,
        source=source,
        error_log=error_log,
        max_errors_displayed=max_errors_displayed,
        options=options,
    )


def parse_file(
    path: Path,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
    error_log: ErrorLogBuffer | None = None,
    max_errors_displayed: int = MAX_ERRORS_DISPLAYED,
    options: ProcessingOptions | None = None,
) -> ProcessingResult:
    """Read an export file fully and parse it, see parse_rows().

    Raises:
        OSError: file cannot be read
        UnicodeDecodeError: file is not valid in ``encoding``
        EmptyInputError, SchemaError: batch level failures
    """
    path = Path(path)
    records = read_csv_file(path, delimiter=delimiter, encoding=encoding)
    return _parse_records(
        records,
        source=path.name,
        error_log=error_log,
        max_errors_displayed=max_errors_displayed,
        options=options,
    )


def validate_format(
    source: Path | TextIO,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
) -> FormatVersion:
    """Check only the header of a file or stream.

    Returns:
        Detected FormatVersion

    Raises:
        EmptyInputError: input has no rows
        SchemaError: header fails validation
    """
    if isinstance(source, (str, Path)):
        records = read_csv_file(Path(source), delimiter=delimiter, encoding=encoding)
    else:
        records = read_csv_records(source, delimiter=delimiter)
    if not records:
        raise EmptyInputError("CSV input is empty")
    return validate_header(records[0][1])

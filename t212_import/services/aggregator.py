from __future__ import annotations

import csv
import logging
import re
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime
from operator import attrgetter
from pathlib import Path

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import FILE_LEVEL_ROW, ErrorRecord
from ..models.export_file import ExportFileName, FileStatus
from ..models.processing_result import FileStat, ProcessingOptions, ProcessingResult
from ..models.transaction import TransactionRecord
from ..parsing.errors import (
    DateRangeError,
    DuplicateYearError,
    EmptyInputError,
    FilenameConventionError,
    ImportCancelled,
    ImportParseError,
)
from ..parsing.reader import DEFAULT_DELIMITER, DEFAULT_ENCODING
from .batch_parser import MAX_ERRORS_DISPLAYED, parse_file
from .progress import ProgressTracker
from .summary import calculate_summary

"""Multi-file aggregation for yearly T212 exports.

A run covers one export file per calendar year. The file set is validated
against the naming convention before any content is read:

    from_<YYYY-MM-DD>_to_<YYYY-MM-DD>_<tag>.csv

- both dates must be valid calendar dates, start <= end
- start and end must fall in the same year
- no two files may declare the same year

Each file is then parsed on its own. A file that fails is logged and skipped,
its siblings are still parsed. The merge (concatenate in input order, stable
sort by time, fresh summary) happens only once every file has been handled.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "EXPORT_FILENAME_PATTERN",
    "ProcessingError",
    "parse_export_filename",
    "parse_multiple_files",
    "scan_csv_files",
    "validate_yearly_structure",
]

EXPORT_FILENAME_PATTERN = re.compile(
    r"^from_(\d{4}-\d{2}-\d{2})_to_(\d{4}-\d{2}-\d{2})_([A-Za-z0-9]+)\.csv$"
)

# Failures that make a single file unusable without affecting its siblings.
_FILE_ERRORS = (ImportParseError, OSError, ValueError, csv.Error)


class ProcessingError(Exception):
    """Input directory cannot be scanned."""


def _parse_iso_date(value: str, filename: str, label: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise FilenameConventionError(filename, f"invalid {label} date {value}") from e


def parse_export_filename(path: str | Path) -> ExportFileName:
    """Decode the yearly naming convention of one export file.

    Only the base name is inspected, the directory part is ignored.

    Raises:
        FilenameConventionError: name does not match or a date is not a real date
        DateRangeError: start after end, or range crossing a year boundary
    """
    path = Path(path)
    base = path.name
    match = EXPORT_FILENAME_PATTERN.match(base)
    if match is None:
        raise FilenameConventionError(base)

    start = _parse_iso_date(match.group(1), base, "start")
    end = _parse_iso_date(match.group(2), base, "end")
    if start > end:
        raise DateRangeError(base, "start date after end date")
    if start.year != end.year:
        raise DateRangeError(base, "date range spans multiple years")
    return ExportFileName(path=path, start=start, end=end, tag=match.group(3))


def validate_yearly_structure(filenames: Iterable[str | Path]) -> list[ExportFileName]:
    """Validate a file set against the one-file-per-year convention.

    Duplicate years are rejected even when the ranges do not overlap.

    Returns:
        Decoded names, in input order

    Raises:
        FilenameConventionError, DateRangeError, DuplicateYearError
    """
    decoded: list[ExportFileName] = []
    years_seen: dict[int, str] = {}
    for filename in filenames:
        export = parse_export_filename(filename)
        if export.year in years_seen:
            raise DuplicateYearError(export.year, (years_seen[export.year], export.name))
        years_seen[export.year] = export.name
        decoded.append(export)
    return decoded


def scan_csv_files(directory: Path) -> list[Path]:
    """Return the .csv files of a directory (non-recursive), sorted by name.

    Raises:
        ProcessingError: directory missing, not a directory or unreadable
    """
    directory = Path(directory)
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".csv")
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def parse_multiple_files(
    paths: Sequence[str | Path],
    *,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
    validate_names: bool = True,
    max_workers: int = 1,
    cancel_event: threading.Event | None = None,
    error_log: ErrorLogBuffer | None = None,
    max_errors_displayed: int = MAX_ERRORS_DISPLAYED,
    options: ProcessingOptions | None = None,
) -> ProcessingResult:
    """Validate, parse and merge a set of export files.

    Args:
        paths: Export files, one per calendar year
        delimiter: CSV delimiter
        encoding: File encoding
        validate_names: Check the yearly naming convention first
        max_workers: >1 parses files concurrently in a thread pool
        cancel_event: Cooperative cancellation, checked before each file starts
        error_log: Optional buffer for row and file level error records
        max_errors_displayed: Per-file cap on row failure warnings
        options: ProcessingOptions to attach (defaults when None)

    Returns:
        Merged ProcessingResult; ``skipped_files`` names the files that failed

    Raises:
        EmptyInputError: no paths given
        AggregationError: naming convention violated (nothing is parsed)
        ImportCancelled: ``cancel_event`` was set during the run
    """
    if not paths:
        raise EmptyInputError("no files provided")
    if max_workers < 1:
        raise ValueError("max_workers must be a positive integer")

    file_paths = [Path(p) for p in paths]
    if validate_names:
        validate_yearly_structure(file_paths)

    def _parse_one(path: Path) -> tuple[FileStat, ProcessingResult | None]:
        if cancel_event is not None and cancel_event.is_set():
            raise ImportCancelled(f"run cancelled before {path.name}")
        started = time.perf_counter()
        try:
            result = parse_file(
                path,
                delimiter=delimiter,
                encoding=encoding,
                error_log=error_log,
                max_errors_displayed=max_errors_displayed,
                options=options,
            )
        except _FILE_ERRORS as e:
            logger.warning("failed to parse file %s: %s", path.name, e)
            if error_log is not None:
                error_log.append(
                    ErrorRecord.create(
                        file=path.name,
                        row=FILE_LEVEL_ROW,
                        error_type=getattr(e, "error_type", "FILE_READ_ERROR"),
                        message=str(e),
                    )
                )
            stat = FileStat(
                file_name=path.name,
                status=FileStatus.FAILED.value,
                parsed_rows=0,
                failed_rows=0,
                elapsed_seconds=time.perf_counter() - started,
                error=str(e),
            )
            return stat, None
        return result.file_stats[0], result

    outcomes: list[tuple[FileStat, ProcessingResult | None]] = []
    parsed = 0
    failed_rows = 0

    def _record(outcome: tuple[FileStat, ProcessingResult | None], progress: ProgressTracker) -> None:
        nonlocal parsed, failed_rows
        outcomes.append(outcome)
        stat, result = outcome
        if result is not None:
            parsed += stat.parsed_rows
            failed_rows += stat.failed_rows
        progress.finish_file(success=result is not None)
        progress.set_postfix(transactions=parsed, failed_rows=failed_rows)

    with ProgressTracker(len(file_paths)) as progress:
        if max_workers == 1:
            for path in file_paths:
                progress.start_file(path)
                _record(_parse_one(path), progress)
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                futures = [pool.submit(_parse_one, p) for p in file_paths]
                try:
                    # collect in input order: the merge below must not depend on timing
                    for path, future in zip(file_paths, futures, strict=True):
                        progress.start_file(path)
                        _record(future.result(), progress)
                except ImportCancelled:
                    for f in futures:
                        f.cancel()
                    raise

    transactions: list[TransactionRecord] = []
    for _, result in outcomes:
        if result is not None:
            transactions.extend(result.transactions)
    transactions.sort(key=attrgetter("time"))

    skipped = tuple(stat.file_name for stat, result in outcomes if result is None)
    logger.info(
        "parsed %d of %d files: %d transactions, %d failed rows",
        len(file_paths) - len(skipped),
        len(file_paths),
        len(transactions),
        failed_rows,
    )
    return ProcessingResult(
        transactions=transactions,
        summary=calculate_summary(transactions),
        processed_at=datetime.now(UTC),
        options=options if options is not None else ProcessingOptions(),
        failed_rows=failed_rows,
        file_stats=[stat for stat, _ in outcomes],
        skipped_files=skipped,
    )

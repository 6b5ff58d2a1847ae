from __future__ import annotations

from collections.abc import Sequence

from ..models.processing_result import DateRange, ProcessingResult, ProcessingSummary
from ..models.transaction import TransactionRecord

"""Summary computation and SUMMARY line rendering.

calculate_summary() derives the ProcessingSummary of a transaction set; it is
called fresh after every parse and every merge, never updated incrementally.

render_summary_line() formats the SUMMARY line printed by the CLI:
SUMMARY files={ok}/{total} transactions={n} instruments={m} failed_rows={f}
from={YYYY-MM-DD|-} to={YYYY-MM-DD|-}
"""


def calculate_summary(transactions: Sequence[TransactionRecord]) -> ProcessingSummary:
    """Compute count, distinct ticker count and inclusive time range.

    Tickers are compared case-sensitively; absent or empty tickers are not
    counted. The range does not rely on the input being sorted.
    """
    if not transactions:
        return ProcessingSummary()

    tickers = {t.ticker for t in transactions if t.ticker}
    times = [t.time for t in transactions]
    return ProcessingSummary(
        total_transactions=len(transactions),
        unique_instruments=len(tickers),
        date_range=DateRange(start=min(times), end=max(times)),
    )


def render_summary_line(result: ProcessingResult, total_files: int | None = None) -> str:
    """Render the SUMMARY line of a run.

    Args:
        result: Result of a single or multi-file parse
        total_files: Number of files handed to the run (defaults to 1)

    Returns:
        Formatted SUMMARY line

    Examples:
        >>> from datetime import UTC, datetime
        >>> result = ProcessingResult(
        ...     transactions=[], summary=ProcessingSummary(),
        ...     processed_at=datetime(2024, 1, 1, tzinfo=UTC),
        ... )
        >>> render_summary_line(result)
        'SUMMARY files=1/1 transactions=0 instruments=0 failed_rows=0 from=- to=-'
    """
    total = 1 if total_files is None else total_files
    parsed_files = total - len(result.skipped_files)
    summary = result.summary
    if summary.date_range is not None:
        start = summary.date_range.start.date().isoformat()
        end = summary.date_range.end.date().isoformat()
    else:
        start = end = "-"
    return (
        f"SUMMARY files={parsed_files}/{total} "
        f"transactions={summary.total_transactions} "
        f"instruments={summary.unique_instruments} "
        f"failed_rows={result.failed_rows} "
        f"from={start} "
        f"to={end}"
    )

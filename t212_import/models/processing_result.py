from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .transaction import TransactionRecord

"""Processing result models for the T212 export importer.

ProcessingResult is the artifact handed to the tax-calculation and
presentation layers. The parser fills the transaction stream and summary and
leaves TaxCalculation / ProcessingOptions at their defaults.
"""

__all__ = [
    "DateRange",
    "FileStat",
    "ProcessingOptions",
    "ProcessingResult",
    "ProcessingSummary",
    "TaxCalculation",
]


@dataclass(frozen=True)
class DateRange:
    """Inclusive timestamp range of a transaction set."""
    start: datetime
    end: datetime


@dataclass(frozen=True)
class ProcessingSummary:
    """Derived aggregate over a transaction set, recomputed after every merge."""
    total_transactions: int = 0
    unique_instruments: int = 0  # distinct non-empty tickers, case-sensitive
    date_range: DateRange | None = None  # None for an empty set


@dataclass(frozen=True)
class TaxCalculation:
    """Placeholder for results computed by the external tax layer."""
    total_gains: float = 0.0
    total_losses: float = 0.0
    net_gain_loss: float = 0.0
    dividend_income: float = 0.0
    withholding_tax_paid: float = 0.0
    taxable_income: float = 0.0
    estimated_tax: float = 0.0


def _current_year() -> int:
    return datetime.now(UTC).year


@dataclass(frozen=True)
class ProcessingOptions:
    """Processing options passed through to the tax layer."""
    tax_year: int = field(default_factory=_current_year)
    currency: str = "EUR"
    jurisdiction: str = "EU"
    include_withholding_tax: bool = False


@dataclass(frozen=True)
class FileStat:
    """Per-file statistics of a multi-file run."""
    file_name: str
    status: str  # FileStatus value
    parsed_rows: int
    failed_rows: int
    elapsed_seconds: float
    format_version: int | None = None  # detected column count
    error: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    """Complete result of parsing one file or a merged set of files.

    ``transactions`` is sorted ascending by time (stable). ``failed_rows`` and
    ``skipped_files`` make isolated failures visible to the caller.
    """
    transactions: list[TransactionRecord]
    summary: ProcessingSummary
    processed_at: datetime
    tax_calculation: TaxCalculation = field(default_factory=TaxCalculation)
    options: ProcessingOptions = field(default_factory=ProcessingOptions)
    failed_rows: int = 0
    file_stats: list[FileStat] | None = None
    skipped_files: tuple[str, ...] = ()

"""Domain models for the T212 export importer.

This package contains the dataclasses shared by the parsing engine, the
services and the CLI.
"""

from .config_models import CsvConfig, ErrorLogConfig, ImportConfig, ProcessingConfig
from .error_record import ErrorRecord
from .export_file import ExportFileName, FileStatus
from .processing_result import (
    DateRange,
    FileStat,
    ProcessingOptions,
    ProcessingResult,
    ProcessingSummary,
    TaxCalculation,
)
from .transaction import Action, TransactionRecord

__all__ = [
    # Configuration models
    "CsvConfig",
    "ErrorLogConfig",
    "ImportConfig",
    "ProcessingConfig",
    # Transaction stream
    "Action",
    "TransactionRecord",
    # Results
    "DateRange",
    "ErrorRecord",
    "ExportFileName",
    "FileStat",
    "FileStatus",
    "ProcessingOptions",
    "ProcessingResult",
    "ProcessingSummary",
    "TaxCalculation",
]

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .processing_result import ProcessingOptions

"""Config dataclasses for the T212 export importer.

These are the typed form of config/t212_import.yml produced by
t212_import.config.loader.load_config. Every section has defaults so that a
run without a config file behaves exactly like one with an empty file.
"""


@dataclass(frozen=True)
class CsvConfig:
    """How export files are read and validated."""
    delimiter: str = ","
    encoding: str = "utf-8-sig"
    max_errors_displayed: int = 10  # verbose per-row warnings per file
    validate_yearly_structure: bool = True


@dataclass(frozen=True)
class ProcessingConfig:
    """Multi-file run settings and defaults handed to the tax layer."""
    max_workers: int = 1  # >1 parses files concurrently
    tax_year: int = 0  # 0 = current year
    currency: str = "EUR"
    jurisdiction: str = "EU"
    include_withholding_tax: bool = False

    def to_options(self) -> ProcessingOptions:
        """Build ProcessingOptions, resolving tax_year=0 to the current year."""
        if self.tax_year:
            return ProcessingOptions(
                tax_year=self.tax_year,
                currency=self.currency,
                jurisdiction=self.jurisdiction,
                include_withholding_tax=self.include_withholding_tax,
            )
        return ProcessingOptions(
            currency=self.currency,
            jurisdiction=self.jurisdiction,
            include_withholding_tax=self.include_withholding_tax,
        )


@dataclass(frozen=True)
class ErrorLogConfig:
    """JSON Lines error log settings."""
    enabled: bool = True
    directory: Path = Path("./logs")


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object."""
    csv: CsvConfig = field(default_factory=CsvConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    error_log: ErrorLogConfig = field(default_factory=ErrorLogConfig)

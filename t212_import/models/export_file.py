from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path

"""Export file models for the T212 export importer.

ExportFileName holds what the yearly naming convention encodes in a file name
(``from_<start>_to_<end>_<tag>.csv``). FileStatus records whether a file of a
multi-file run was parsed or skipped.
"""


class FileStatus(Enum):
    """Outcome of one export file in a multi-file run (FileStat.status)."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ExportFileName:
    """Decoded yearly naming information of one export file."""
    path: Path
    start: date
    end: date
    tag: str  # opaque suffix chosen by the brokerage

    @property
    def year(self) -> int:
        """Calendar year covered by the file (start and end share it)."""
        return self.start.year

    @property
    def name(self) -> str:
        return self.path.name

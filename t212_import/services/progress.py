from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

One bar per multi-file run, one tick per export file. The postfix carries the
running transaction / failed-row counts and, once a file has been skipped,
the number of skipped files. Outside a TTY no bar is created; only the
skipped-file counter moves.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """File-level progress bar for the aggregator."""

    def __init__(self, total_files: int, *, description: str = "Parsing exports") -> None:
        self.description = description
        self.skipped_files = 0
        self.pbar: TqdmType[Any] | None = None
        if is_tty_enabled():
            self.pbar = tqdm(total=total_files, desc=description, unit="file", ncols=80, ascii=True)

    def start_file(self, file_path: Path) -> None:
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({Path(file_path).name})")

    def finish_file(self, success: bool = True) -> None:
        """Tick the bar; a failed file is counted as skipped."""
        if not success:
            self.skipped_files += 1
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **stats: Any) -> None:
        if self.pbar is None:
            return
        if self.skipped_files:
            stats["skipped"] = self.skipped_files
        self.pbar.set_postfix(**stats)

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc: Any) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

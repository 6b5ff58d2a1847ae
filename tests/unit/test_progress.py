from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from t212_import.services.progress import ProgressTracker


def test_no_bar_when_not_tty():
    with patch("t212_import.services.progress.is_tty_enabled", return_value=False), patch(
        "t212_import.services.progress.tqdm"
    ) as tqdm_cls:
        with ProgressTracker(3) as tracker:
            tracker.start_file(Path("a.csv"))
            tracker.finish_file(success=False)
            tracker.set_postfix(transactions=1)
    tqdm_cls.assert_not_called()
    assert tracker.pbar is None
    # skipped files are still counted without a bar
    assert tracker.skipped_files == 1


def test_tty_drives_tqdm():
    bar = MagicMock()
    with patch("t212_import.services.progress.is_tty_enabled", return_value=True), patch(
        "t212_import.services.progress.tqdm", return_value=bar
    ) as tqdm_cls:
        with ProgressTracker(2, description="Parsing") as tracker:
            tracker.start_file(Path("/x/from_2023-01-01_to_2023-12-31_a.csv"))
            tracker.finish_file(success=True)
            tracker.set_postfix(transactions=5, failed_rows=0)

    assert tqdm_cls.call_args.kwargs["total"] == 2
    assert tqdm_cls.call_args.kwargs["unit"] == "file"
    bar.set_description.assert_any_call("Parsing (from_2023-01-01_to_2023-12-31_a.csv)")
    bar.update.assert_called_once_with(1)
    bar.set_postfix.assert_called_once_with(transactions=5, failed_rows=0)
    bar.close.assert_called_once()
    assert tracker.pbar is None


def test_postfix_reports_skipped_files():
    bar = MagicMock()
    with patch("t212_import.services.progress.is_tty_enabled", return_value=True), patch(
        "t212_import.services.progress.tqdm", return_value=bar
    ):
        with ProgressTracker(2) as tracker:
            tracker.start_file(Path("a.csv"))
            tracker.finish_file(success=False)
            tracker.set_postfix(transactions=0, failed_rows=0)
    bar.set_postfix.assert_called_once_with(transactions=0, failed_rows=0, skipped=1)

from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

from t212_import.logging.error_log import ErrorLogBuffer
from t212_import.parsing.errors import (
    DateRangeError,
    DuplicateYearError,
    EmptyInputError,
    FilenameConventionError,
    ImportCancelled,
)
from t212_import.services.aggregator import (
    ProcessingError,
    parse_export_filename,
    parse_multiple_files,
    scan_csv_files,
    validate_yearly_structure,
)


def _export(tmp_path, write_export, row_for, header, name, rows):
    data = [
        row_for(header, {"Action": a, "Time": t, "ISIN": "X", "Ticker": tk, "Name": "N"})
        for a, t, tk in rows
    ]
    return write_export(tmp_path / name, header, data)


def test_parse_export_filename():
    export = parse_export_filename(Path("/data/from_2023-01-01_to_2023-12-31_abc123.csv"))
    assert export.start == date(2023, 1, 1)
    assert export.end == date(2023, 12, 31)
    assert export.tag == "abc123"
    assert export.year == 2023
    assert export.name == "from_2023-01-01_to_2023-12-31_abc123.csv"


@pytest.mark.parametrize(
    "name",
    [
        "export.csv",
        "from_2023-01-01_to_2023-12-31_.csv",
        "from_2023-01-01_to_2023-12-31_abc.txt",
        "from_2023-1-01_to_2023-12-31_abc.csv",
        "xfrom_2023-01-01_to_2023-12-31_abc.csv",
        "from_2023-01-01_to_2023-12-31_a-b.csv",
    ],
)
def test_bad_filenames(name):
    with pytest.raises(FilenameConventionError):
        parse_export_filename(name)


def test_invalid_calendar_date():
    with pytest.raises(FilenameConventionError) as exc:
        parse_export_filename("from_2023-02-30_to_2023-12-31_abc.csv")
    assert "invalid start date" in str(exc.value)


def test_range_spanning_years():
    with pytest.raises(DateRangeError) as exc:
        parse_export_filename("from_2022-06-01_to_2023-05-31_abc.csv")
    assert "multiple years" in str(exc.value)


def test_start_after_end():
    with pytest.raises(DateRangeError):
        parse_export_filename("from_2023-12-31_to_2023-01-01_abc.csv")


def test_duplicate_year_detected_before_reading():
    names = [
        "from_2022-01-01_to_2022-12-31_abc.csv",
        "from_2023-01-01_to_2023-12-31_def.csv",
        "from_2022-06-01_to_2022-12-31_ghi.csv",
    ]
    with pytest.raises(DuplicateYearError) as exc:
        validate_yearly_structure(names)
    assert exc.value.year == 2022
    assert exc.value.filenames == (names[0], names[2])

    # none of the files exist: the error must come before any read
    with patch("t212_import.services.aggregator.parse_file") as parse_file:
        with pytest.raises(DuplicateYearError):
            parse_multiple_files(names)
        parse_file.assert_not_called()


def test_validate_yearly_structure_ok():
    out = validate_yearly_structure(
        ["from_2023-01-01_to_2023-12-31_b.csv", "from_2021-03-01_to_2021-12-31_a.csv"]
    )
    assert [e.year for e in out] == [2023, 2021]


def test_merge_sorted_and_summarized(tmp_path, write_export, row_for, header_22, header_27):
    f2023 = _export(tmp_path, write_export, row_for, header_22, "from_2023-01-01_to_2023-12-31_a.csv", [
        ("Market buy", "2023-06-01 00:00:00", "MSFT"),
        ("Market buy", "2023-01-01 00:00:00", "AAPL"),
    ])
    f2024 = _export(tmp_path, write_export, row_for, header_27, "from_2024-01-01_to_2024-12-31_b.csv", [
        ("Market sell", "2024-02-01 00:00:00", "AAPL"),
    ])
    result = parse_multiple_files([f2024, f2023])

    assert [t.ticker for t in result.transactions] == ["AAPL", "MSFT", "AAPL"]
    assert result.summary.total_transactions == 3
    assert result.summary.unique_instruments == 2
    assert result.summary.date_range.start.year == 2023
    assert result.summary.date_range.end.year == 2024
    assert result.skipped_files == ()
    assert [s.file_name for s in result.file_stats] == [f2024.name, f2023.name]
    assert [s.format_version for s in result.file_stats] == [27, 22]


def test_bad_file_is_skipped(tmp_path, write_export, row_for, header_22, caplog):
    good = _export(tmp_path, write_export, row_for, header_22, "from_2023-01-01_to_2023-12-31_a.csv", [
        ("Deposit", "2023-01-01 00:00:00", ""),
        ("Deposit", "bad time", ""),
    ])
    bad = write_export(tmp_path / "from_2022-01-01_to_2022-12-31_b.csv", ["Action", "Time"], [["x", "y"]])
    buf = ErrorLogBuffer(tmp_path / "logs")
    caplog.set_level(logging.WARNING, logger="t212_import")

    result = parse_multiple_files([bad, good], error_log=buf)

    assert result.skipped_files == (bad.name,)
    assert len(result.transactions) == 1
    assert result.failed_rows == 1
    stats = {s.file_name: s for s in result.file_stats}
    assert stats[bad.name].status == "failed"
    assert "missing required field" in stats[bad.name].error
    assert stats[good.name].status == "success"
    assert any(f"failed to parse file {bad.name}" in r.getMessage() for r in caplog.records)

    by_row = {(r.file, r.row): r for r in buf.records}
    assert by_row[(bad.name, -1)].error_type == "SCHEMA_ERROR"
    assert by_row[(good.name, 3)].error_type == "TIME_PARSE_ERROR"


def test_missing_file_is_skipped(tmp_path, write_export, row_for, header_22):
    good = _export(tmp_path, write_export, row_for, header_22, "from_2023-01-01_to_2023-12-31_a.csv", [
        ("Deposit", "2023-01-01 00:00:00", ""),
    ])
    missing = tmp_path / "from_2022-01-01_to_2022-12-31_gone.csv"
    result = parse_multiple_files([good, missing])
    assert result.skipped_files == (missing.name,)
    assert len(result.transactions) == 1


def test_all_files_fail(tmp_path):
    missing = tmp_path / "from_2022-01-01_to_2022-12-31_gone.csv"
    result = parse_multiple_files([missing])
    assert result.transactions == []
    assert result.summary.date_range is None
    assert result.skipped_files == (missing.name,)


def test_validation_can_be_disabled(tmp_path, write_export, row_for, header_22):
    path = _export(tmp_path, write_export, row_for, header_22, "anything.csv", [
        ("Deposit", "2020-01-01 00:00:00", ""),
    ])
    result = parse_multiple_files([path], validate_names=False)
    assert len(result.transactions) == 1
    with pytest.raises(FilenameConventionError):
        parse_multiple_files([path])


def test_no_files():
    with pytest.raises(EmptyInputError):
        parse_multiple_files([])


def test_invalid_max_workers(tmp_path):
    with pytest.raises(ValueError):
        parse_multiple_files([tmp_path / "x.csv"], validate_names=False, max_workers=0)


def test_concurrent_matches_sequential(tmp_path, write_export, row_for, header_22, header_23, header_27):
    paths = [
        _export(tmp_path, write_export, row_for, header_23, "from_2021-01-01_to_2021-12-31_a.csv", [
            ("Market buy", "2021-05-01 00:00:00", "A"), ("Market buy", "2021-05-01 00:00:00", "B"),
        ]),
        _export(tmp_path, write_export, row_for, header_22, "from_2022-01-01_to_2022-12-31_b.csv", [
            ("Market buy", "2022-05-01 00:00:00", "C"),
        ]),
        _export(tmp_path, write_export, row_for, header_27, "from_2024-01-01_to_2024-12-31_c.csv", [
            ("Market buy", "2024-05-01 00:00:00", "D"), ("Dividend", "bad", "D"),
        ]),
    ]
    seq = parse_multiple_files(paths)
    par = parse_multiple_files(paths, max_workers=3)
    assert par.transactions == seq.transactions
    assert par.summary == seq.summary
    assert par.failed_rows == seq.failed_rows == 1
    assert [s.file_name for s in par.file_stats] == [p.name for p in paths]


def test_cancel_before_start(tmp_path, write_export, row_for, header_22):
    path = _export(tmp_path, write_export, row_for, header_22, "from_2022-01-01_to_2022-12-31_b.csv", [
        ("Deposit", "2022-05-01 00:00:00", ""),
    ])
    event = threading.Event()
    event.set()
    with pytest.raises(ImportCancelled):
        parse_multiple_files([path], cancel_event=event)
    with pytest.raises(ImportCancelled):
        parse_multiple_files([path], cancel_event=event, max_workers=2)


def test_scan_csv_files(tmp_path):
    (tmp_path / "b.csv").write_text("x", encoding="utf-8")
    (tmp_path / "a.csv").write_text("x", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
    (tmp_path / "sub.csv").mkdir()
    assert [p.name for p in scan_csv_files(tmp_path)] == ["a.csv", "b.csv"]


def test_scan_csv_files_errors(tmp_path):
    with pytest.raises(ProcessingError):
        scan_csv_files(tmp_path / "missing")
    f = tmp_path / "f.csv"
    f.write_text("x", encoding="utf-8")
    with pytest.raises(ProcessingError):
        scan_csv_files(f)

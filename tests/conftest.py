# Shared pytest fixtures
from __future__ import annotations
import csv
import tempfile
from pathlib import Path
from typing import Callable

import pytest

from t212_import.logging.init import reset_logging

HEADER_27 = [
    "Action", "Time", "ISIN", "Ticker", "Name", "Notes", "ID",
    "No. of shares", "Price / share", "Currency (Price / share)", "Exchange rate",
    "Result", "Currency (Result)", "Total", "Currency (Total)",
    "Withholding tax", "Currency (Withholding tax)",
    "Charge amount", "Currency (Charge amount)",
    "Deposit fee", "Currency (Deposit fee)",
    "Currency conversion from amount", "Currency (Currency conversion from amount)",
    "Currency conversion to amount", "Currency (Currency conversion to amount)",
    "Currency conversion fee", "Currency (Currency conversion fee)",
]

# 2021 layout
HEADER_23 = [
    "Action", "Time", "ISIN", "Ticker", "Name",
    "No. of shares", "Price / share", "Currency (Price / share)", "Exchange rate",
    "Result", "Currency (Result)", "Total", "Currency (Total)",
    "Withholding tax", "Currency (Withholding tax)",
    "Charge amount", "Currency (Charge amount)",
    "Stamp duty reserve tax", "Currency (Stamp duty reserve tax)",
    "Notes", "ID",
    "Currency conversion fee", "Currency (Currency conversion fee)",
]

# 2022-2023 layout: no Result columns
HEADER_22 = [
    "Action", "Time", "ISIN", "Ticker", "Name",
    "No. of shares", "Price / share", "Currency (Price / share)", "Exchange rate",
    "Total", "Currency (Total)",
    "Withholding tax", "Currency (Withholding tax)",
    "Charge amount", "Currency (Charge amount)",
    "Stamp duty reserve tax", "Currency (Stamp duty reserve tax)",
    "Deposit fee",
    "Notes", "ID",
    "Currency conversion fee", "Currency (Currency conversion fee)",
]


@pytest.fixture(autouse=True)
def _clean_logging():
    # CLI tests configure a non-propagating package logger; caplog needs propagation
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        # setenv first so values loaded from a .env during the test are undone too
        monkeypatch.setenv("T212_IMPORT_CONFIG", "")
        monkeypatch.delenv("T212_IMPORT_CONFIG")
        yield p


@pytest.fixture()
def header_27() -> list[str]:
    return list(HEADER_27)


@pytest.fixture()
def header_23() -> list[str]:
    return list(HEADER_23)


@pytest.fixture()
def header_22() -> list[str]:
    return list(HEADER_22)


@pytest.fixture()
def row_for() -> Callable[..., list[str]]:
    """Return a builder: row_for(header, {"Action": "Market buy", ...})."""
    def _build(header: list[str], cells: dict[str, str]) -> list[str]:
        unknown = set(cells) - set(header)
        assert not unknown, f"columns not in header: {unknown}"
        return [cells.get(col, "") for col in header]
    return _build


@pytest.fixture()
def buy_cells() -> dict[str, str]:
    return {
        "Action": "Market buy",
        "Time": "2024-01-15 10:30:00",
        "ISIN": "US0378331005",
        "Ticker": "AAPL",
        "Name": "Apple Inc.",
        "ID": "EOF123",
        "No. of shares": "2.5",
        "Price / share": "185.20",
        "Currency (Price / share)": "USD",
        "Exchange rate": "1.0950",
        "Total": "423.01",
        "Currency (Total)": "EUR",
    }


@pytest.fixture()
def write_export() -> Callable[..., Path]:
    """Return a writer: write_export(path, header, rows) -> path (UTF-8, comma)."""
    def _write(path: Path, header: list[str], rows: list[list[str]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(header)
            w.writerows(rows)
        return path
    return _write

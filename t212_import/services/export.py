from __future__ import annotations

from collections.abc import Sequence
from dataclasses import fields
from pathlib import Path

import pandas as pd

from ..models.transaction import TransactionRecord

"""Tabular export of the normalized transaction stream.

The DataFrame has one column per TransactionRecord attribute, in attribute
order. Absent values stay missing (NaN/None) so they are never confused with
zero amounts downstream.
"""

__all__ = [
    "TRANSACTION_COLUMNS",
    "transactions_to_frame",
    "write_transactions",
]

TRANSACTION_COLUMNS: list[str] = [f.name for f in fields(TransactionRecord)]


def transactions_to_frame(transactions: Sequence[TransactionRecord]) -> pd.DataFrame:
    """Build a DataFrame from transactions, preserving their order."""
    records = [
        {name: getattr(t, name) for name in TRANSACTION_COLUMNS} for t in transactions
    ]
    df = pd.DataFrame.from_records(records, columns=TRANSACTION_COLUMNS)
    df["time"] = pd.to_datetime(df["time"], utc=True)
    return df


def write_transactions(transactions: Sequence[TransactionRecord], path: Path) -> Path:
    """Write transactions to ``.csv`` or ``.json`` (records orient).

    Raises:
        ValueError: unsupported file extension
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in {".csv", ".json"}:
        raise ValueError(f"unsupported export format: {path.suffix or '<none>'} (use .csv or .json)")

    df = transactions_to_frame(transactions)
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        df.to_csv(path, index=False, date_format="%Y-%m-%dT%H:%M:%S%z")
    else:
        df.to_json(path, orient="records", date_format="iso", indent=2)
    return path

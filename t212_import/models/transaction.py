from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

"""TransactionRecord model for the T212 export importer.

A TransactionRecord is the canonical output unit of the decoding engine: one
accepted CSV data row turned into typed values. Records are immutable once
created; corrections require re-parsing the source file.
"""

__all__ = [
    "Action",
    "TransactionRecord",
]


class Action:
    """Well-known action tags found in T212 exports.

    The set is intentionally open: ``TransactionRecord.action`` stores whatever
    tag the export carries, these constants only name the common ones.
    """
    MARKET_BUY = "Market buy"
    MARKET_SELL = "Market sell"
    LIMIT_BUY = "Limit buy"
    LIMIT_SELL = "Limit sell"
    STOP_BUY = "Stop buy"
    STOP_SELL = "Stop sell"
    DIVIDEND = "Dividend"
    INTEREST = "Interest"
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"


@dataclass(frozen=True)
class TransactionRecord:
    """One typed transaction decoded from an export row.

    ``action`` and ``time`` are always present. Every other attribute is
    ``None`` when the export did not supply a value; a numeric ``None`` is
    never the same thing as a parsed ``0.0``.
    """
    action: str  # open tag, see Action
    time: datetime  # tz-aware UTC

    # identity
    isin: str | None = None
    ticker: str | None = None
    name: str | None = None
    notes: str | None = None
    id: str | None = None

    # amounts
    shares: float | None = None
    price_per_share: float | None = None
    exchange_rate: float | None = None
    result: float | None = None
    total: float | None = None
    withholding_tax: float | None = None
    charge_amount: float | None = None
    deposit_fee: float | None = None
    currency_conversion_from_amount: float | None = None
    currency_conversion_to_amount: float | None = None
    currency_conversion_fee: float | None = None

    # currency codes, one per amount that can be denominated differently
    currency_price_per_share: str | None = None
    currency_result: str | None = None
    currency_total: str | None = None
    currency_withholding_tax: str | None = None
    currency_charge_amount: str | None = None
    currency_deposit_fee: str | None = None
    currency_currency_conversion_from_amount: str | None = None
    currency_currency_conversion_to_amount: str | None = None
    currency_currency_conversion_fee: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON friendly mapping (time as ISO8601)."""
        data = asdict(self)
        data["time"] = self.time.isoformat()
        return data

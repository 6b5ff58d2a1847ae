from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import FieldParseError, RequiredFieldMissingError

"""Field extraction: header-keyed lookup and typed value conversion.

The column -> attribute mapping is data, not code: the STRING_FIELDS,
NUMERIC_FIELDS and CURRENCY_FIELDS tables drive extraction. Adding a column
the brokerage introduces means adding one FieldSpec.

Value policy
------------
- optional string: "" -> None (absent), never an empty string
- optional number: "", "0" and "Not available" -> None; other text must parse
  as a finite float, else FieldParseError
- conditional fields are only read when the column exists in the header, so
  older layouts lacking them never fail because of it
"""

__all__ = [
    "ABSENT_NUMERIC_TOKENS",
    "ACTION_COLUMN",
    "CURRENCY_FIELDS",
    "FieldMap",
    "FieldSpec",
    "NOT_AVAILABLE",
    "NUMBER_PATTERN",
    "NUMERIC_FIELDS",
    "STRING_FIELDS",
    "TIME_COLUMN",
    "build_field_map",
    "extract_optional_fields",
    "extract_optional_number",
    "extract_optional_string",
    "extract_required",
]

FieldMap = dict[str, str]

ACTION_COLUMN = "Action"
TIME_COLUMN = "Time"

NOT_AVAILABLE = "Not available"
# "0" is treated as absent: the export uses blank and zero interchangeably
# for "not applicable".
ABSENT_NUMERIC_TOKENS: frozenset[str] = frozenset({"", "0", NOT_AVAILABLE})

# plain ASCII decimal with optional exponent; float() alone would also take
# "1_000", non-ASCII digits, "nan" and "inf"
NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


@dataclass(frozen=True)
class FieldSpec:
    """Maps one export column to one TransactionRecord attribute."""
    column: str
    attribute: str
    conditional: bool = False  # only read when the column exists in the header


STRING_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("ISIN", "isin"),
    FieldSpec("Ticker", "ticker"),
    FieldSpec("Name", "name"),
    FieldSpec("Notes", "notes"),
    FieldSpec("ID", "id"),
)

NUMERIC_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("No. of shares", "shares"),
    FieldSpec("Price / share", "price_per_share"),
    FieldSpec("Exchange rate", "exchange_rate"),
    FieldSpec("Total", "total"),
    FieldSpec("Withholding tax", "withholding_tax"),
    FieldSpec("Charge amount", "charge_amount"),
    FieldSpec("Deposit fee", "deposit_fee"),
    FieldSpec("Currency conversion fee", "currency_conversion_fee"),
    # missing from the 22 column layout / added in 2024
    FieldSpec("Result", "result", conditional=True),
    FieldSpec("Currency conversion from amount", "currency_conversion_from_amount", conditional=True),
    FieldSpec("Currency conversion to amount", "currency_conversion_to_amount", conditional=True),
)

CURRENCY_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("Currency (Price / share)", "currency_price_per_share"),
    FieldSpec("Currency (Total)", "currency_total"),
    FieldSpec("Currency (Withholding tax)", "currency_withholding_tax"),
    FieldSpec("Currency (Charge amount)", "currency_charge_amount"),
    FieldSpec("Currency (Deposit fee)", "currency_deposit_fee"),
    FieldSpec("Currency (Result)", "currency_result", conditional=True),
    FieldSpec(
        "Currency (Currency conversion from amount)",
        "currency_currency_conversion_from_amount",
        conditional=True,
    ),
    FieldSpec(
        "Currency (Currency conversion to amount)",
        "currency_currency_conversion_to_amount",
        conditional=True,
    ),
    FieldSpec(
        "Currency (Currency conversion fee)",
        "currency_currency_conversion_fee",
        conditional=True,
    ),
)


def build_field_map(header: Sequence[str], row: Sequence[str]) -> FieldMap:
    """Map trimmed column names to trimmed cell values for one row.

    ``row`` must already be normalized to the header width. When a column
    name repeats, the last occurrence wins.
    """
    return {str(col).strip(): str(val).strip() for col, val in zip(header, row, strict=True)}


def extract_required(field_map: Mapping[str, str], column: str) -> str:
    """Return a mandatory value; empty or missing is an error."""
    value = field_map.get(column, "")
    if value == "":
        raise RequiredFieldMissingError(column.lower())
    return value


def extract_optional_string(field_map: Mapping[str, str], column: str) -> str | None:
    value = field_map.get(column, "")
    return value if value != "" else None


def extract_optional_number(field_map: Mapping[str, str], column: str) -> float | None:
    """Parse an optional amount.

    Raises:
        FieldParseError: value is neither an absent token nor a finite number
    """
    raw = field_map.get(column, "")
    if raw in ABSENT_NUMERIC_TOKENS:
        return None
    if NUMBER_PATTERN.fullmatch(raw) is None:
        raise FieldParseError(column, raw)
    value = float(raw)
    # "1e999" overflows to inf
    if not math.isfinite(value):
        raise FieldParseError(column, raw)
    return value


def _applicable(specs: Iterable[FieldSpec], field_map: Mapping[str, str]) -> Iterable[FieldSpec]:
    for spec in specs:
        if spec.conditional and spec.column not in field_map:
            continue
        yield spec


def extract_optional_fields(field_map: Mapping[str, str]) -> dict[str, Any]:
    """Extract every optional attribute of a TransactionRecord.

    Returns only the attributes that are present; absent ones are left to the
    record's ``None`` defaults. The first unparseable amount aborts extraction.
    """
    values: dict[str, Any] = {}
    for spec in _applicable(STRING_FIELDS, field_map):
        text = extract_optional_string(field_map, spec.column)
        if text is not None:
            values[spec.attribute] = text
    for spec in _applicable(NUMERIC_FIELDS, field_map):
        number = extract_optional_number(field_map, spec.column)
        if number is not None:
            values[spec.attribute] = number
    for spec in _applicable(CURRENCY_FIELDS, field_map):
        code = extract_optional_string(field_map, spec.column)
        if code is not None:
            values[spec.attribute] = code
    return values

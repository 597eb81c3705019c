from __future__ import annotations

import re
from typing import Any, Iterable, Sequence

import numpy as np
import pandas as pd


POSITION_COLUMNS = [
    "symbol",
    "quantity",
    "description",
    "price",
    "yearly_high",
    "yearly_low",
    "dividend_yield",
]
POSITION_DTYPES = {
    "symbol": "object",
    "quantity": "int64",
    "description": "object",
    "price": "float64",
    "yearly_high": "float64",
    "yearly_low": "float64",
    "dividend_yield": "float64",
}
QUANTITY_MULTIPLIERS = {
    "M": 10,
    "MM": 100,
}
# Share counts are stored as int64; anything wider is treated as malformed.
QUANTITY_MIN = int(np.iinfo(np.int64).min)
QUANTITY_MAX = int(np.iinfo(np.int64).max)

# Column order of the TD Ameritrade "Fundamental" view export.
# Ordinals 4 (change $), 7 (P/E) and 9+ (ex-div date, ...) are not read.
FIELD_ORDINALS = {
    0: "symbol",
    1: "quantity",
    2: "description",
    3: "price",
    5: "yearly_high",
    6: "yearly_low",
    8: "dividend_yield",
}

_INTEGER_PREFIX = re.compile(r"\s*([+-]?\d+)\s*(\S*)")
_DECIMAL_PREFIX = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_decimal(text: str) -> float:
    match = _DECIMAL_PREFIX.match(text)
    if match is None:
        return 0.0
    return float(match.group(0))


def parse_quantity(text: str) -> int:
    match = _INTEGER_PREFIX.match(text)
    if match is None:
        return 0
    quantity = int(match.group(1))
    multiplier = QUANTITY_MULTIPLIERS.get(match.group(2).upper(), 1)
    quantity *= multiplier
    if not QUANTITY_MIN <= quantity <= QUANTITY_MAX:
        return 0
    return quantity


def parse_yield(text: str) -> float:
    """Percent text ("3.5%" or "3.5") to a fraction (0.035)."""
    return parse_decimal(text.split("%", 1)[0]) / 100.0


FIELD_PARSERS = {
    "quantity": parse_quantity,
    "price": parse_decimal,
    "yearly_high": parse_decimal,
    "yearly_low": parse_decimal,
    "dividend_yield": parse_yield,
}


def empty_position() -> dict[str, Any]:
    return {
        "symbol": "",
        "quantity": 0,
        "description": "",
        "price": 0.0,
        "yearly_high": 0.0,
        "yearly_low": 0.0,
        "dividend_yield": 0.0,
    }


def apply_field(record: dict[str, Any], ordinal: int, field: str) -> dict[str, Any]:
    column = FIELD_ORDINALS.get(ordinal)
    if column is None:
        return record
    parse = FIELD_PARSERS.get(column)
    return {**record, column: parse(field) if parse else field}


def build_position(fields: Sequence[str]) -> dict[str, Any]:
    record = empty_position()
    for ordinal, field in enumerate(fields):
        record = apply_field(record, ordinal, field)
    return record


def empty_positions_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=POSITION_COLUMNS).astype(POSITION_DTYPES)


def build_positions(rows: Iterable[Sequence[str]]) -> pd.DataFrame:
    """
    Build the positions table from delimited rows.

    The first non-blank row is a header and is discarded. Columns are mapped
    by position only, see FIELD_ORDINALS.
    """
    records: list[dict[str, Any]] = []
    header_seen = False
    for fields in rows:
        if not fields:
            continue
        if not header_seen:
            header_seen = True
            continue
        records.append(build_position(fields))

    if not records:
        return empty_positions_frame()
    return pd.DataFrame(records, columns=POSITION_COLUMNS).astype(POSITION_DTYPES)

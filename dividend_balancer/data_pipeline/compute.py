from __future__ import annotations

import pandas as pd


OUTPUT_COLUMNS = [
    "symbol",
    "quantity",
    "description",
    "price",
    "yearly_high",
    "yearly_low",
    "dividend_yield",
    "market_value",
]
SORT_KEYS = {
    "yield": "dividend_yield",
    "value": "market_value",
}


def market_value(quantity: pd.Series | int, price: pd.Series | float) -> pd.Series | float:
    return quantity * price


def compute_position_metrics(positions_df: pd.DataFrame) -> pd.DataFrame:
    result = positions_df.copy()
    result["market_value"] = market_value(result["quantity"], result["price"]).astype(float)
    return result[OUTPUT_COLUMNS]


def sort_positions(positions_df: pd.DataFrame, by: str = "yield") -> pd.DataFrame:
    """Descending by the chosen key; ties keep their input order."""
    if by not in SORT_KEYS:
        raise ValueError(f"Unsupported sort key: {by}")

    result = positions_df
    if "market_value" not in result.columns:
        result = compute_position_metrics(result)
    return result.sort_values(SORT_KEYS[by], ascending=False, kind="stable").reset_index(drop=True)

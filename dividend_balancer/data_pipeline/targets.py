from __future__ import annotations

import logging
import math
from typing import Any, Mapping

import numpy as np
import pandas as pd

from dividend_balancer.data_pipeline.aggregate import YIELD_EPSILON, portfolio_calculate
from dividend_balancer.data_pipeline.compute import market_value
from dividend_balancer.data_pipeline.parser import QUANTITY_MAX, QUANTITY_MIN


logger = logging.getLogger(__name__)

TARGET_COLUMNS = [
    "symbol",
    "quantity",
    "target_value",
    "target_shares",
    "change_quantity",
    "investment_amount",
    "status",
]
TARGET_DTYPES = {
    "symbol": "object",
    "quantity": "int64",
    "target_value": "float64",
    "target_shares": "Int64",
    "change_quantity": "Int64",
    "investment_amount": "float64",
    "status": "object",
}

STATUS_OK = "ok"
STATUS_NO_CHANGE = "no_change"
STATUS_NEGATIVE_POSITION = "negative_position"
STATUS_YIELD_EQUALS_TARGET = "yield_equals_target"
STATUS_NO_OTHER_HOLDINGS = "no_other_holdings"
STATUS_ZERO_PRICE = "zero_price"
STATUS_SHARES_OUT_OF_RANGE = "shares_out_of_range"

# Shares are truncated after rounding away binary noise, e.g. 999.9999999999998 / 10.
SHARE_ROUNDING_DIGITS = 6


def target_position_value(
    target_yield: float,
    other_value: float,
    other_yield: float,
    position_yield: float,
) -> float:
    """
    Market value a position needs so the whole portfolio earns ``target_yield``.

    Solves ``target_yield * (other_value + v) = other_yield * other_value + position_yield * v``
    for ``v``.
    """
    return (target_yield * other_value - other_value * other_yield) / (position_yield - target_yield)


def _infeasible(position: Mapping[str, Any], status: str) -> dict[str, Any]:
    return {
        "symbol": position["symbol"],
        "quantity": int(position["quantity"]),
        "target_value": float("nan"),
        "target_shares": pd.NA,
        "change_quantity": pd.NA,
        "investment_amount": float("nan"),
        "status": status,
    }


def solve_target_allocation(
    position: Mapping[str, Any],
    positions_df: pd.DataFrame,
    target_yield: float,
) -> dict[str, Any]:
    other = portfolio_calculate(positions_df, exclude=position["symbol"])
    if other.value == 0:
        return _infeasible(position, STATUS_NO_OTHER_HOLDINGS)

    position_yield = float(position["dividend_yield"])
    if np.isclose(position_yield, target_yield, rtol=0.0, atol=YIELD_EPSILON):
        return _infeasible(position, STATUS_YIELD_EQUALS_TARGET)

    price = float(position["price"])
    target_value = target_position_value(target_yield, other.value, other.dividend_yield, position_yield)
    if price == 0 or not math.isfinite(target_value):
        return _infeasible(position, STATUS_ZERO_PRICE)

    quantity = int(position["quantity"])
    share_ratio = round(target_value / price, SHARE_ROUNDING_DIGITS)
    if not math.isfinite(share_ratio):
        return _infeasible(position, STATUS_SHARES_OUT_OF_RANGE)
    target_shares = math.trunc(share_ratio)
    change_quantity = target_shares - quantity
    if not (QUANTITY_MIN <= target_shares <= QUANTITY_MAX and QUANTITY_MIN <= change_quantity <= QUANTITY_MAX):
        return _infeasible(position, STATUS_SHARES_OUT_OF_RANGE)
    investment_amount = target_value - market_value(quantity, price)

    if change_quantity == 0:
        status = STATUS_NO_CHANGE
    elif quantity + change_quantity < 0:
        status = STATUS_NEGATIVE_POSITION
    else:
        status = STATUS_OK

    return {
        "symbol": position["symbol"],
        "quantity": quantity,
        "target_value": target_value,
        "target_shares": target_shares,
        "change_quantity": change_quantity,
        "investment_amount": investment_amount,
        "status": status,
    }


def build_target_allocations(positions_df: pd.DataFrame, target_yield: float) -> pd.DataFrame:
    records: list[dict[str, Any]] = []
    for _, position in positions_df.iterrows():
        allocation = solve_target_allocation(position, positions_df, target_yield)
        if allocation["status"] != STATUS_OK:
            logger.debug("Skipping %s: %s", allocation["symbol"], allocation["status"])
        records.append(allocation)

    if not records:
        return pd.DataFrame(columns=TARGET_COLUMNS).astype(TARGET_DTYPES)
    return pd.DataFrame(records, columns=TARGET_COLUMNS).astype(TARGET_DTYPES)


def feasible_allocations(allocations_df: pd.DataFrame) -> pd.DataFrame:
    return allocations_df[allocations_df["status"] == STATUS_OK].reset_index(drop=True)

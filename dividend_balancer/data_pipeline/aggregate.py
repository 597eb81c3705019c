from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
import pandas as pd

from dividend_balancer.data_pipeline.compute import market_value


logger = logging.getLogger(__name__)

YIELD_EPSILON = np.finfo(float).eps


class PortfolioTotals(NamedTuple):
    value: float
    dividend_yield: float

    @property
    def yearly_income(self) -> float:
        return self.value * self.dividend_yield

    @property
    def monthly_income(self) -> float:
        return self.yearly_income / 12.0


def is_zero_yield(dividend_yield: np.ndarray | float) -> np.ndarray | np.bool_:
    return np.isclose(dividend_yield, 0.0, rtol=0.0, atol=YIELD_EPSILON)


def portfolio_calculate(positions_df: pd.DataFrame, exclude: str | None = None) -> PortfolioTotals:
    """
    Total market value and value-weighted dividend yield of a portfolio.

    Rows whose symbol equals ``exclude`` are left out of both figures.
    Positions with a zero yield count toward the total value but add nothing
    to the weighted yield. A zero total value gives a NaN yield.
    """
    included = positions_df
    if exclude is not None:
        included = positions_df[positions_df["symbol"] != exclude]

    values = market_value(included["quantity"], included["price"]).astype(float)
    total_value = float(values.sum())
    if total_value == 0:
        if exclude is None:
            logger.warning("Portfolio value is zero; weighted yield is undefined")
        else:
            logger.debug("Portfolio value without %s is zero", exclude)
        return PortfolioTotals(total_value, float("nan"))

    weights = values / total_value
    yields = included["dividend_yield"].astype(float)
    contributes = ~is_zero_yield(yields.to_numpy())
    weighted_yield = float((weights * yields)[contributes].sum())
    return PortfolioTotals(total_value, weighted_yield)

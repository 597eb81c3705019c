"""
Text report for the dividend balancer: current holdings, portfolio totals and
the suggested changes for a target yield.
"""
from __future__ import annotations

import pandas as pd

from dividend_balancer.data_pipeline.aggregate import PortfolioTotals
from dividend_balancer.data_pipeline.targets import feasible_allocations


HOLDINGS_RULE = "  " + "-" * 57
TARGETS_RULE = "  " + "-" * 28
SYMBOL_WIDTH = 10


def format_usd(v: float | int | None) -> str:
    if v is None or pd.isna(v):
        return "N/A"
    return f"${v:,.2f}"


def format_pct(v: float | int | None, digits: int = 2) -> str:
    if v is None or pd.isna(v):
        return "N/A"
    return f"{v * 100:.{digits}f}%"


def _symbol_cell(symbol: str) -> str:
    return f"{str(symbol)[:SYMBOL_WIDTH]:>{SYMBOL_WIDTH}}"


def render_holdings(positions_df: pd.DataFrame) -> str:
    lines = [
        "Current portfolio:",
        "",
        f"{'Symbol':>{SYMBOL_WIDTH}} {'Qty':<6} ${'Price':<7} {'Yield':>7}%  ${'Mkt. Value':<10}",
        HOLDINGS_RULE,
    ]
    for row in positions_df.itertuples(index=False):
        lines.append(
            f"{_symbol_cell(row.symbol)} {int(row.quantity):<6d} ${row.price:<7,.2f} "
            f"{row.dividend_yield * 100:7.2f}%  ${row.market_value:<10,.2f}"
        )
    lines.append(HOLDINGS_RULE)
    return "\n".join(lines)


def render_summary(positions_df: pd.DataFrame, totals: PortfolioTotals) -> str:
    lines = [
        f"  Portfolio Positions: {len(positions_df)}",
        f"  Portfolio Value: {format_usd(totals.value)}",
        f"  Portfolio Yield: {format_pct(totals.dividend_yield, digits=3)}",
        f"  Expected Income: {format_usd(totals.yearly_income)} per year, "
        f"or {format_usd(totals.monthly_income)} per month",
        HOLDINGS_RULE,
    ]
    return "\n".join(lines)


def render_targets(allocations_df: pd.DataFrame, target_yield: float) -> str:
    lines = [
        f"For a target Yield of {format_pct(target_yield, digits=3)}, we can make the following changes:",
        "",
        f"{'Symbol':>{SYMBOL_WIDTH}} {'Qty':<6} {'Investment':<15}",
        TARGETS_RULE,
    ]
    for row in feasible_allocations(allocations_df).itertuples(index=False):
        lines.append(f"{_symbol_cell(row.symbol)} {int(row.change_quantity):<6d} {format_usd(row.investment_amount):<16}")
    lines.append(TARGETS_RULE)
    return "\n".join(lines)


def render_report(
    positions_df: pd.DataFrame,
    totals: PortfolioTotals,
    allocations_df: pd.DataFrame | None = None,
    target_yield: float | None = None,
) -> str:
    sections = [render_holdings(positions_df), render_summary(positions_df, totals)]
    report = "\n".join(sections)
    if allocations_df is not None and target_yield is not None:
        report += "\n\n\n" + render_targets(allocations_df, target_yield)
    return report + "\n"

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from dividend_balancer.data_pipeline.aggregate import portfolio_calculate
from dividend_balancer.data_pipeline.compute import SORT_KEYS, compute_position_metrics, sort_positions
from dividend_balancer.data_pipeline.reader import (
    DEFAULT_DELIMITER,
    DELIMITERS,
    PortfolioReadError,
    load_positions,
)
from dividend_balancer.data_pipeline.targets import build_target_allocations
from dividend_balancer.report import render_report


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s: %(message)s"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbalance",
        description="Dividend Portfolio Balancer",
    )
    parser.add_argument(
        "-i",
        "--input",
        required=True,
        metavar="FILE",
        help="Read a tab-separated positions export.",
    )
    parser.add_argument(
        "-y",
        "--yield-target",
        type=float,
        metavar="PERCENT",
        help="Suggest changes for a target yield, e.g. 5 for 5%%.",
    )
    parser.add_argument(
        "-d",
        "--delimiter",
        choices=sorted(DELIMITERS),
        default=DEFAULT_DELIMITER,
        help="Field delimiter of the input file (default: %(default)s).",
    )
    parser.add_argument(
        "-s",
        "--sort-by",
        choices=sorted(SORT_KEYS),
        default="yield",
        help="Order of the holdings table (default: %(default)s).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log skipped recommendations and other details.",
    )
    return parser


def run(
    input_path: str,
    yield_target: float | None = None,
    delimiter: str = DEFAULT_DELIMITER,
    sort_by: str = "yield",
) -> str:
    positions_df = compute_position_metrics(load_positions(input_path, delimiter))
    totals = portfolio_calculate(positions_df)
    positions_df = sort_positions(positions_df, by=sort_by)

    allocations_df = None
    if yield_target is not None:
        allocations_df = build_target_allocations(positions_df, yield_target)

    return render_report(positions_df, totals, allocations_df, yield_target)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    yield_target = args.yield_target / 100.0 if args.yield_target is not None else None
    try:
        report = run(args.input, yield_target, args.delimiter, args.sort_by)
    except PortfolioReadError as exc:
        logger.error("%s", exc)
        return 1

    print(report, end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import unittest

import pandas as pd

from dividend_balancer.data_pipeline.targets import (
    STATUS_NEGATIVE_POSITION,
    STATUS_NO_CHANGE,
    STATUS_NO_OTHER_HOLDINGS,
    STATUS_OK,
    STATUS_SHARES_OUT_OF_RANGE,
    STATUS_YIELD_EQUALS_TARGET,
    STATUS_ZERO_PRICE,
    TARGET_COLUMNS,
    build_target_allocations,
    feasible_allocations,
    solve_target_allocation,
    target_position_value,
)


def _positions(rows: list[tuple[str, int, float, float]]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "symbol": [r[0] for r in rows],
            "quantity": [r[1] for r in rows],
            "price": [r[2] for r in rows],
            "dividend_yield": [r[3] for r in rows],
        }
    )


class TargetAllocationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.positions = _positions([("A", 100, 10.0, 0.04), ("B", 50, 20.0, 0.02)])
        self.a = self.positions.iloc[0]
        self.b = self.positions.iloc[1]

    def test_target_position_value_closed_form(self) -> None:
        self.assertAlmostEqual(target_position_value(0.03, 1000.0, 0.02, 0.04), 1000.0)

    def test_target_already_met_gives_no_change(self) -> None:
        out = solve_target_allocation(self.a, self.positions, 0.03)
        self.assertAlmostEqual(out["target_value"], 1000.0)
        self.assertEqual(out["target_shares"], 100)
        self.assertEqual(out["change_quantity"], 0)
        self.assertEqual(out["status"], STATUS_NO_CHANGE)

    def test_buy_recommendation(self) -> None:
        out = solve_target_allocation(self.a, self.positions, 0.035)
        self.assertAlmostEqual(out["target_value"], 3000.0)
        self.assertEqual(out["change_quantity"], 200)
        self.assertAlmostEqual(out["investment_amount"], 2000.0)
        self.assertEqual(out["status"], STATUS_OK)

    def test_sell_recommendation_truncates_shares(self) -> None:
        out = solve_target_allocation(self.b, self.positions, 0.035)
        self.assertAlmostEqual(out["target_value"], 1000.0 / 3.0)
        self.assertEqual(out["target_shares"], 16)
        self.assertEqual(out["change_quantity"], -34)
        self.assertAlmostEqual(out["investment_amount"], 1000.0 / 3.0 - 1000.0)
        self.assertEqual(out["status"], STATUS_OK)

    def test_negative_resulting_position_is_rejected(self) -> None:
        out = solve_target_allocation(self.a, self.positions, 0.05)
        self.assertLess(out["target_value"], 0.0)
        self.assertEqual(out["status"], STATUS_NEGATIVE_POSITION)

    def test_yield_equal_to_target_is_flagged(self) -> None:
        out = solve_target_allocation(self.a, self.positions, 0.04)
        self.assertEqual(out["status"], STATUS_YIELD_EQUALS_TARGET)
        self.assertIs(out["change_quantity"], pd.NA)

    def test_single_position_has_no_other_holdings(self) -> None:
        positions = _positions([("A", 100, 10.0, 0.04)])
        out = solve_target_allocation(positions.iloc[0], positions, 0.05)
        self.assertEqual(out["status"], STATUS_NO_OTHER_HOLDINGS)

    def test_zero_price_is_flagged(self) -> None:
        positions = _positions([("A", 100, 0.0, 0.04), ("B", 50, 20.0, 0.02)])
        out = solve_target_allocation(positions.iloc[0], positions, 0.03)
        self.assertEqual(out["status"], STATUS_ZERO_PRICE)

    def test_share_count_beyond_int64_is_flagged(self) -> None:
        positions = _positions([("A", 100, 1e-20, 0.04), ("B", 50, 20.0, 0.02)])
        out = solve_target_allocation(positions.iloc[0], positions, 0.03)
        self.assertEqual(out["status"], STATUS_SHARES_OUT_OF_RANGE)
        self.assertIs(out["target_shares"], pd.NA)

    def test_build_target_allocations_with_oversized_share_count(self) -> None:
        positions = _positions([("A", 100, 1e-20, 0.04), ("B", 50, 20.0, 0.02)])
        out = build_target_allocations(positions, 0.03)
        self.assertEqual(out.loc[0, "status"], STATUS_SHARES_OUT_OF_RANGE)
        self.assertTrue(pd.isna(out.loc[0, "target_shares"]))

    def test_build_target_allocations_covers_every_position(self) -> None:
        out = build_target_allocations(self.positions, 0.035)
        self.assertListEqual(list(out.columns), TARGET_COLUMNS)
        self.assertListEqual(out["symbol"].tolist(), ["A", "B"])
        self.assertListEqual(feasible_allocations(out)["change_quantity"].tolist(), [200, -34])

    def test_build_target_allocations_keeps_infeasible_rows(self) -> None:
        out = build_target_allocations(self.positions, 0.04)
        self.assertListEqual(out["status"].tolist(), [STATUS_YIELD_EQUALS_TARGET, STATUS_OK])
        self.assertTrue(pd.isna(out.loc[0, "change_quantity"]))
        # Selling all of B leaves A alone at the 4% target.
        self.assertListEqual(feasible_allocations(out)["change_quantity"].tolist(), [-50])

    def test_build_target_allocations_on_empty_portfolio(self) -> None:
        out = build_target_allocations(self.positions.iloc[0:0], 0.05)
        self.assertTrue(out.empty)
        self.assertListEqual(list(out.columns), TARGET_COLUMNS)


if __name__ == "__main__":
    unittest.main()

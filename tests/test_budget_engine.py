from __future__ import annotations

import math
import unittest
from datetime import date
from decimal import Decimal

from application.budget_engine import (
    budget_overview,
    category_totals,
    evaluate,
    month_summary,
    recompute,
    spent_for,
)
from domain.models import UNKNOWN_CATEGORY, Budget, BudgetStatus, Category, EntryType, Transaction


def _budget(limit: str | int, spent: str | int, category_id: int | None = 1, month: str = "January", year: int = 2024, title: str = "") -> Budget:
    return Budget(
        id=1,
        category_id=category_id,
        limit=Decimal(limit),
        spent=Decimal(spent),
        month=month,
        year=year,
        title=title,
    )


def _txn(amount: str, category_id: int | None, when: date | None, entry_type: EntryType = EntryType.EXPENSE) -> Transaction:
    return Transaction(
        id=None,
        title="t",
        amount=Decimal(amount),
        type=entry_type,
        category_id=category_id,
        description="d",
        date=when,
    )


class EvaluateTests(unittest.TestCase):
    def test_near_limit_scenario(self) -> None:
        result = evaluate(_budget(500, 450))

        self.assertEqual(result.percentage, 90.0)
        self.assertEqual(result.remaining, Decimal(50))
        self.assertEqual(result.status, BudgetStatus.NEAR_LIMIT)

    def test_over_budget_scenario(self) -> None:
        result = evaluate(_budget(500, 600))

        self.assertEqual(result.percentage, 120.0)
        self.assertEqual(result.remaining, Decimal(-100))
        self.assertEqual(result.status, BudgetStatus.OVER_BUDGET)
        self.assertTrue(result.is_overspent)

    def test_zero_limit_yields_zero_percentage(self) -> None:
        for spent in ("0", "10", "999.99"):
            with self.subTest(spent=spent):
                result = evaluate(_budget(0, spent))
                self.assertEqual(result.percentage, 0.0)
                self.assertTrue(math.isfinite(result.percentage))

    def test_zero_limit_keeps_negative_remaining(self) -> None:
        result = evaluate(_budget(0, 25))

        self.assertEqual(result.remaining, Decimal(-25))
        self.assertEqual(result.status, BudgetStatus.ON_TRACK)
        self.assertTrue(result.is_overspent)

    def test_status_boundaries(self) -> None:
        cases = [
            (400, BudgetStatus.ON_TRACK),
            ("400.01", BudgetStatus.NEAR_LIMIT),
            (500, BudgetStatus.NEAR_LIMIT),
            ("500.01", BudgetStatus.OVER_BUDGET),
        ]
        for spent, expected in cases:
            with self.subTest(spent=spent):
                self.assertEqual(evaluate(_budget(500, spent)).status, expected)

    def test_exactly_at_limit_has_zero_remaining(self) -> None:
        result = evaluate(_budget(500, 500))

        self.assertEqual(result.percentage, 100.0)
        self.assertEqual(result.remaining, Decimal(0))
        self.assertFalse(result.is_overspent)

    def test_percentage_is_not_rounded(self) -> None:
        result = evaluate(_budget(3, 1))

        self.assertAlmostEqual(result.percentage, 100 / 3, places=9)

    def test_status_partition_and_remaining_sign(self) -> None:
        for limit in (1, 120, 500):
            for spent in range(0, limit * 2 + 1, max(1, limit // 20)):
                result = evaluate(_budget(limit, spent))
                with self.subTest(limit=limit, spent=spent):
                    self.assertEqual(result.status is BudgetStatus.OVER_BUDGET, result.percentage > 100)
                    self.assertEqual(result.status is BudgetStatus.NEAR_LIMIT, 80 < result.percentage <= 100)
                    self.assertEqual(result.status is BudgetStatus.ON_TRACK, result.percentage <= 80)
                    self.assertEqual(result.remaining, Decimal(limit) - Decimal(spent))
                    self.assertEqual(result.remaining < 0, result.status is BudgetStatus.OVER_BUDGET)


class SpendAggregationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.transactions = [
            _txn("100", 1, date(2024, 1, 10)),
            _txn("50", 1, date(2024, 2, 1)),
            _txn("999", 1, date(2024, 1, 11), EntryType.INCOME),
            _txn("20", 2, date(2024, 1, 12)),
            _txn("7", 1, date(2023, 1, 12)),
            _txn("3", 1, None),
            _txn("25.50", 1, date(2024, 1, 31)),
        ]

    def test_spent_for_sums_matching_expenses_in_period(self) -> None:
        self.assertEqual(spent_for(_budget(500, 0), self.transactions), Decimal("125.50"))

    def test_spent_for_unknown_month_or_missing_category(self) -> None:
        self.assertEqual(spent_for(_budget(500, 0, month="Smarch"), self.transactions), Decimal(0))
        self.assertEqual(spent_for(_budget(500, 0, category_id=None), self.transactions), Decimal(0))

    def test_recompute_returns_copy(self) -> None:
        budget = _budget(500, 10)

        derived = recompute(budget, self.transactions)

        self.assertEqual(derived.spent, Decimal("125.50"))
        self.assertEqual(budget.spent, Decimal(10))

    def test_overview_uses_derived_spend_and_logs_divergence(self) -> None:
        categories = [Category(id=1, name="Food & Dining", type=EntryType.EXPENSE)]

        with self.assertLogs("application.budget_engine", level="WARNING"):
            rows = budget_overview([_budget(100, 10)], categories, self.transactions)

        self.assertEqual(rows[0].spent, Decimal("125.50"))
        self.assertEqual(rows[0].label, "Food & Dining")
        self.assertEqual(rows[0].evaluation.status, BudgetStatus.OVER_BUDGET)

    def test_overview_tolerates_dangling_category(self) -> None:
        categories = [Category(id=1, name="Food & Dining", type=EntryType.EXPENSE)]
        budgets = [_budget(200, 50, category_id=99), _budget(200, 190, category_id=99, title="Holiday fund")]

        rows = budget_overview(budgets, categories)

        self.assertEqual(rows[0].category_name, UNKNOWN_CATEGORY)
        self.assertEqual(rows[0].label, UNKNOWN_CATEGORY)
        self.assertEqual(rows[1].label, "Holiday fund")
        self.assertEqual(rows[1].evaluation.status, BudgetStatus.NEAR_LIMIT)

    def test_category_totals_label_unknown_ids(self) -> None:
        categories = [Category(id=1, name="Food & Dining", type=EntryType.EXPENSE)]

        totals = category_totals(self.transactions, categories, EntryType.EXPENSE)

        self.assertEqual([t["category"] for t in totals], ["Food & Dining", UNKNOWN_CATEGORY])
        self.assertEqual(totals[0]["total"], Decimal("185.50"))
        self.assertEqual(totals[0]["txn_count"], 5)

    def test_month_summary(self) -> None:
        summary = month_summary(self.transactions, 2024, 1)

        self.assertEqual(summary["transaction_count"], 4)
        self.assertEqual(summary["income_total"], Decimal(999))
        self.assertEqual(summary["expense_total"], Decimal("145.50"))
        self.assertEqual(summary["net_cashflow"], Decimal("853.50"))
        self.assertEqual(summary["month_name"], "January")


if __name__ == "__main__":
    unittest.main()

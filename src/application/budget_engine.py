from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from decimal import Decimal
from typing import Any, Iterable

from application.category_filter import resolve_category_label
from domain.models import Budget, BudgetStatus, Category, EntryType, Transaction
from domain.normalizer import MONTHS
from domain.schemas import BudgetEvaluation, BudgetStatusRow

logger = logging.getLogger(__name__)

NEAR_LIMIT_PERCENT = 80.0
OVER_BUDGET_PERCENT = 100.0


def evaluate(budget: Budget) -> BudgetEvaluation:
    """
    Derive spend status from a budget's limit and spent.

    percentage is spent/limit*100, or 0 when the limit is 0. remaining keeps its
    sign: a negative value means the budget is overspent. No rounding is applied.
    """
    limit = Decimal(budget.limit)
    spent = Decimal(budget.spent)
    percentage = float(spent / limit * 100) if limit > 0 else 0.0

    if percentage > OVER_BUDGET_PERCENT:
        status = BudgetStatus.OVER_BUDGET
    elif percentage > NEAR_LIMIT_PERCENT:
        status = BudgetStatus.NEAR_LIMIT
    else:
        status = BudgetStatus.ON_TRACK

    return BudgetEvaluation(percentage=percentage, remaining=limit - spent, status=status)


def month_number(month: str) -> int | None:
    text = (month or "").strip().lower()
    for index, name in enumerate(MONTHS, start=1):
        if name.lower() == text:
            return index
    return None


def in_budget_period(transaction: Transaction, budget: Budget) -> bool:
    number = month_number(budget.month)
    if transaction.date is None or number is None:
        return False
    return transaction.date.year == budget.year and transaction.date.month == number


def spent_for(budget: Budget, transactions: Iterable[Transaction]) -> Decimal:
    """Sum of expense amounts filed under the budget's category within its month/year."""
    total = Decimal(0)
    if budget.category_id is None:
        return total
    for txn in transactions:
        if txn.type != EntryType.EXPENSE or txn.category_id != budget.category_id:
            continue
        if in_budget_period(txn, budget):
            total += txn.amount
    return total


def recompute(budget: Budget, transactions: Iterable[Transaction]) -> Budget:
    """Copy of `budget` with the cached spent replaced by the derived total."""
    return replace(budget, spent=spent_for(budget, transactions))


def budget_overview(
    budgets: Iterable[Budget],
    categories: Iterable[Category],
    transactions: Iterable[Transaction] | None = None,
) -> list[BudgetStatusRow]:
    categories = list(categories)
    transactions = list(transactions) if transactions is not None else None

    rows: list[BudgetStatusRow] = []
    for budget in budgets:
        if transactions is not None:
            derived = recompute(budget, transactions)
            if derived.spent != budget.spent:
                logger.warning(
                    "Budget spent diverges from transactions budget_id=%s cached=%s derived=%s",
                    budget.id,
                    budget.spent,
                    derived.spent,
                )
            budget = derived

        category_name = resolve_category_label(budget.category_id, categories, fallback=budget.category_name)
        rows.append(BudgetStatusRow(
            budget_id=budget.id,
            label=budget.title or category_name,
            category_name=category_name,
            month=budget.month,
            year=budget.year,
            limit=budget.limit,
            spent=budget.spent,
            evaluation=evaluate(budget),
        ))
    return rows


def category_totals(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    entry_type: EntryType | str | None = None,
) -> list[dict[str, Any]]:
    """Totals per category, in order of first appearance; dangling ids are labelled as unknown."""
    categories = list(categories)
    wanted = EntryType(entry_type) if entry_type is not None else None

    groups: dict[tuple[int | None, str], dict[str, Any]] = {}
    for txn in transactions:
        if wanted is not None and txn.type != wanted:
            continue
        key = (txn.category_id, txn.type.value)
        entry = groups.get(key)
        if entry is None:
            entry = groups[key] = {
                "category_id": txn.category_id,
                "category": resolve_category_label(txn.category_id, categories),
                "type": txn.type.value,
                "txn_count": 0,
                "total": Decimal(0),
            }
        entry["txn_count"] += 1
        entry["total"] += txn.amount
    return list(groups.values())


def month_summary(transactions: Iterable[Transaction], year: int, month: int) -> dict[str, Any]:
    totals: dict[str, Decimal] = defaultdict(Decimal)
    count = 0
    for txn in transactions:
        if txn.date is None or txn.date.year != year or txn.date.month != month:
            continue
        count += 1
        totals[txn.type.value] += txn.amount

    income = totals[EntryType.INCOME.value]
    expense = totals[EntryType.EXPENSE.value]
    return {
        "year": year,
        "month_number": month,
        "month_name": MONTHS[month - 1],
        "transaction_count": count,
        "income_total": income,
        "expense_total": expense,
        "net_cashflow": income - expense,
    }

from __future__ import annotations

import asyncio
import json
import os
import sys
from datetime import datetime, timezone

from application.category_service import CategoryService
from application.container import Services
from application.transaction_lifecycle import TransactionLifecycle
from domain.schemas import ReportRequest
from infrastructure.notifications.channel import HttpNotificationChannel, NotificationChannel
from infrastructure.record_store.http_table import HttpRecordTable
from infrastructure.record_store.memory_table import InMemoryRecordTable
from infrastructure.record_store.table import RecordTable
from infrastructure.repositories import (
    BudgetRepository,
    CategoryRepository,
    GoalRepository,
    ProfileRepository,
    TransactionRepository,
)
from reports.registry import load_builtin_reports

TABLE_NAMES = {
    "transaction": "transaction_c",
    "category": "category_c",
    "budget": "budget_c",
    "goal": "goal_c",
    "profile": "profiles_c",
}

DEFAULT_CATEGORIES = [
    ("Food & Dining", "expense", "#ef4444"),
    ("Transportation", "expense", "#f97316"),
    ("Shopping", "expense", "#eab308"),
    ("Entertainment", "expense", "#8b5cf6"),
    ("Bills & Utilities", "expense", "#06b6d4"),
    ("Healthcare", "expense", "#ec4899"),
    ("Other", "expense", "#64748b"),
    ("Salary", "income", "#22c55e"),
]


def build_memory_tables() -> dict[str, RecordTable]:
    categories = InMemoryRecordTable(TABLE_NAMES["category"], required=("name_c", "type_c"))
    categories.seed(
        {"Name": name, "name_c": name, "type_c": entry_type, "color_c": color, "is_default_c": True}
        for name, entry_type, color in DEFAULT_CATEGORIES
    )
    refs = {"category_c": categories}
    return {
        "transaction": InMemoryRecordTable(TABLE_NAMES["transaction"], references=refs, required=("title_c", "category_c")),
        "category": categories,
        "budget": InMemoryRecordTable(TABLE_NAMES["budget"], references=refs, required=("category_c", "month_c")),
        "goal": InMemoryRecordTable(TABLE_NAMES["goal"], required=("name_c",)),
        "profile": InMemoryRecordTable(TABLE_NAMES["profile"]),
    }


def build_services(
    tables: dict[str, RecordTable] | None = None,
    notifier: NotificationChannel | None = None,
) -> Services:
    if tables is None:
        if os.getenv("RECORD_STORE_URL"):
            tables = {key: HttpRecordTable(name) for key, name in TABLE_NAMES.items()}
        else:
            tables = build_memory_tables()

    transactions = TransactionRepository(tables["transaction"])
    categories = CategoryRepository(tables["category"])
    profiles = ProfileRepository(tables["profile"])
    return Services(
        transactions=transactions,
        categories=categories,
        budgets=BudgetRepository(tables["budget"]),
        goals=GoalRepository(tables["goal"]),
        profiles=profiles,
        lifecycle=TransactionLifecycle(
            transactions=transactions,
            profiles=profiles,
            notifier=notifier or HttpNotificationChannel(),
            categories=categories,
        ),
        category_service=CategoryService(categories),
    )


async def run_report(services: Services, name: str, args: dict | None = None) -> dict:
    report = load_builtin_reports().get_report(name)
    request = ReportRequest(
        request_id=f"req_cli_{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}",
        report=name,
        args=args or {},
    )
    response = await report.run(request, services)
    return response.model_dump()


def main() -> None:
    name = sys.argv[1] if len(sys.argv) > 1 else "budgets.overview"
    args = json.loads(sys.argv[2]) if len(sys.argv) > 2 else {}
    services = build_services()
    result = asyncio.run(run_report(services, name, args))
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()

from __future__ import annotations

from decimal import Decimal

from application.budget_engine import budget_overview
from application.container import Services
from domain.models import BudgetStatus
from domain.normalizer import MONTHS
from domain.schemas import ReportRequest, ReportResponse
from reports._support import as_int, jsonable
from reports.base import Report, ReportSpec
from reports.registry import register_report


@register_report
class BudgetOverviewReport(Report):
    name = "budgets.overview"
    description = (
        "Spend status of every budget: percentage used, remaining and on-track/near-limit/over-budget. "
        "Optional `month` (name) and `year` narrow the budgets; `recompute` (default true) derives spend "
        "from expense transactions instead of the cached value."
    )

    async def run(self, request: ReportRequest, services: Services) -> ReportResponse:
        args = request.args
        month = str(args.get("month") or "").strip()
        year = as_int(args.get("year")) if args.get("year") is not None else None
        if month and month.capitalize() not in MONTHS:
            return self.failure(request, f"month must be one of {', '.join(MONTHS)}")

        budgets = await services.budgets.list()
        if month:
            budgets = [b for b in budgets if b.month.lower() == month.lower()]
        if year is not None:
            budgets = [b for b in budgets if b.year == year]

        categories = await services.categories.list()
        transactions = await services.transactions.list() if args.get("recompute", True) else None
        rows = budget_overview(budgets, categories, transactions)

        budget_rows = []
        for row in rows:
            item = row.model_dump(mode="python")
            item["evaluation"]["status"] = row.evaluation.status.value
            item["evaluation"]["is_overspent"] = row.evaluation.is_overspent
            item["percentage_display"] = f"{row.evaluation.percentage:.1f}%"
            budget_rows.append(jsonable(item))

        result = {
            "budgets": budget_rows,
            "budget_count": len(rows),
            "over_budget_count": sum(1 for r in rows if r.evaluation.status == BudgetStatus.OVER_BUDGET),
            "near_limit_count": sum(1 for r in rows if r.evaluation.status == BudgetStatus.NEAR_LIMIT),
            "total_limit": float(sum((r.limit for r in rows), Decimal(0))),
            "total_spent": float(sum((r.spent for r in rows), Decimal(0))),
        }
        return ReportResponse(request_id=request.request_id, report=self.name, result=result)

    def spec(self) -> ReportSpec:
        return ReportSpec(
            name=self.name,
            description=self.description,
            args_schema={
                "type": "object",
                "properties": {
                    "month": {"type": "string", "enum": MONTHS},
                    "year": {"type": "integer"},
                    "recompute": {"type": "boolean", "default": True},
                },
            },
        )

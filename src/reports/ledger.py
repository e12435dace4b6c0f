from __future__ import annotations

from application.budget_engine import month_summary
from application.container import Services
from domain.schemas import ReportRequest, ReportResponse
from reports._support import as_int, jsonable, report_today
from reports.base import Report, ReportSpec
from reports.registry import register_report


@register_report
class MonthSummaryReport(Report):
    name = "ledger.month_summary"
    description = (
        "Income, expense and net cashflow for one month. "
        "Takes `month_number` (1-12); optional `year` defaults to the current year."
    )

    async def run(self, request: ReportRequest, services: Services) -> ReportResponse:
        args = request.args
        today = report_today(request)
        raw_month = args.get("month_number", args.get("month"))
        month_number = today.month if raw_month is None else as_int(raw_month)
        year = as_int(args.get("year")) or today.year

        if month_number is None or month_number < 1 or month_number > 12:
            return self.failure(request, "month_number must be an integer from 1 to 12")

        transactions = await services.transactions.list()
        result = jsonable(month_summary(transactions, year, month_number))
        return ReportResponse(request_id=request.request_id, report=self.name, result=result)

    def spec(self) -> ReportSpec:
        return ReportSpec(
            name=self.name,
            description=self.description,
            args_schema={
                "type": "object",
                "properties": {
                    "month_number": {"type": "integer", "minimum": 1, "maximum": 12},
                    "year": {"type": "integer"},
                },
            },
        )

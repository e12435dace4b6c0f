from __future__ import annotations

from application.budget_engine import category_totals
from application.category_filter import category_stats, filter_by_type, search_categories
from application.container import Services
from domain.models import EntryType
from domain.schemas import ReportRequest, ReportResponse
from reports._support import jsonable
from reports.base import Report, ReportSpec
from reports.registry import register_report


@register_report
class CategorySummaryReport(Report):
    name = "categories.summary"
    description = "Category counts by type, matching categories for an optional search `term`/`type`, and totals per category."

    async def run(self, request: ReportRequest, services: Services) -> ReportResponse:
        entry_type = request.args.get("type") or None
        if entry_type is not None and entry_type not in {t.value for t in EntryType}:
            return self.failure(request, "type must be 'income' or 'expense'")

        categories = await services.categories.list()
        transactions = await services.transactions.list()
        matches = search_categories(categories, request.args.get("term") or "", entry_type)

        result = {
            "stats": category_stats(categories),
            "categories": [
                {"id": c.id, "name": c.name, "type": c.type.value, "color": c.color, "is_default": c.is_default}
                for c in matches
            ],
            "totals": jsonable(category_totals(transactions, categories, entry_type)),
        }
        if entry_type is not None:
            result["options"] = [option.model_dump() for option in filter_by_type(categories, entry_type, ordering="insertion")]
        return ReportResponse(request_id=request.request_id, report=self.name, result=result)

    def spec(self) -> ReportSpec:
        return ReportSpec(
            name=self.name,
            description=self.description,
            args_schema={
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": [t.value for t in EntryType]},
                    "term": {"type": "string"},
                },
            },
        )

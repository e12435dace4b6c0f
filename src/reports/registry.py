from __future__ import annotations

from reports.base import Report, ReportSpec


class ReportRegistry:
    def __init__(self):
        self._reports: dict[str, Report] = {}

    def register(self, report: Report) -> None:
        self._reports[report.name] = report

    def get_report(self, name: str) -> Report:
        if name not in self._reports:
            raise KeyError(f"Report not registered: {name}")
        return self._reports[name]

    def list_specs(self) -> list[ReportSpec]:
        return [report.spec() for report in self._reports.values()]


registry = ReportRegistry()


def register_report(report_cls: type[Report]) -> type[Report]:
    registry.register(report_cls())
    return report_cls


def load_builtin_reports() -> ReportRegistry:
    from reports import budgets, categories, ledger  # noqa: F401

    return registry

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from application.container import Services
from domain.schemas import ReportRequest, ReportResponse


@dataclass(frozen=True)
class ReportSpec:
    name: str
    description: str
    args_schema: dict[str, Any]


class Report(ABC):
    name: str
    description: str = ""

    @abstractmethod
    async def run(self, request: ReportRequest, services: Services) -> ReportResponse:
        raise NotImplementedError

    def spec(self) -> ReportSpec:
        return ReportSpec(name=self.name, description=self.description, args_schema={})

    def failure(self, request: ReportRequest, *errors: str) -> ReportResponse:
        return ReportResponse(request_id=request.request_id, report=self.name, ok=False, errors=list(errors))

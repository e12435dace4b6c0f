from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from domain.schemas import ReportRequest


def as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def report_today(request: ReportRequest) -> date:
    return request.context.today or date.today()


def jsonable(value: Any) -> Any:
    """Decimals become floats so results serialize as plain JSON numbers."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {key: jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [jsonable(item) for item in value]
    return value

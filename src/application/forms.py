from __future__ import annotations

from datetime import date
from typing import Any

from domain.models import EntryType
from domain.normalizer import MONTHS


def current_period(today: date | None = None) -> tuple[str, int]:
    today = today or date.today()
    return MONTHS[today.month - 1], today.year


def month_options() -> list[dict[str, str]]:
    return [{"value": month, "label": month} for month in MONTHS]


def year_options(today: date | None = None, span: int = 2) -> list[dict[str, Any]]:
    year = (today or date.today()).year
    return [{"value": y, "label": str(y)} for y in range(year - span, year + span + 1)]


def budget_form_defaults(today: date | None = None) -> dict[str, Any]:
    month, year = current_period(today)
    return {"title": "", "category_id": None, "limit": "", "month": month, "year": year}


def transaction_form_defaults(today: date | None = None) -> dict[str, Any]:
    return {
        "title": "",
        "amount": "",
        "type": EntryType.EXPENSE.value,
        "category_id": None,
        "description": "",
        "date": (today or date.today()).isoformat(),
    }

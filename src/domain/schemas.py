from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.models import BudgetStatus, EntryType


class FieldSpec(BaseModel):
    """One column requested from the record store.

    `reference` names the column of the referenced record to embed
    (e.g. the category's `Name` for `category_c`).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    reference: Optional[str] = None


class RecordResult(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    message: str = ""
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class StoreResponse(BaseModel):
    """Envelope returned by every record-store call.

    `success=False` is a request-level failure; per-record failures live in `results`.
    """

    success: bool
    message: str = ""
    data: Any = None
    results: Optional[List[RecordResult]] = None


class TransactionDraft(BaseModel):
    """Validated input for creating or updating a transaction."""

    title: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    type: EntryType = EntryType.EXPENSE
    category_id: int
    description: str = Field(min_length=1)
    date: dt.date

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("amount must be a number")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("amount")
    @classmethod
    def finite_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("amount must be a finite number")
        return value

    @field_validator("category_id", mode="before")
    @classmethod
    def coerce_category(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("Id", value.get("id"))
        return value

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, dt.date) or not isinstance(value, str):
            return value

        text = value.strip()
        if not text:
            return value

        for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%m-%d-%Y"):
            try:
                return dt.datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        try:
            return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return value


class CategoryOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int]
    label: str


class BudgetEvaluation(BaseModel):
    model_config = ConfigDict(frozen=True)

    percentage: float
    remaining: Decimal
    status: BudgetStatus

    @property
    def is_overspent(self) -> bool:
        return self.remaining < 0


class BudgetStatusRow(BaseModel):
    budget_id: Optional[int] = None
    label: str
    category_name: str
    month: str
    year: int
    limit: Decimal
    spent: Decimal
    evaluation: BudgetEvaluation


class NotificationResult(BaseModel):
    success: bool
    message: str = ""


class ReportContext(BaseModel):
    user_id: str = "local"
    today: Optional[dt.date] = None


class ReportRequest(BaseModel):
    request_id: str
    report: str
    args: Dict[str, Any] = Field(default_factory=dict)
    context: ReportContext = Field(default_factory=ReportContext)


class ReportResponse(BaseModel):
    request_id: str
    report: str
    ok: bool = True
    result: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)


class WarningOut(BaseModel):
    code: Literal["notification-skipped", "notification-failed"]
    message: str

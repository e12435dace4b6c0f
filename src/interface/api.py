from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from domain.errors import PersistenceError, ProtectedEntityError, ValidationError
from domain.models import EntryType
from domain.schemas import ReportContext, ReportRequest, WarningOut
from application.category_filter import filter_by_type
from application.forms import budget_form_defaults, month_options, transaction_form_defaults, year_options
from interface.cli import build_services
from reports.registry import load_builtin_reports

app = FastAPI(title="Finance Tracker API")
services = build_services()
reports = load_builtin_reports()


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": "validation", "message": str(exc)})


@app.exception_handler(ProtectedEntityError)
async def protected_error_handler(request: Request, exc: ProtectedEntityError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": "protected", "message": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={"error": "persistence", "message": exc.message, "deleted_ids": exc.deleted_ids},
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/categories/options")
async def category_options(type: EntryType = EntryType.EXPENSE, ordering: str = "name") -> list[dict]:
    if ordering not in ("name", "insertion"):
        raise HTTPException(status_code=400, detail="ordering must be 'name' or 'insertion'")
    categories = await services.categories.list()
    return [option.model_dump() for option in filter_by_type(categories, type, ordering=ordering)]


@app.get("/forms/{kind}")
def form_defaults(kind: str) -> dict:
    if kind == "budget":
        defaults = budget_form_defaults()
    elif kind == "transaction":
        defaults = transaction_form_defaults()
    else:
        raise HTTPException(status_code=404, detail=f"Unknown form: {kind}")
    return {"defaults": defaults, "months": month_options(), "years": year_options()}


@app.get("/profile")
async def profile() -> dict:
    user_id = _user_id()
    record_id = int(user_id) if user_id.isdigit() else 1
    return jsonable_encoder(await services.profiles.get_or_create(record_id))


@app.get("/budgets/status")
async def budget_status(month: str | None = None, year: int | None = None, recompute: bool = True) -> dict:
    args: dict[str, Any] = {"recompute": recompute}
    if month:
        args["month"] = month
    if year is not None:
        args["year"] = year
    return await _run_report("budgets.overview", args)


@app.post("/transactions", status_code=201)
async def create_transaction(payload: Dict[str, Any] = Body(...)) -> dict:
    categories = await services.categories.list()
    outcome = await services.lifecycle.create(payload, categories)
    return {
        "transaction": jsonable_encoder(outcome.transaction),
        "warnings": [WarningOut(code=w.code, message=w.message).model_dump() for w in outcome.warnings],
    }


@app.put("/transactions/{transaction_id}")
async def update_transaction(transaction_id: int, payload: Dict[str, Any] = Body(...)) -> dict:
    categories = await services.categories.list()
    transaction = await services.lifecycle.update(transaction_id, payload, categories)
    return {"transaction": jsonable_encoder(transaction)}


@app.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: int) -> None:
    await services.category_service.delete(category_id)


@app.get("/reports")
def list_reports() -> list[dict]:
    return [spec.__dict__ for spec in reports.list_specs()]


@app.post("/reports/{name}")
async def run_report(name: str, args: Optional[Dict[str, Any]] = Body(default=None)) -> dict:
    return await _run_report(name, args or {})


async def _run_report(name: str, args: dict[str, Any]) -> dict:
    try:
        report = reports.get_report(name)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    request = ReportRequest(
        request_id=f"req_api_{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S%f')}",
        report=name,
        args=args,
        context=ReportContext(user_id=_user_id()),
    )
    response = await report.run(request, services)
    return response.model_dump()


def _user_id() -> str:
    return os.getenv("FINANCE_USER_ID", "local")

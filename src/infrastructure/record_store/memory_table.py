from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, Mapping

from domain.schemas import FieldSpec, RecordResult, StoreResponse
from infrastructure.record_store.table import RECORD_NOT_FOUND, RecordTable

logger = logging.getLogger(__name__)


class InMemoryRecordTable(RecordTable):
    """Process-local table with server-style integer ids, used for local runs and tests."""

    def __init__(
        self,
        name: str,
        references: Mapping[str, "InMemoryRecordTable"] | None = None,
        required: Iterable[str] = (),
    ) -> None:
        self.name = name
        self._references = dict(references or {})
        self._required = tuple(required)
        self._rows: dict[int, dict[str, Any]] = {}
        self._next_id = 1

    def seed(self, records: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        return [self._insert(record) for record in records]

    async def fetch_all(self, fields: list[FieldSpec]) -> StoreResponse:
        return StoreResponse(success=True, data=[self._project(row, fields) for row in self._rows.values()])

    async def fetch_by_id(self, record_id: int, fields: list[FieldSpec]) -> StoreResponse:
        row = self._rows.get(int(record_id))
        if row is None:
            return StoreResponse(success=False, message=RECORD_NOT_FOUND)
        return StoreResponse(success=True, data=self._project(row, fields))

    async def create(self, records: list[dict[str, Any]]) -> StoreResponse:
        results: list[RecordResult] = []
        for record in records:
            missing = [column for column in self._required if record.get(column) in (None, "")]
            if missing:
                results.append(RecordResult(
                    success=False,
                    message=f"{missing[0]} is required",
                    errors=[{"fieldLabel": column, "message": "is required"} for column in missing],
                ))
                continue
            row = self._insert(record)
            results.append(RecordResult(success=True, data=self._project(row, [])))
        logger.info("InMemoryRecordTable create table=%s records=%d", self.name, len(records))
        return StoreResponse(success=True, results=results)

    async def update(self, records: list[dict[str, Any]]) -> StoreResponse:
        results: list[RecordResult] = []
        for record in records:
            row = self._rows.get(int(record.get("Id") or 0))
            if row is None:
                results.append(RecordResult(success=False, message=RECORD_NOT_FOUND))
                continue
            row.update({key: copy.deepcopy(value) for key, value in record.items() if key != "Id"})
            results.append(RecordResult(success=True, data=self._project(row, [])))
        return StoreResponse(success=True, results=results)

    async def delete(self, record_ids: Iterable[int]) -> StoreResponse:
        results: list[RecordResult] = []
        for record_id in record_ids:
            if self._rows.pop(int(record_id), None) is None:
                results.append(RecordResult(success=False, message=RECORD_NOT_FOUND))
            else:
                results.append(RecordResult(success=True))
        return StoreResponse(success=True, results=results)

    def _insert(self, record: Mapping[str, Any]) -> dict[str, Any]:
        row = {key: copy.deepcopy(value) for key, value in record.items() if key != "Id"}
        row["Id"] = self._next_id
        self._rows[self._next_id] = row
        self._next_id += 1
        return row

    def _project(self, row: dict[str, Any], fields: list[FieldSpec]) -> dict[str, Any]:
        if fields:
            projected = {spec.name: copy.deepcopy(row.get(spec.name)) for spec in fields}
            projected["Id"] = row["Id"]
        else:
            projected = copy.deepcopy(row)

        for spec in fields:
            target = self._references.get(spec.name)
            ref_id = projected.get(spec.name)
            if spec.reference is None or target is None or isinstance(ref_id, dict) or ref_id is None:
                continue
            embedded: dict[str, Any] = {"Id": ref_id}
            ref_row = target._rows.get(int(ref_id)) if str(ref_id).isdigit() else None
            if ref_row is not None:
                embedded[spec.reference] = ref_row.get(spec.reference)
            projected[spec.name] = embedded
        return projected

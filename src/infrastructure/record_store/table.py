from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable

from domain.schemas import FieldSpec, StoreResponse

RECORD_NOT_FOUND = "Record does not exist"


class RecordTable(ABC):
    """Contract for one table of the remote record store (ids are server-assigned ints)."""

    name: str = "table"

    @abstractmethod
    async def fetch_all(self, fields: list[FieldSpec]) -> StoreResponse:
        raise NotImplementedError

    @abstractmethod
    async def fetch_by_id(self, record_id: int, fields: list[FieldSpec]) -> StoreResponse:
        raise NotImplementedError

    @abstractmethod
    async def create(self, records: list[dict[str, Any]]) -> StoreResponse:
        raise NotImplementedError

    @abstractmethod
    async def update(self, records: list[dict[str, Any]]) -> StoreResponse:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, record_ids: Iterable[int]) -> StoreResponse:
        raise NotImplementedError

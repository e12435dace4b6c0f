from __future__ import annotations

import asyncio
import http.client
import json
import logging
import os
import socket
import time
import urllib.error
import urllib.request
from typing import Any, Iterable

from pydantic import ValidationError as SchemaValidationError

from domain.errors import PersistenceError
from domain.schemas import FieldSpec, StoreResponse
from infrastructure.record_store.table import RecordTable

logger = logging.getLogger(__name__)


class HttpRecordTable(RecordTable):
    """JSON-over-HTTP adapter for one table of the remote record store."""

    def __init__(
        self,
        name: str,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.name = name
        self.base_url = (base_url or os.getenv("RECORD_STORE_URL", "http://127.0.0.1:8700")).rstrip("/")
        self.api_key = api_key if api_key is not None else os.getenv("RECORD_STORE_API_KEY", "")
        self.timeout_seconds = timeout_seconds or float(os.getenv("RECORD_STORE_TIMEOUT_SECONDS", "30"))

    async def fetch_all(self, fields: list[FieldSpec]) -> StoreResponse:
        return await self._call("POST", "fetch", {"fields": self._fields(fields)})

    async def fetch_by_id(self, record_id: int, fields: list[FieldSpec]) -> StoreResponse:
        return await self._call("POST", "get", {"id": record_id, "fields": self._fields(fields)})

    async def create(self, records: list[dict[str, Any]]) -> StoreResponse:
        return await self._call("POST", "records", {"records": records})

    async def update(self, records: list[dict[str, Any]]) -> StoreResponse:
        return await self._call("PUT", "records", {"records": records})

    async def delete(self, record_ids: Iterable[int]) -> StoreResponse:
        return await self._call("DELETE", "records", {"RecordIds": list(record_ids)})

    def _fields(self, fields: list[FieldSpec]) -> list[dict[str, Any]]:
        return [spec.model_dump(exclude_none=True) for spec in fields]

    async def _call(self, method: str, action: str, payload: dict[str, Any]) -> StoreResponse:
        return await asyncio.to_thread(self._send, method, action, payload)

    def _send(self, method: str, action: str, payload: dict[str, Any]) -> StoreResponse:
        started = time.perf_counter()
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        req = urllib.request.Request(
            url=f"{self.base_url}/tables/{self.name}/{action}",
            data=json.dumps(payload, default=str).encode("utf-8"),
            headers=headers,
            method=method,
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                body = json.loads(resp.read().decode("utf-8"))
        except (
            socket.timeout,
            urllib.error.URLError,
            TimeoutError,
            http.client.HTTPException,
            OSError,
            json.JSONDecodeError,
            UnicodeDecodeError,
        ) as exc:
            elapsed = time.perf_counter() - started
            logger.warning("HttpRecordTable %s %s table=%s failed after %.2fs: %s", method, action, self.name, elapsed, exc)
            raise PersistenceError(f"Record store request failed for {self.name}: {exc}") from exc

        try:
            response = StoreResponse.model_validate(body)
        except SchemaValidationError as exc:
            raise PersistenceError(f"Record store returned an unexpected payload for {self.name}: {exc}") from exc

        logger.info(
            "HttpRecordTable %s %s table=%s complete in %.2fs success=%s",
            method,
            action,
            self.name,
            time.perf_counter() - started,
            response.success,
        )
        return response

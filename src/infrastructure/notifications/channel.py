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
from abc import ABC, abstractmethod
from typing import Any

from domain.models import Transaction
from domain.normalizer import to_record
from domain.schemas import NotificationResult

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """Side-channel told about newly created transactions. May fail or raise."""

    @abstractmethod
    async def send(self, recipient_email: str, transaction: Transaction, category_label: str) -> NotificationResult:
        raise NotImplementedError


class HttpNotificationChannel(NotificationChannel):
    """Invokes the transaction-email function over HTTP."""

    def __init__(self, function_url: str | None = None, timeout_seconds: float | None = None) -> None:
        self.function_url = function_url if function_url is not None else os.getenv("NOTIFY_FUNCTION_URL", "")
        self.timeout_seconds = timeout_seconds or float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "15"))

    async def send(self, recipient_email: str, transaction: Transaction, category_label: str) -> NotificationResult:
        if not self.function_url:
            return NotificationResult(success=False, message="NOTIFY_FUNCTION_URL is not configured")
        payload = {
            "recipientEmail": recipient_email,
            "transaction": {**to_record(transaction), "categoryName": category_label},
        }
        return await asyncio.to_thread(self._post, payload)

    def _post(self, payload: dict[str, Any]) -> NotificationResult:
        started = time.perf_counter()
        req = urllib.request.Request(
            url=self.function_url,
            data=json.dumps(payload, default=str).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                body = json.loads(resp.read().decode("utf-8") or "{}")
        except (
            socket.timeout,
            urllib.error.URLError,
            TimeoutError,
            http.client.HTTPException,
            OSError,
            json.JSONDecodeError,
            UnicodeDecodeError,
        ) as exc:
            logger.warning("HttpNotificationChannel request failed after %.2fs: %s", time.perf_counter() - started, exc)
            return NotificationResult(success=False, message=str(exc))

        success = not (isinstance(body, dict) and body.get("success") is False)
        message = str(body.get("message") or "") if isinstance(body, dict) else ""
        logger.info("HttpNotificationChannel complete in %.2fs success=%s", time.perf_counter() - started, success)
        return NotificationResult(success=success, message=message)

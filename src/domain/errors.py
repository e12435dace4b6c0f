from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

NOTIFICATION_SKIPPED = "notification-skipped"
NOTIFICATION_FAILED = "notification-failed"


class FinanceError(RuntimeError):
    pass


class ValidationError(FinanceError):
    """A required field is missing or malformed. Raised before any store call."""


class PersistenceError(FinanceError):
    """The record store rejected a request or one of its records."""

    def __init__(self, message: str, deleted_ids: Iterable[int] = ()) -> None:
        super().__init__(message)
        self.message = message
        # Ids a bulk delete already removed before the failure was reported.
        self.deleted_ids = list(deleted_ids)


class ProtectedEntityError(FinanceError):
    """Deletion of a protected (default) record refused locally."""


@dataclass(frozen=True)
class NotificationWarning:
    code: str  # NOTIFICATION_SKIPPED | NOTIFICATION_FAILED
    message: str

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from pydantic import ValidationError as SchemaValidationError

from application.category_filter import find_category, resolve_category_label
from domain.errors import (
    NOTIFICATION_FAILED,
    NOTIFICATION_SKIPPED,
    NotificationWarning,
    ValidationError,
)
from domain.models import UNKNOWN_CATEGORY, Category, EntityType, Transaction
from domain.normalizer import pick
from domain.schemas import TransactionDraft
from infrastructure.notifications.channel import NotificationChannel
from infrastructure.repositories import CategoryRepository, ProfileRepository, TransactionRepository

logger = logging.getLogger(__name__)

# (normalizer attribute, draft field, label shown to the user)
_FIELDS = (
    ("title", "title", "title"),
    ("amount", "amount", "amount"),
    ("type", "type", "type"),
    ("category", "category_id", "category"),
    ("description", "description", "description"),
    ("date", "date", "date"),
)
_REQUIRED = ("title", "amount", "category", "description", "date")


@dataclass
class TransactionOutcome:
    """Result of a successful create; warnings never turn it into a failure."""

    transaction: Transaction
    warnings: list[NotificationWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True


class TransactionLifecycle:
    """
    Create/update pipeline for transactions.

    create: validate -> persist -> notify. Validation failures raise before any
    store call; persistence failures raise and skip notification; notification
    problems only add a NotificationWarning to the returned outcome.
    update: validate -> persist.
    """

    def __init__(
        self,
        transactions: TransactionRepository,
        profiles: ProfileRepository,
        notifier: NotificationChannel,
        categories: CategoryRepository | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._transactions = transactions
        self._profiles = profiles
        self._notifier = notifier
        self._categories = categories
        self._now = now or (lambda: datetime.now(timezone.utc))

    def validate(self, data: Mapping[str, Any], categories: Iterable[Category] | None = None) -> TransactionDraft:
        values: dict[str, Any] = {}
        missing: list[str] = []
        for attribute, draft_field, label in _FIELDS:
            value = pick(data, EntityType.TRANSACTION, attribute)
            if isinstance(value, str) and not value.strip():
                value = None
            if value is None:
                if attribute in _REQUIRED:
                    missing.append(label)
                continue
            values[draft_field] = value

        if missing:
            raise ValidationError(f"Transaction is missing required field(s): {', '.join(missing)}.")

        try:
            draft = TransactionDraft.model_validate(values)
        except SchemaValidationError as exc:
            raise ValidationError(self._describe(exc)) from exc

        if categories is not None:
            category = find_category(draft.category_id, categories)
            if category is not None and category.type != draft.type:
                raise ValidationError(
                    f"Category {category.name!r} is an {category.type.value} category "
                    f"and cannot hold an {draft.type.value} transaction."
                )
        return draft

    async def create(
        self,
        data: Mapping[str, Any],
        categories: Iterable[Category] | None = None,
    ) -> TransactionOutcome:
        categories = list(categories) if categories is not None else None
        draft = self.validate(data, categories)

        logger.info(
            "TransactionLifecycle create type=%s category_id=%s amount=%s",
            draft.type.value,
            draft.category_id,
            draft.amount,
        )
        created = await self._transactions.create(Transaction(
            id=None,
            title=draft.title,
            amount=draft.amount,
            type=draft.type,
            category_id=draft.category_id,
            description=draft.description,
            date=draft.date,
            created_at=self._now(),
        ))
        logger.info("TransactionLifecycle persisted transaction id=%s", created.id)

        warning = await self._notify(created, categories)
        return TransactionOutcome(transaction=created, warnings=[warning] if warning else [])

    async def update(
        self,
        transaction_id: int,
        data: Mapping[str, Any],
        categories: Iterable[Category] | None = None,
    ) -> Transaction:
        draft = self.validate(data, list(categories) if categories is not None else None)
        logger.info("TransactionLifecycle update id=%s", transaction_id)
        return await self._transactions.update(Transaction(
            id=transaction_id,
            title=draft.title,
            amount=draft.amount,
            type=draft.type,
            category_id=draft.category_id,
            description=draft.description,
            date=draft.date,
        ))

    async def _notify(
        self,
        transaction: Transaction,
        categories: list[Category] | None,
    ) -> NotificationWarning | None:
        try:
            profile = await self._profiles.get_profile()
        except Exception as exc:
            logger.warning("TransactionLifecycle profile lookup failed id=%s: %s", transaction.id, exc)
            return NotificationWarning(NOTIFICATION_FAILED, "Transaction created but email notification failed.")

        if profile is None or not profile.email.strip():
            logger.info("TransactionLifecycle profile email not found; skipping notification id=%s", transaction.id)
            return NotificationWarning(NOTIFICATION_SKIPPED, "Transaction created (email not configured in profile).")

        label = await self._category_label(transaction, categories)
        try:
            result = await self._notifier.send(profile.email, transaction, label)
        except Exception as exc:
            logger.warning("TransactionLifecycle notification raised id=%s: %s", transaction.id, exc)
            return NotificationWarning(NOTIFICATION_FAILED, "Transaction created but email notification failed.")

        if not result.success:
            logger.warning("TransactionLifecycle notification failed id=%s: %s", transaction.id, result.message)
            return NotificationWarning(NOTIFICATION_FAILED, "Transaction created but email notification failed.")

        logger.info("TransactionLifecycle notification sent id=%s", transaction.id)
        return None

    async def _category_label(self, transaction: Transaction, categories: list[Category] | None) -> str:
        if categories is not None:
            return resolve_category_label(transaction.category_id, categories, fallback=transaction.category_name)
        if transaction.category_name:
            return transaction.category_name
        if self._categories is None or transaction.category_id is None:
            return UNKNOWN_CATEGORY
        try:
            category = await self._categories.get(transaction.category_id)
        except Exception as exc:
            logger.warning("TransactionLifecycle category lookup failed id=%s: %s", transaction.category_id, exc)
            return UNKNOWN_CATEGORY
        return category.name if category is not None and category.name else UNKNOWN_CATEGORY

    def _describe(self, exc: SchemaValidationError) -> str:
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "transaction"
            problems.append(f"{location}: {error.get('msg', 'invalid value')}")
        return f"Transaction has invalid field(s): {'; '.join(problems)}."

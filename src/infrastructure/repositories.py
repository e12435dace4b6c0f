from __future__ import annotations

import logging
from typing import Any, Generic, Iterable, Mapping, TypeVar

from domain.errors import PersistenceError
from domain.models import Budget, Category, EntityType, Goal, Profile, Transaction
from domain.normalizer import field_spec, normalize, partial_record, to_record
from domain.schemas import RecordResult, StoreResponse
from infrastructure.record_store.table import RECORD_NOT_FOUND, RecordTable

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")


class EntityRepository(Generic[EntityT]):
    """
    CRUD over one record-store table.

    Reads are normalized into canonical entities; writes are built with
    `to_record`. Both the request-level `success` flag and every per-record
    result are checked, and any failure surfaces as PersistenceError.
    """

    entity_type: EntityType
    # Columns set once at creation and never sent on update.
    immutable_columns: tuple[str, ...] = ()

    def __init__(self, table: RecordTable) -> None:
        self._table = table

    @property
    def label(self) -> str:
        return self.entity_type.value

    async def list(self) -> list[EntityT]:
        response = await self._table.fetch_all(field_spec(self.entity_type))
        self._raise_for_request(response, "fetch")
        rows = response.data or []
        if not isinstance(rows, list):
            raise PersistenceError(f"Expected a list of {self.label} records, got {type(rows).__name__}")
        entities = [normalize(self.entity_type, row) for row in rows if isinstance(row, Mapping)]
        logger.info("%s list count=%d", type(self).__name__, len(entities))
        return entities

    async def get(self, record_id: int) -> EntityT | None:
        response = await self._table.fetch_by_id(record_id, field_spec(self.entity_type))
        if not response.success and response.message == RECORD_NOT_FOUND:
            logger.info("%s get id=%s not found", type(self).__name__, record_id)
            return None
        self._raise_for_request(response, "fetch")
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, Mapping):
            return None
        return normalize(self.entity_type, data)

    async def create(self, entity: EntityT) -> EntityT:
        response = await self._table.create([to_record(entity, include_id=False)])
        return self._single_result(response, "create")

    async def update(self, entity: EntityT) -> EntityT:
        record_id = getattr(entity, "id", None)
        if record_id is None:
            raise PersistenceError(f"Cannot update a {self.label} without an id")
        record = to_record(entity)
        for column in self.immutable_columns:
            record.pop(column, None)
        response = await self._table.update([record])
        return self._single_result(response, "update")

    async def update_fields(self, record_id: int, changes: Mapping[str, Any]) -> EntityT:
        record = partial_record(self.entity_type, changes)
        for column in self.immutable_columns:
            record.pop(column, None)
        record["Id"] = record_id
        response = await self._table.update([record])
        return self._single_result(response, "update")

    async def delete(self, record_id: int) -> None:
        await self.delete_many([record_id])

    async def delete_many(self, record_ids: Iterable[int]) -> list[int]:
        """
        Best-effort bulk delete.

        The store does not apply a batch atomically: when any id fails the
        PersistenceError carries the ids that were already removed.
        """
        ids = [int(record_id) for record_id in record_ids]
        response = await self._table.delete(ids)
        self._raise_for_request(response, "delete")
        if response.results is None:
            return ids

        deleted: list[int] = []
        failures: list[str] = []
        for record_id, result in zip(ids, response.results):
            if result.success:
                deleted.append(record_id)
            else:
                failures.append(f"{record_id}: {self._result_message(result)}")
        if failures:
            logger.error("%s delete failed ids=%s deleted=%s", type(self).__name__, failures, deleted)
            raise PersistenceError(
                f"Failed to delete {self.label} record(s) {', '.join(failures)}",
                deleted_ids=deleted,
            )
        return deleted

    def _single_result(self, response: StoreResponse, action: str) -> EntityT:
        self._raise_for_request(response, action)
        data: Any = response.data
        if response.results is not None:
            failed = [result for result in response.results if not result.success]
            if failed:
                message = self._result_message(failed[0])
                logger.error("%s %s rejected: %s", type(self).__name__, action, message)
                raise PersistenceError(message or f"Failed to {action} {self.label}")
            data = next((result.data for result in response.results if result.success), None)
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, Mapping):
            raise PersistenceError(f"Record store returned no {self.label} data for {action}")
        return normalize(self.entity_type, data)

    def _raise_for_request(self, response: StoreResponse, action: str) -> None:
        if response.success:
            return
        message = response.message or f"Failed to {action} {self.label} records"
        logger.error("%s %s failed: %s", type(self).__name__, action, message)
        raise PersistenceError(message)

    def _result_message(self, result: RecordResult) -> str:
        if result.message:
            return result.message
        details = [
            f"{error.get('fieldLabel') or 'Field'}: {error.get('message') or error}"
            for error in result.errors
        ]
        return "; ".join(details)


class TransactionRepository(EntityRepository[Transaction]):
    entity_type = EntityType.TRANSACTION
    immutable_columns = ("created_at_c",)


class CategoryRepository(EntityRepository[Category]):
    entity_type = EntityType.CATEGORY


class BudgetRepository(EntityRepository[Budget]):
    entity_type = EntityType.BUDGET


class GoalRepository(EntityRepository[Goal]):
    entity_type = EntityType.GOAL
    immutable_columns = ("created_at_c",)


class ProfileRepository(EntityRepository[Profile]):
    entity_type = EntityType.PROFILE

    async def get_profile(self) -> Profile | None:
        """Current user's profile, or None when absent or the store call fails."""
        try:
            profiles = await self.list()
        except PersistenceError as exc:
            logger.warning("ProfileRepository get_profile failed: %s", exc)
            return None
        return profiles[0] if profiles else None

    async def get_or_create(self, user_id: int, name: str = "", email: str = "") -> Profile:
        """
        The store assigns its own ids, so `user_id` only matches when the
        profile was created with it; otherwise the user's existing profile is
        reused and a new one is created only when the table is empty.
        """
        profile = await self.get(user_id)
        if profile is None:
            existing = await self.list()
            profile = existing[0] if existing else None
        if profile is not None:
            return profile
        logger.info("ProfileRepository creating profile user_id=%s", user_id)
        return await self.create(Profile(id=None, name=name or email or "User", email=email))

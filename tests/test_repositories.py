from __future__ import annotations

import unittest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from domain.errors import PersistenceError
from domain.models import Budget, EntryType, Goal, Profile
from domain.schemas import RecordResult, StoreResponse
from infrastructure.record_store.memory_table import InMemoryRecordTable
from infrastructure.repositories import (
    BudgetRepository,
    CategoryRepository,
    GoalRepository,
    ProfileRepository,
    TransactionRepository,
)


class RepositoryTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.category_table = InMemoryRecordTable("category_c")
        self.category_table.seed([
            {"Name": "Housing", "name_c": "Housing", "type_c": "expense", "is_default_c": True},
            {"Name": "Freelance", "name_c": "Freelance", "type_c": "income"},
        ])
        self.categories = CategoryRepository(self.category_table)

    async def test_list_normalizes_records(self) -> None:
        categories = await self.categories.list()

        self.assertEqual([c.name for c in categories], ["Housing", "Freelance"])
        self.assertEqual([c.type for c in categories], [EntryType.EXPENSE, EntryType.INCOME])
        self.assertTrue(categories[0].is_default)

    async def test_get_missing_returns_none(self) -> None:
        self.assertIsNone(await self.categories.get(42))

    async def test_budget_reads_embedded_category_name(self) -> None:
        table = InMemoryRecordTable("budget_c", references={"category_c": self.category_table})
        budgets = BudgetRepository(table)

        created = await budgets.create(Budget(
            id=None, category_id=1, limit=Decimal("1200"), spent=Decimal("300"), month="March", year=2024,
        ))
        loaded = await budgets.get(created.id)

        self.assertEqual(loaded.category_id, 1)
        self.assertEqual(loaded.category_name, "Housing")
        self.assertEqual(loaded.limit, Decimal("1200"))
        self.assertEqual(loaded.month, "March")

    async def test_request_failure_raises(self) -> None:
        failing = StoreResponse(success=False, message="Invalid API key")
        with patch.object(self.category_table, "fetch_all", new=AsyncMock(return_value=failing)):
            with self.assertRaises(PersistenceError) as ctx:
                await self.categories.list()
        self.assertEqual(ctx.exception.message, "Invalid API key")

    async def test_per_record_failure_uses_field_errors(self) -> None:
        table = InMemoryRecordTable("goal_c", required=("name_c",))
        goals = GoalRepository(table)

        with self.assertRaises(PersistenceError) as ctx:
            await goals.create(Goal(id=None, name="", target_amount=Decimal(10), current_amount=Decimal(0), target_date=None))

        self.assertIn("name_c", str(ctx.exception))
        self.assertEqual(await goals.list(), [])

    async def test_result_message_falls_back_to_field_labels(self) -> None:
        rejected = StoreResponse(success=True, results=[RecordResult(
            success=False,
            errors=[{"fieldLabel": "amount_c", "message": "must be a number"}],
        )])
        transactions = TransactionRepository(InMemoryRecordTable("transaction_c"))

        with patch.object(transactions._table, "update", new=AsyncMock(return_value=rejected)):
            with self.assertRaises(PersistenceError) as ctx:
                await transactions.update_fields(1, {"amount": "x"})

        self.assertEqual(str(ctx.exception), "amount_c: must be a number")

    async def test_update_fields_sends_only_changed_columns(self) -> None:
        update = AsyncMock(return_value=StoreResponse(success=True, results=[RecordResult(
            success=True, data={"Id": 2, "name_c": "Side work", "type_c": "income"},
        )]))
        with patch.object(self.category_table, "update", new=update):
            category = await self.categories.update_fields(2, {"name": "Side work"})

        update.assert_awaited_once_with([{"name_c": "Side work", "Id": 2}])
        self.assertEqual(category.name, "Side work")

    async def test_update_does_not_send_created_at(self) -> None:
        table = InMemoryRecordTable("goal_c")
        goals = GoalRepository(table)
        created = await goals.create(Goal(
            id=None, name="Car", target_amount=Decimal(5000), current_amount=Decimal(0), target_date=None,
        ))
        update = AsyncMock(return_value=StoreResponse(success=True, results=[RecordResult(success=True, data={"Id": created.id})]))

        with patch.object(table, "update", new=update):
            await goals.update(Goal(
                id=created.id, name="Car", target_amount=Decimal(6000), current_amount=Decimal(100), target_date=None,
            ))

        sent = update.await_args.args[0][0]
        self.assertNotIn("created_at_c", sent)
        self.assertEqual(sent["target_amount_c"], 6000.0)

    async def test_update_without_id_raises(self) -> None:
        goals = GoalRepository(InMemoryRecordTable("goal_c"))
        with self.assertRaises(PersistenceError):
            await goals.update(Goal(id=None, name="x", target_amount=Decimal(1), current_amount=Decimal(0), target_date=None))

    async def test_delete_many_reports_partial_progress(self) -> None:
        with self.assertRaises(PersistenceError) as ctx:
            await self.categories.delete_many([1, 99, 2])

        self.assertEqual(ctx.exception.deleted_ids, [1, 2])
        self.assertIn("99", str(ctx.exception))
        self.assertEqual(await self.categories.list(), [])

    async def test_delete_many_returns_ids(self) -> None:
        self.assertEqual(await self.categories.delete_many([2, 1]), [2, 1])


class ProfileRepositoryTests(unittest.IsolatedAsyncioTestCase):
    async def test_get_profile_returns_first_record(self) -> None:
        table = InMemoryRecordTable("profiles_c")
        table.seed([{"Name": "Dana", "name_c": "Dana", "email_id_c": "dana@example.com"}])

        profile = await ProfileRepository(table).get_profile()

        self.assertEqual(profile.email, "dana@example.com")

    async def test_get_profile_is_none_when_store_fails(self) -> None:
        table = InMemoryRecordTable("profiles_c")
        profiles = ProfileRepository(table)

        with patch.object(table, "fetch_all", new=AsyncMock(return_value=StoreResponse(success=False, message="down"))):
            self.assertIsNone(await profiles.get_profile())

    async def test_get_or_create(self) -> None:
        profiles = ProfileRepository(InMemoryRecordTable("profiles_c"))

        created = await profiles.get_or_create(1, email="sam@example.com")
        again = await profiles.get_or_create(created.id)

        self.assertEqual(created.name, "sam@example.com")
        self.assertEqual(again, Profile(id=created.id, name="sam@example.com", email="sam@example.com"))

    async def test_get_or_create_reuses_profile_for_other_user_ids(self) -> None:
        table = InMemoryRecordTable("profiles_c")
        profiles = ProfileRepository(table)

        first = await profiles.get_or_create(5, email="kim@example.com")
        second = await profiles.get_or_create(5, email="kim@example.com")
        third = await profiles.get_or_create(5)

        self.assertEqual(second.id, first.id)
        self.assertEqual(third.id, first.id)
        self.assertEqual(len(await profiles.list()), 1)


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping

from domain.errors import ProtectedEntityError, ValidationError
from domain.models import Category, EntityType
from domain.normalizer import normalize
from infrastructure.repositories import CategoryRepository

logger = logging.getLogger(__name__)


class CategoryService:
    """Category CRUD with the default-category deletion guard."""

    def __init__(self, categories: CategoryRepository) -> None:
        self._categories = categories

    async def list(self) -> list[Category]:
        return await self._categories.list()

    async def create(self, data: Mapping[str, Any] | Category) -> Category:
        category = normalize(EntityType.CATEGORY, data)
        if not category.name.strip():
            raise ValidationError("Category name is required.")
        return await self._categories.create(replace(category, id=None))

    async def update(self, category_id: int, data: Mapping[str, Any]) -> Category:
        if "name" in data or "name_c" in data or "Name" in data:
            category = normalize(EntityType.CATEGORY, data)
            if not category.name.strip():
                raise ValidationError("Category name is required.")
        return await self._categories.update_fields(category_id, data)

    async def delete(self, category: Category | int) -> None:
        """
        Delete a category unless it is a default one.

        Accepts an already loaded category or an id; with an id the record is
        fetched first so `is_default` can be checked. Transactions and budgets
        that still reference the category are left as they are.
        """
        if not isinstance(category, Category):
            loaded = await self._categories.get(int(category))
            if loaded is None:
                logger.info("CategoryService delete id=%s not found", category)
                await self._categories.delete(int(category))
                return
            category = loaded

        if category.is_default:
            raise ProtectedEntityError(f"Category {category.name!r} is a default category and cannot be deleted.")
        if category.id is None:
            raise ValidationError("Category has no id to delete.")

        logger.info("CategoryService delete id=%s", category.id)
        await self._categories.delete(category.id)

from __future__ import annotations

from typing import Iterable, Literal

from domain.models import UNKNOWN_CATEGORY, Category, EntryType
from domain.schemas import CategoryOption


def filter_by_type(
    categories: Iterable[Category],
    entry_type: EntryType | str,
    ordering: Literal["name", "insertion"] = "name",
) -> list[CategoryOption]:
    """
    Categories of one type reduced to picker options.

    `ordering="name"` sorts case-insensitively by label (pickers);
    `ordering="insertion"` keeps the input order (reports).
    """
    wanted = EntryType(entry_type)
    options = [
        CategoryOption(id=category.id, label=category.name)
        for category in categories
        if category.type == wanted
    ]
    if ordering == "name":
        options = sorted(options, key=lambda option: option.label.lower())
    return options


def search_categories(
    categories: Iterable[Category],
    term: str = "",
    entry_type: EntryType | str | None = None,
) -> list[Category]:
    needle = (term or "").strip().lower()
    wanted = EntryType(entry_type) if entry_type else None
    matches = [
        category
        for category in categories
        if (not needle or needle in category.name.lower()) and (wanted is None or category.type == wanted)
    ]
    return sorted(matches, key=lambda category: category.name.lower())


def category_stats(categories: Iterable[Category]) -> dict[str, int]:
    categories = list(categories)
    return {
        "total": len(categories),
        "income": sum(1 for c in categories if c.type == EntryType.INCOME),
        "expense": sum(1 for c in categories if c.type == EntryType.EXPENSE),
    }


def find_category(category_id: int | None, categories: Iterable[Category]) -> Category | None:
    if category_id is None:
        return None
    return next((category for category in categories if category.id == category_id), None)


def resolve_category_label(
    category_id: int | None,
    categories: Iterable[Category],
    fallback: str | None = None,
) -> str:
    category = find_category(category_id, categories)
    if category is not None and category.name:
        return category.name
    return fallback or UNKNOWN_CATEGORY

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

UNKNOWN_CATEGORY = "Unknown category"


class EntryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class BudgetStatus(str, Enum):
    ON_TRACK = "on-track"
    NEAR_LIMIT = "near-limit"
    OVER_BUDGET = "over-budget"


class EntityType(str, Enum):
    TRANSACTION = "transaction"
    CATEGORY = "category"
    BUDGET = "budget"
    GOAL = "goal"
    PROFILE = "profile"


@dataclass
class Transaction:
    id: int | None
    title: str
    amount: Decimal
    type: EntryType
    category_id: int | None
    description: str
    date: date | None
    created_at: datetime | None = None
    # Display name of the referenced category when the store embeds it.
    category_name: str | None = None


@dataclass
class Category:
    id: int | None
    name: str
    type: EntryType
    color: str = ""
    is_default: bool = False


@dataclass
class Budget:
    id: int | None
    category_id: int | None
    limit: Decimal
    spent: Decimal
    month: str
    year: int
    title: str = ""
    category_name: str | None = None


@dataclass
class Goal:
    id: int | None
    name: str
    target_amount: Decimal
    current_amount: Decimal
    target_date: date | None
    created_at: datetime | None = None


@dataclass
class Profile:
    id: int | None
    name: str = ""
    avatar: str = ""
    website: str = ""
    bio: str = ""
    email: str = ""

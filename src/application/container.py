from __future__ import annotations

from dataclasses import dataclass

from application.category_service import CategoryService
from application.transaction_lifecycle import TransactionLifecycle
from infrastructure.repositories import (
    BudgetRepository,
    CategoryRepository,
    GoalRepository,
    ProfileRepository,
    TransactionRepository,
)


@dataclass
class Services:
    """Explicitly wired collaborators; built once by interface.cli.build_services."""

    transactions: TransactionRepository
    categories: CategoryRepository
    budgets: BudgetRepository
    goals: GoalRepository
    profiles: ProfileRepository
    lifecycle: TransactionLifecycle
    category_service: CategoryService

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import Budget, Expense


class FinancialRepoPort(Protocol):
    def save_budget(self, budget: Budget) -> Budget: ...
    def get_budget(self, budget_id: UUID) -> Budget | None: ...
    def list_budgets(self, project_id: UUID) -> list[Budget]: ...

    def save_expense(self, expense: Expense) -> Expense: ...
    def get_expense(self, expense_id: UUID) -> Expense | None: ...
    def list_expenses(
        self,
        project_id: UUID,
        budget_id: UUID | None = None,
        approval_status: str | None = None,
    ) -> list[Expense]: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...

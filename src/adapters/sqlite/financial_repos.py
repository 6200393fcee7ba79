from typing import Any
from uuid import UUID

from src.adapters.sqlite.base import SQLiteRepo, TableMapping
from src.domain.entities import Budget, Expense

BUDGETS = TableMapping("budgets", Budget, json_fields=("categories",))
EXPENSES = TableMapping("expenses", Expense)


class SQLiteFinancialRepo(SQLiteRepo):
    """Project budgets (categories and line items inline) and expenses."""

    # --- budgets ---

    def save_budget(self, budget: Budget) -> Budget:
        return self._upsert(BUDGETS, budget)

    def get_budget(self, budget_id: UUID) -> Budget | None:
        return self._select_one(BUDGETS, "id = ? AND is_deleted = 0", (budget_id,))

    def list_budgets(self, project_id: UUID) -> list[Budget]:
        return self._select_many(
            BUDGETS, "project_id = ? AND is_deleted = 0", (project_id,), order_by="start_date"
        )

    # --- expenses ---

    def save_expense(self, expense: Expense) -> Expense:
        return self._upsert(EXPENSES, expense)

    def get_expense(self, expense_id: UUID) -> Expense | None:
        return self._select_one(EXPENSES, "id = ? AND is_deleted = 0", (expense_id,))

    def list_expenses(
        self,
        project_id: UUID,
        budget_id: UUID | None = None,
        approval_status: str | None = None,
    ) -> list[Expense]:
        where = "project_id = ? AND is_deleted = 0"
        params: tuple[Any, ...] = (project_id,)
        if budget_id:
            where += " AND budget_id = ?"
            params += (budget_id,)
        if approval_status:
            where += " AND approval_status = ?"
            params += (approval_status,)
        return self._select_many(EXPENSES, where, params, order_by='"date" DESC, created_at DESC')

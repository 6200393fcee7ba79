from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from src.domain.entities import Budget, Expense, User
from src.domain.errors import OperationError


class CategorySummary(BaseModel):
    category_id: UUID
    name: str
    amount: float
    planned: float
    approved_spend: float
    pending_spend: float
    remaining: float
    percent_spent: float


class BudgetSummary(BaseModel):
    """Budgeted amounts set against approved and pending spend."""

    budget_id: UUID
    name: str
    status: str
    total_amount: float
    allocated: float
    unallocated: float
    planned: float
    approved_spend: float
    pending_spend: float
    rejected_spend: float
    remaining: float
    percent_spent: float
    over_budget: bool
    uncategorized_spend: float
    categories: list[CategorySummary]


# --- Inputs ---


@dataclass
class ListBudgetsInput:
    actor: User
    project_id: UUID


@dataclass
class BudgetRefInput:
    actor: User
    budget_id: UUID


@dataclass
class CreateBudgetInput:
    actor: User
    project_id: UUID
    name: str
    total_amount: float
    start_date: date
    end_date: date
    description: str = ""
    status: str = "Draft"
    categories: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class UpdateBudgetInput:
    actor: User
    budget_id: UUID
    changes: dict[str, Any]


@dataclass
class ListExpensesInput:
    actor: User
    project_id: UUID
    budget_id: UUID | None = None
    approval_status: str | None = None


@dataclass
class ExpenseRefInput:
    actor: User
    expense_id: UUID


@dataclass
class CreateExpenseInput:
    actor: User
    project_id: UUID
    description: str
    amount: float
    date: date
    budget_id: UUID | None = None
    category_id: UUID | None = None
    vendor: str = ""
    payment_method: str = "Credit Card"
    payment_status: str = "Pending"
    notes: str = ""


@dataclass
class UpdateExpenseInput:
    actor: User
    expense_id: UUID
    changes: dict[str, Any]


@dataclass
class ReviewExpenseInput:
    actor: User
    expense_id: UUID
    approve: bool
    notes: str | None = None


# --- Outputs ---


@dataclass
class BudgetOutput:
    budget: Budget | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class BudgetListOutput:
    budgets: list[Budget] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class BudgetSummaryOutput:
    summary: BudgetSummary | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class ExpenseOutput:
    expense: Expense | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class ExpenseListOutput:
    expenses: list[Expense] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DeleteOutput:
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False

"""
Financials component - Project budgets, submitted expenses and their review.
"""

from ._summary import project_totals, summarize_budget
from .component import (
    load_budget,
    run_budget_summary,
    run_create_budget,
    run_create_expense,
    run_delete_budget,
    run_delete_expense,
    run_get_budget,
    run_get_expense,
    run_list_budgets,
    run_list_expenses,
    run_review_expense,
    run_update_budget,
    run_update_expense,
)
from .models import (
    BudgetListOutput,
    BudgetOutput,
    BudgetRefInput,
    BudgetSummary,
    BudgetSummaryOutput,
    CategorySummary,
    CreateBudgetInput,
    CreateExpenseInput,
    DeleteOutput,
    ExpenseListOutput,
    ExpenseOutput,
    ExpenseRefInput,
    ListBudgetsInput,
    ListExpensesInput,
    ReviewExpenseInput,
    UpdateBudgetInput,
    UpdateExpenseInput,
)
from .ports import FinancialRepoPort, TimePort

__all__ = [
    "project_totals",
    "summarize_budget",
    "load_budget",
    "run_budget_summary",
    "run_create_budget",
    "run_create_expense",
    "run_delete_budget",
    "run_delete_expense",
    "run_get_budget",
    "run_get_expense",
    "run_list_budgets",
    "run_list_expenses",
    "run_review_expense",
    "run_update_budget",
    "run_update_expense",
    "BudgetListOutput",
    "BudgetOutput",
    "BudgetRefInput",
    "BudgetSummary",
    "BudgetSummaryOutput",
    "CategorySummary",
    "CreateBudgetInput",
    "CreateExpenseInput",
    "DeleteOutput",
    "ExpenseListOutput",
    "ExpenseOutput",
    "ExpenseRefInput",
    "ListBudgetsInput",
    "ListExpensesInput",
    "ReviewExpenseInput",
    "UpdateBudgetInput",
    "UpdateExpenseInput",
    "FinancialRepoPort",
    "TimePort",
]

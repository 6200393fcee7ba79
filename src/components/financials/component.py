import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from src.components.projects import ProjectRepoPort, apply_changes, load_project
from src.domain.entities import Budget, Expense, User
from src.domain.errors import CONFLICT, OperationError, access_denied, not_found
from src.domain.policy import PolicyEngine

from ._summary import summarize_budget
from .models import (
    BudgetListOutput,
    BudgetOutput,
    BudgetRefInput,
    BudgetSummaryOutput,
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

logger = logging.getLogger(__name__)

FIXED_BUDGET_FIELDS = ("id", "project_id", "created_by", "is_deleted", "deleted_at", "created_at")
FIXED_EXPENSE_FIELDS = (
    "id",
    "project_id",
    "submitted_by",
    "approval_status",
    "reviewed_by",
    "reviewed_at",
    "is_deleted",
    "deleted_at",
    "created_at",
)


def _invalid(e: ValidationError) -> list[OperationError]:
    return [
        OperationError("invalid", err["msg"], ".".join(str(p) for p in err["loc"]))
        for err in e.errors()
    ]


def load_budget(
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    budget_id: UUID,
    actor: User,
    policy: PolicyEngine,
    action: str,
) -> tuple[Budget | None, list[OperationError]]:
    """Fetch a live budget whose project the actor may act on."""
    budget = repo.get_budget(budget_id)
    if budget is None:
        if not policy.can(actor, action):
            return None, [access_denied()]
        return None, [not_found("Budget")]
    _, errors = load_project(projects, budget.project_id, actor, policy, action)
    if errors:
        if errors[0].code == "not_found":
            return None, [not_found("Budget")]
        return None, errors
    return budget, []


def _load_expense(
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    expense_id: UUID,
    actor: User,
    policy: PolicyEngine,
    action: str,
) -> tuple[Expense | None, list[OperationError]]:
    expense = repo.get_expense(expense_id)
    if expense is None:
        if not policy.can(actor, action):
            return None, [access_denied()]
        return None, [not_found("Expense")]
    _, errors = load_project(projects, expense.project_id, actor, policy, action)
    if errors:
        if errors[0].code == "not_found":
            return None, [not_found("Expense")]
        return None, errors
    return expense, []


def _validate_budget(budget: Budget) -> list[OperationError]:
    errors = []
    if not budget.name.strip():
        errors.append(OperationError("required", "Budget name is required", "name"))
    if budget.end_date < budget.start_date:
        errors.append(
            OperationError("invalid_dates", "End date cannot be before start date", "end_date")
        )
    names = [c.name.strip().lower() for c in budget.categories]
    if any(not n for n in names):
        errors.append(OperationError("required", "Category name is required", "categories"))
    elif len(set(names)) != len(names):
        errors.append(OperationError("invalid", "Category names must be unique", "categories"))
    allocated = sum(c.amount for c in budget.categories)
    if allocated > budget.total_amount:
        errors.append(
            OperationError(
                "over_allocated",
                f"Categories allocate {allocated:g} of a {budget.total_amount:g} budget",
                "categories",
            )
        )
    return errors


def _check_allocation(
    repo: FinancialRepoPort, expense: Expense
) -> list[OperationError]:
    """The budget and category an expense is booked against must belong to its project."""
    if expense.budget_id is None:
        if expense.category_id is not None:
            return [
                OperationError("invalid", "A category needs a budget", "category_id")
            ]
        return []
    budget = repo.get_budget(expense.budget_id)
    if budget is None or budget.project_id != expense.project_id:
        return [OperationError("not_found", "Budget not found in this project", "budget_id")]
    if budget.status == "Closed":
        return [OperationError(CONFLICT, "Budget is closed", "budget_id")]
    if expense.category_id is not None and expense.category_id not in {
        c.id for c in budget.categories
    }:
        return [OperationError("not_found", "Category not found in this budget", "category_id")]
    return []


# --- Budgets ---


def run_list_budgets(
    inp: ListBudgetsInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> BudgetListOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "financials:read")
    if errors or project is None:
        return BudgetListOutput(errors=errors)
    return BudgetListOutput(budgets=repo.list_budgets(project.id), success=True)


def run_get_budget(
    inp: BudgetRefInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> BudgetOutput:
    budget, errors = load_budget(
        repo, projects, inp.budget_id, inp.actor, policy, "financials:read"
    )
    if errors or budget is None:
        return BudgetOutput(errors=errors)
    return BudgetOutput(budget=budget, success=True)


def run_create_budget(
    inp: CreateBudgetInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> BudgetOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "financials:edit")
    if errors or project is None:
        return BudgetOutput(errors=errors)

    now = time.now_utc()
    try:
        budget = Budget(
            project_id=project.id,
            name=inp.name.strip(),
            description=inp.description,
            total_amount=inp.total_amount,
            start_date=inp.start_date,
            end_date=inp.end_date,
            status=inp.status,
            categories=inp.categories,
            created_by=inp.actor.id,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as e:
        return BudgetOutput(errors=_invalid(e))

    errors = _validate_budget(budget)
    if errors:
        return BudgetOutput(errors=errors)

    repo.save_budget(budget)
    logger.info("Budget created: %s (%s) for project %s", budget.id, budget.name, project.id)
    return BudgetOutput(budget=budget, success=True)


def run_update_budget(
    inp: UpdateBudgetInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> BudgetOutput:
    budget, errors = load_budget(
        repo, projects, inp.budget_id, inp.actor, policy, "financials:edit"
    )
    if errors or budget is None:
        return BudgetOutput(errors=errors)

    changes: dict[str, Any] = {
        k: v for k, v in inp.changes.items() if k not in FIXED_BUDGET_FIELDS
    }
    if budget.status == "Closed" and set(changes) - {"status"}:
        return BudgetOutput(
            errors=[OperationError(CONFLICT, "A closed budget can only be reopened")]
        )
    if isinstance(changes.get("name"), str):
        changes["name"] = changes["name"].strip()

    updated, errors = apply_changes(budget, {**changes, "updated_at": time.now_utc()})
    if errors or updated is None:
        return BudgetOutput(errors=errors)
    errors = _validate_budget(updated)
    if errors:
        return BudgetOutput(errors=errors)

    repo.save_budget(updated)
    logger.info("Budget updated: %s", updated.id)
    return BudgetOutput(budget=updated, success=True)


def run_delete_budget(
    inp: BudgetRefInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> DeleteOutput:
    """Soft-delete a budget nothing has been booked against."""
    budget, errors = load_budget(
        repo, projects, inp.budget_id, inp.actor, policy, "financials:edit"
    )
    if errors or budget is None:
        return DeleteOutput(errors=errors)
    if repo.list_expenses(budget.project_id, budget_id=budget.id):
        return DeleteOutput(
            errors=[OperationError(CONFLICT, "Budget has expenses booked against it")]
        )

    now = time.now_utc()
    budget.is_deleted = True
    budget.deleted_at = now
    budget.updated_at = now
    repo.save_budget(budget)
    logger.info("Budget deleted: %s", budget.id)
    return DeleteOutput(success=True)


def run_budget_summary(
    inp: BudgetRefInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> BudgetSummaryOutput:
    budget, errors = load_budget(
        repo, projects, inp.budget_id, inp.actor, policy, "financials:read"
    )
    if errors or budget is None:
        return BudgetSummaryOutput(errors=errors)
    expenses = repo.list_expenses(budget.project_id, budget_id=budget.id)
    return BudgetSummaryOutput(summary=summarize_budget(budget, expenses), success=True)


# --- Expenses ---


def run_list_expenses(
    inp: ListExpensesInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> ExpenseListOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "financials:read")
    if errors or project is None:
        return ExpenseListOutput(errors=errors)
    expenses = repo.list_expenses(project.id, inp.budget_id, inp.approval_status)
    return ExpenseListOutput(expenses=expenses, success=True)


def run_get_expense(
    inp: ExpenseRefInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> ExpenseOutput:
    expense, errors = _load_expense(
        repo, projects, inp.expense_id, inp.actor, policy, "financials:read"
    )
    if errors or expense is None:
        return ExpenseOutput(errors=errors)
    return ExpenseOutput(expense=expense, success=True)


def run_create_expense(
    inp: CreateExpenseInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ExpenseOutput:
    """Submit an expense; it waits for review before it counts as spend."""
    project, errors = load_project(
        projects, inp.project_id, inp.actor, policy, "financials:submit"
    )
    if errors or project is None:
        return ExpenseOutput(errors=errors)
    if not inp.description.strip():
        return ExpenseOutput(
            errors=[OperationError("required", "Description is required", "description")]
        )

    now = time.now_utc()
    try:
        expense = Expense(
            project_id=project.id,
            budget_id=inp.budget_id,
            category_id=inp.category_id,
            description=inp.description.strip(),
            amount=inp.amount,
            date=inp.date,
            vendor=inp.vendor,
            payment_method=inp.payment_method,
            payment_status=inp.payment_status,
            notes=inp.notes,
            submitted_by=inp.actor.id,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as e:
        return ExpenseOutput(errors=_invalid(e))

    errors = _check_allocation(repo, expense)
    if errors:
        return ExpenseOutput(errors=errors)

    repo.save_expense(expense)
    logger.info(
        "Expense submitted: %s (%.2f) on project %s", expense.id, expense.amount, project.id
    )
    return ExpenseOutput(expense=expense, success=True)


def _can_change(expense: Expense, actor: User, policy: PolicyEngine) -> list[OperationError]:
    if expense.submitted_by != actor.id and not policy.can(actor, "financials:approve"):
        return [access_denied("Only the submitter or an approver can change this expense")]
    if expense.approval_status != "Pending":
        return [OperationError(CONFLICT, f"Expense is already {expense.approval_status.lower()}")]
    return []


def run_update_expense(
    inp: UpdateExpenseInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ExpenseOutput:
    expense, errors = _load_expense(
        repo, projects, inp.expense_id, inp.actor, policy, "financials:submit"
    )
    if errors or expense is None:
        return ExpenseOutput(errors=errors)
    errors = _can_change(expense, inp.actor, policy)
    if errors:
        return ExpenseOutput(errors=errors)

    changes = {k: v for k, v in inp.changes.items() if k not in FIXED_EXPENSE_FIELDS}
    if "description" in changes and not str(changes["description"] or "").strip():
        return ExpenseOutput(
            errors=[OperationError("required", "Description is required", "description")]
        )
    updated, errors = apply_changes(expense, {**changes, "updated_at": time.now_utc()})
    if errors or updated is None:
        return ExpenseOutput(errors=errors)
    if {"budget_id", "category_id"} & set(changes):
        errors = _check_allocation(repo, updated)
        if errors:
            return ExpenseOutput(errors=errors)

    repo.save_expense(updated)
    logger.info("Expense updated: %s", updated.id)
    return ExpenseOutput(expense=updated, success=True)


def run_delete_expense(
    inp: ExpenseRefInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> DeleteOutput:
    expense, errors = _load_expense(
        repo, projects, inp.expense_id, inp.actor, policy, "financials:submit"
    )
    if errors or expense is None:
        return DeleteOutput(errors=errors)
    errors = _can_change(expense, inp.actor, policy)
    if errors:
        return DeleteOutput(errors=errors)

    now = time.now_utc()
    expense.is_deleted = True
    expense.deleted_at = now
    expense.updated_at = now
    repo.save_expense(expense)
    logger.info("Expense deleted: %s", expense.id)
    return DeleteOutput(success=True)


def run_review_expense(
    inp: ReviewExpenseInput,
    repo: FinancialRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ExpenseOutput:
    """Approve or reject a pending expense."""
    expense, errors = _load_expense(
        repo, projects, inp.expense_id, inp.actor, policy, "financials:approve"
    )
    if errors or expense is None:
        return ExpenseOutput(errors=errors)
    if expense.approval_status != "Pending":
        return ExpenseOutput(
            errors=[
                OperationError(CONFLICT, f"Expense is already {expense.approval_status.lower()}")
            ]
        )

    now = time.now_utc()
    expense.approval_status = "Approved" if inp.approve else "Rejected"
    expense.reviewed_by = inp.actor.id
    expense.reviewed_at = now
    expense.updated_at = now
    if inp.notes:
        expense.notes = f"{expense.notes}\n{inp.notes}".strip()
    repo.save_expense(expense)
    logger.info("Expense %s: %s by %s", expense.approval_status.lower(), expense.id, inp.actor.id)
    return ExpenseOutput(expense=expense, success=True)

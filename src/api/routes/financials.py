from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from src.api.deps import (
    get_clock,
    get_current_user,
    get_financial_repo,
    get_policy,
    get_project_repo,
    raise_for_errors,
)
from src.api.schemas import (
    BudgetCreateRequest,
    BudgetUpdateRequest,
    ExpenseCreateRequest,
    ExpenseReviewRequest,
    ExpenseUpdateRequest,
)
from src.components.financials import (
    BudgetRefInput,
    BudgetSummary,
    CreateBudgetInput,
    CreateExpenseInput,
    ExpenseRefInput,
    ListBudgetsInput,
    ListExpensesInput,
    ReviewExpenseInput,
    UpdateBudgetInput,
    UpdateExpenseInput,
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
from src.domain.entities import Budget, Expense, User

router = APIRouter()


# --- Budgets ---


@router.get("/projects/{project_id}/budgets", response_model=list[Budget])
def list_budgets(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[Budget]:
    inp = ListBudgetsInput(actor=current_user, project_id=project_id)
    result = run_list_budgets(inp, repo, projects, policy)
    raise_for_errors(result.errors)
    return result.budgets


@router.post("/projects/{project_id}/budgets", response_model=Budget, status_code=201)
def create_budget(
    project_id: UUID,
    req: BudgetCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Budget:
    inp = CreateBudgetInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_create_budget(inp, repo, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.budget is not None
    return result.budget


@router.get("/budgets/{budget_id}", response_model=Budget)
def get_budget(
    budget_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Budget:
    result = run_get_budget(BudgetRefInput(current_user, budget_id), repo, projects, policy)
    raise_for_errors(result.errors)
    assert result.budget is not None
    return result.budget


@router.put("/budgets/{budget_id}", response_model=Budget)
def update_budget(
    budget_id: UUID,
    req: BudgetUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Budget:
    inp = UpdateBudgetInput(actor=current_user, budget_id=budget_id, changes=req.changes())
    result = run_update_budget(inp, repo, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.budget is not None
    return result.budget


@router.delete("/budgets/{budget_id}", status_code=204)
def delete_budget(
    budget_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = BudgetRefInput(actor=current_user, budget_id=budget_id)
    raise_for_errors(run_delete_budget(inp, repo, projects, policy, clock).errors)
    return Response(status_code=204)


@router.get("/budgets/{budget_id}/summary", response_model=BudgetSummary)
def budget_summary(
    budget_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> BudgetSummary:
    """Budgeted amounts per category against approved and pending spend."""
    result = run_budget_summary(BudgetRefInput(current_user, budget_id), repo, projects, policy)
    raise_for_errors(result.errors)
    assert result.summary is not None
    return result.summary


# --- Expenses ---


@router.get("/projects/{project_id}/expenses", response_model=list[Expense])
def list_expenses(
    project_id: UUID,
    budget_id: UUID | None = None,
    approval_status: str | None = None,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[Expense]:
    inp = ListExpensesInput(
        actor=current_user,
        project_id=project_id,
        budget_id=budget_id,
        approval_status=approval_status,
    )
    result = run_list_expenses(inp, repo, projects, policy)
    raise_for_errors(result.errors)
    return result.expenses


@router.post("/projects/{project_id}/expenses", response_model=Expense, status_code=201)
def create_expense(
    project_id: UUID,
    req: ExpenseCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Expense:
    inp = CreateExpenseInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_create_expense(inp, repo, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.expense is not None
    return result.expense


@router.get("/expenses/{expense_id}", response_model=Expense)
def get_expense(
    expense_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Expense:
    result = run_get_expense(ExpenseRefInput(current_user, expense_id), repo, projects, policy)
    raise_for_errors(result.errors)
    assert result.expense is not None
    return result.expense


@router.put("/expenses/{expense_id}", response_model=Expense)
def update_expense(
    expense_id: UUID,
    req: ExpenseUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Expense:
    inp = UpdateExpenseInput(actor=current_user, expense_id=expense_id, changes=req.changes())
    result = run_update_expense(inp, repo, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.expense is not None
    return result.expense


@router.delete("/expenses/{expense_id}", status_code=204)
def delete_expense(
    expense_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = ExpenseRefInput(actor=current_user, expense_id=expense_id)
    raise_for_errors(run_delete_expense(inp, repo, projects, policy, clock).errors)
    return Response(status_code=204)


def _review(
    expense_id: UUID,
    approve: bool,
    notes: str | None,
    actor: User,
    repo: Any,
    projects: Any,
    policy: Any,
    clock: Any,
) -> Expense:
    inp = ReviewExpenseInput(actor=actor, expense_id=expense_id, approve=approve, notes=notes)
    result = run_review_expense(inp, repo, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.expense is not None
    return result.expense


@router.post("/expenses/{expense_id}/approve", response_model=Expense)
def approve_expense(
    expense_id: UUID,
    req: ExpenseReviewRequest | None = None,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Expense:
    notes = req.notes if req else None
    return _review(expense_id, True, notes, current_user, repo, projects, policy, clock)


@router.post("/expenses/{expense_id}/reject", response_model=Expense)
def reject_expense(
    expense_id: UUID,
    req: ExpenseReviewRequest | None = None,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_financial_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Expense:
    notes = req.notes if req else None
    return _review(expense_id, False, notes, current_user, repo, projects, policy, clock)

"""
Budget against spend.

Only approved expenses count as spend; pending ones are reported apart so a
reviewer can see what approving them would do to the remaining amount.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from src.domain.entities import Budget, BudgetCategory, Expense

from .models import BudgetSummary, CategorySummary


def _money(value: float) -> float:
    return round(value, 2)


def _percent(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole > 0 else 0.0


def planned_cost(category: BudgetCategory) -> float:
    return sum(item.quantity * item.unit_price for item in category.items)


def _spend(expenses: Sequence[Expense], status: str) -> dict[UUID | None, float]:
    totals: dict[UUID | None, float] = {}
    for e in expenses:
        if e.approval_status == status:
            totals[e.category_id] = totals.get(e.category_id, 0.0) + e.amount
    return totals


def summarize_budget(budget: Budget, expenses: Sequence[Expense]) -> BudgetSummary:
    own = [e for e in expenses if e.budget_id == budget.id and not e.is_deleted]
    approved = _spend(own, "Approved")
    pending = _spend(own, "Pending")
    rejected = _spend(own, "Rejected")

    known = {c.id for c in budget.categories}
    categories = [
        CategorySummary(
            category_id=c.id,
            name=c.name,
            amount=_money(c.amount),
            planned=_money(planned_cost(c)),
            approved_spend=_money(approved.get(c.id, 0.0)),
            pending_spend=_money(pending.get(c.id, 0.0)),
            remaining=_money(c.amount - approved.get(c.id, 0.0)),
            percent_spent=_percent(approved.get(c.id, 0.0), c.amount),
        )
        for c in budget.categories
    ]

    allocated = sum(c.amount for c in budget.categories)
    spent = sum(approved.values())
    return BudgetSummary(
        budget_id=budget.id,
        name=budget.name,
        status=budget.status,
        total_amount=_money(budget.total_amount),
        allocated=_money(allocated),
        unallocated=_money(budget.total_amount - allocated),
        planned=_money(sum(planned_cost(c) for c in budget.categories)),
        approved_spend=_money(spent),
        pending_spend=_money(sum(pending.values())),
        rejected_spend=_money(sum(rejected.values())),
        remaining=_money(budget.total_amount - spent),
        percent_spent=_percent(spent, budget.total_amount),
        over_budget=spent > budget.total_amount,
        uncategorized_spend=_money(
            sum(amount for key, amount in approved.items() if key not in known)
        ),
        categories=categories,
    )


def project_totals(budgets: Sequence[Budget], expenses: Sequence[Expense]) -> dict[str, Any]:
    """Every live budget of a project rolled into one set of totals."""
    summaries = [summarize_budget(b, expenses) for b in budgets]
    live = [e for e in expenses if not e.is_deleted]
    return {
        "budgets": [s.model_dump() for s in summaries],
        "total_budgeted": _money(sum(s.total_amount for s in summaries)),
        "approved_spend": _money(sum(e.amount for e in live if e.approval_status == "Approved")),
        "pending_spend": _money(sum(e.amount for e in live if e.approval_status == "Pending")),
        "remaining": _money(sum(s.remaining for s in summaries)),
    }

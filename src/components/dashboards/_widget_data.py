"""
Server-side data for dashboard widgets, one aggregator per widget type.

Aggregators return plain dicts. Types with no data source in this service
answer ``{"available": False}``.
"""

from collections.abc import Callable
from datetime import date, timedelta
from typing import Any, get_args

from src.components.critical_path import analyze_schedule
from src.components.financials import project_totals
from src.domain.entities import Project, TaskStatus, Widget
from src.domain.errors import OperationError

from .ports import WidgetSources

CLOSED_STATUSES = ("Completed", "Cancelled")

Aggregator = Callable[[Widget, Project, WidgetSources, date], dict[str, Any]]

# Integer options per widget type: (default, maximum).
CONFIG_OPTIONS: dict[str, dict[str, tuple[int, int]]] = {
    "upcoming_milestones": {"days": (30, 3650)},
    "recent_activity": {"limit": (10, 100)},
}


def _bounded_int(value: Any, maximum: int) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= maximum:
        return None
    return value


def config_errors(widget: Widget) -> list[OperationError]:
    """Reject config options a widget's aggregator cannot use."""
    errors = []
    for key, (_, maximum) in CONFIG_OPTIONS.get(widget.type, {}).items():
        if key in widget.config and _bounded_int(widget.config[key], maximum) is None:
            errors.append(
                OperationError(
                    "invalid", f"config.{key} must be an integer from 1 to {maximum}", "config"
                )
            )
    return errors


def _config(widget: Widget, key: str) -> int:
    default, maximum = CONFIG_OPTIONS[widget.type][key]
    return _bounded_int(widget.config.get(key, default), maximum) or default


def _project_summary(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    tasks = src.tasks.list_by_project(project.id)
    average = sum(t.completion_percentage for t in tasks) / len(tasks) if tasks else 0.0
    return {
        "name": project.name,
        "code": project.code,
        "status": project.status,
        "budget": project.budget,
        "client_name": project.client_name,
        "start_date": project.start_date,
        "target_completion_date": project.target_completion_date,
        "days_elapsed": max((today - project.start_date).days, 0),
        "days_remaining": max((project.target_completion_date - today).days, 0),
        "task_count": len(tasks),
        "average_completion": round(average, 1),
    }


def _task_status(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    tasks = src.tasks.list_by_project(project.id)
    counts = {status: 0 for status in get_args(TaskStatus)}
    for task in tasks:
        counts[task.status] += 1
    overdue = sum(1 for t in tasks if t.due_date < today and t.status not in CLOSED_STATUSES)
    return {"status_counts": counts, "overdue": overdue, "total": len(tasks)}


def _upcoming_milestones(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    horizon = today + timedelta(days=_config(widget, "days"))
    milestones = []
    for schedule in src.schedules.list_by_project(project.id):
        for item in src.schedules.list_items(schedule.id):
            if item.type == "Milestone" and today <= item.start_date <= horizon:
                milestones.append(
                    {
                        "item_id": item.id,
                        "schedule_id": schedule.id,
                        "name": item.name,
                        "date": item.start_date,
                        "status": item.status,
                        "completion_percentage": item.completion_percentage,
                    }
                )
    milestones.sort(key=lambda m: (m["date"], m["name"]))
    return {"milestones": milestones, "window_end": horizon}


def _schedule_timeline(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    schedules = sorted(src.schedules.list_by_project(project.id), key=lambda s: s.start_date)
    return {
        "schedules": [
            {
                "id": s.id,
                "name": s.name,
                "status": s.status,
                "start_date": s.start_date,
                "end_date": s.end_date,
                "baseline_start_date": s.baseline_start_date,
                "baseline_end_date": s.baseline_end_date,
            }
            for s in schedules
        ]
    }


def _team_performance(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    rows: dict[Any, dict[str, Any]] = {}
    for task in src.tasks.list_by_project(project.id):
        row = rows.get(task.assigned_to)
        if row is None:
            user = src.users.get_by_id(task.assigned_to)
            row = rows[task.assigned_to] = {
                "user_id": task.assigned_to,
                "name": user.display_name if user else "Unknown",
                "assigned": 0,
                "completed": 0,
                "estimated_hours": 0.0,
                "actual_hours": 0.0,
            }
        row["assigned"] += 1
        row["completed"] += task.status == "Completed"
        row["estimated_hours"] += task.estimated_hours
        row["actual_hours"] += task.actual_hours
    members = sorted(rows.values(), key=lambda r: r["name"])
    for row in members:
        row["estimated_hours"] = round(row["estimated_hours"], 2)
        row["actual_hours"] = round(row["actual_hours"], 2)
    return {"members": members}


def _recent_activity(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    limit = _config(widget, "limit")
    tasks = sorted(src.tasks.list_by_project(project.id), key=lambda t: t.updated_at)
    titles = {t.id: t.title for t in tasks}
    entries = [
        {
            "kind": "task",
            "task_id": t.id,
            "title": t.title,
            "detail": t.status,
            "user_id": t.assigned_to,
            "at": t.updated_at,
        }
        for t in tasks[-limit:]
    ]
    entries.extend(
        {
            "kind": "comment",
            "task_id": c.task_id,
            "title": titles.get(c.task_id, ""),
            "detail": c.content,
            "user_id": c.created_by,
            "at": c.created_at,
        }
        for c in src.tasks.list_recent_comments(project.id, limit)
    )
    entries.sort(key=lambda e: e["at"], reverse=True)
    return {"activities": entries[:limit]}


def _risk_assessment(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    """Risks from the CPM of the newest active schedule. Raises CycleError."""
    active = src.schedules.list_by_project(project.id, "Active")
    if not active:
        return {"schedule_id": None, "risk_factors": []}
    schedule = active[0]
    report = analyze_schedule(
        schedule,
        src.schedules.list_items(schedule.id),
        src.schedules.list_dependencies(schedule.id),
        src.scheduling,
    )
    return {
        "schedule_id": schedule.id,
        "forecast_finish_date": report.forecast_finish_date,
        "finish_variance_days": report.finish_variance_days,
        "risk_factors": [r.model_dump() for r in report.risk_factors],
    }


def _metrics(category: str) -> Aggregator:
    def aggregate(
        widget: Widget, project: Project, src: WidgetSources, today: date
    ) -> dict[str, Any]:
        metrics = src.projects.list_metrics(project.id, category=category)
        return {"metrics": [m.model_dump() for m in metrics]}

    return aggregate


def _budget_overview(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    """Budgets against approved spend, alongside the project's Financial metrics."""
    data = _metrics("Financial")(widget, project, src, today)
    data["budget"] = project.budget
    data.update(
        project_totals(
            src.financials.list_budgets(project.id), src.financials.list_expenses(project.id)
        )
    )
    return data


AGGREGATORS: dict[str, Aggregator] = {
    "project_summary": _project_summary,
    "task_status": _task_status,
    "upcoming_milestones": _upcoming_milestones,
    "schedule_timeline": _schedule_timeline,
    "team_performance": _team_performance,
    "recent_activity": _recent_activity,
    "risk_assessment": _risk_assessment,
    "budget_overview": _budget_overview,
    "quality_metrics": _metrics("Quality"),
    "safety_incidents": _metrics("Safety"),
}


def widget_data(
    widget: Widget, project: Project, src: WidgetSources, today: date
) -> dict[str, Any]:
    aggregate = AGGREGATORS.get(widget.type)
    if aggregate is None:
        return {"type": widget.type, "available": False}
    return {"type": widget.type, "available": True, **aggregate(widget, project, src, today)}

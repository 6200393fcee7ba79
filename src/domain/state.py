from datetime import date, datetime
from typing import Any

from src.domain.entities import Project, ProjectStatus, Task, TaskStatus

PROJECT_TRANSITIONS: dict[str, set[str]] = {
    "Planning": {"Active", "On Hold", "Cancelled"},
    "Active": {"On Hold", "Completed", "Cancelled"},
    "On Hold": {"Active", "Cancelled"},
    "Completed": {"Active"},  # Reopen
    "Cancelled": {"Planning"},  # Restore
}

TASK_TRANSITIONS: dict[str, set[str]] = {
    "Not Started": {"In Progress", "On Hold", "Completed", "Cancelled"},
    "In Progress": {"On Hold", "Completed", "Cancelled", "Not Started"},
    "On Hold": {"In Progress", "Not Started", "Cancelled"},
    "Completed": {"In Progress"},  # Reopen
    "Cancelled": {"Not Started"},
}


def can_transition_project(current: ProjectStatus, new: ProjectStatus) -> bool:
    if current == new:
        return True
    return new in PROJECT_TRANSITIONS.get(current, set())


def can_transition_task(current: TaskStatus, new: TaskStatus) -> bool:
    if current == new:
        return True
    return new in TASK_TRANSITIONS.get(current, set())


def transition_project(
    project: Project, new_status: ProjectStatus, today: date, now: datetime
) -> Project:
    """
    Return a NEW Project with the updated status.
    Raises ValueError if transition is invalid.
    """
    if project.status == new_status:
        return project.model_copy()

    if not can_transition_project(project.status, new_status):
        raise ValueError(f"Invalid transition from {project.status} to {new_status}")

    updates: dict[str, Any] = {"status": new_status, "updated_at": now}
    if new_status == "Completed" and project.actual_completion_date is None:
        updates["actual_completion_date"] = today
    if project.status == "Completed":
        updates["actual_completion_date"] = None

    return project.model_copy(update=updates)


def transition_task(task: Task, new_status: TaskStatus, today: date, now: datetime) -> Task:
    """
    Return a NEW Task with the updated status.

    Completed implies completed_date is set and completion is 100.
    Raises ValueError if transition is invalid.
    """
    if task.status == new_status:
        return task.model_copy()

    if not can_transition_task(task.status, new_status):
        raise ValueError(f"Invalid transition from {task.status} to {new_status}")

    updates: dict[str, Any] = {"status": new_status, "updated_at": now}
    if new_status == "Completed":
        updates["completed_date"] = today
        updates["completion_percentage"] = 100.0
    elif task.status == "Completed":
        updates["completed_date"] = None

    return task.model_copy(update=updates)

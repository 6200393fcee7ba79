import logging
from datetime import datetime, timedelta
from uuid import UUID

from pydantic import ValidationError

from src.components.projects import ProjectRepoPort, UserLookupPort, apply_changes, load_project
from src.domain.cpm import Link, creates_cycle
from src.domain.entities import (
    Project,
    Task,
    TaskComment,
    TaskDependency,
    TimeEntry,
    User,
    as_utc,
)
from src.domain.errors import CONFLICT, OperationError, access_denied, not_found
from src.domain.policy import PolicyEngine
from src.domain.state import transition_task

from .models import (
    AddCommentInput,
    AddDependencyInput,
    CommentListOutput,
    CommentOutput,
    CreateTaskInput,
    DeleteOutput,
    DependencyListOutput,
    DependencyOutput,
    DependencyRefInput,
    ListTasksInput,
    LogTimeInput,
    StartTimerInput,
    TaskListOutput,
    TaskOutput,
    TaskRefInput,
    TimeEntryListOutput,
    TimeEntryOutput,
    TimeEntryRefInput,
    UpdateTaskInput,
    UpdateTimeEntryInput,
)
from .ports import TaskRepoPort, TimePort

logger = logging.getLogger(__name__)

DEPENDENCY_CYCLE = "dependency_cycle"
FIXED_TASK_FIELDS = ("id", "project_id", "created_by", "created_at", "actual_hours")


def load_task(
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    task_id: UUID,
    actor: User,
    policy: PolicyEngine,
    action: str,
) -> tuple[Task | None, Project | None, list[OperationError]]:
    task = tasks.get_by_id(task_id)
    if task is None:
        if not policy.can(actor, action):
            return None, None, [access_denied()]
        return None, None, [not_found("Task")]
    project, errors = load_project(projects, task.project_id, actor, policy, action)
    if errors:
        if errors[0].code == "not_found":
            return None, None, [not_found("Task")]
        return None, None, errors
    return task, project, []


def _validate_task(task: Task) -> list[OperationError]:
    errors = []
    if not task.title.strip():
        errors.append(OperationError("required", "Task title is required", "title"))
    if task.due_date < task.start_date:
        errors.append(
            OperationError("invalid_dates", "Due date cannot be before start date", "due_date")
        )
    if not 0 <= task.completion_percentage <= 100:
        errors.append(
            OperationError(
                "invalid_percentage",
                "Completion must be between 0 and 100",
                "completion_percentage",
            )
        )
    if task.estimated_hours < 0:
        errors.append(
            OperationError("invalid_hours", "Estimated hours cannot be negative", "estimated_hours")
        )
    return errors


def _check_references(
    task: Task,
    actor: User,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    users: UserLookupPort,
) -> list[OperationError]:
    errors = []
    assignee = users.get_by_id(task.assigned_to)
    if assignee is None or assignee.company_id != actor.company_id:
        errors.append(OperationError("not_found", "Assignee not found", "assigned_to"))
    if task.phase_id is not None:
        phase = projects.get_phase(task.phase_id)
        if phase is None or phase.project_id != task.project_id:
            errors.append(OperationError("not_found", "Phase not found", "phase_id"))
    if task.parent_task_id is not None:
        if task.parent_task_id == task.id:
            errors.append(
                OperationError(
                    "invalid_parent", "A task cannot be its own parent", "parent_task_id"
                )
            )
        else:
            parent = tasks.get_by_id(task.parent_task_id)
            if parent is None or parent.project_id != task.project_id:
                errors.append(
                    OperationError("not_found", "Parent task not found", "parent_task_id")
                )
    return errors


def _recompute_actual_hours(tasks: TaskRepoPort, task_id: UUID) -> None:
    task = tasks.get_by_id(task_id)
    if task is None:
        return
    minutes = sum(e.duration_minutes for e in tasks.list_time_entries(task_id) if not e.is_running)
    task.actual_hours = round(minutes / 60, 2)
    tasks.save(task)


def _minutes_between(start: datetime, end: datetime) -> int:
    return int(round((end - start).total_seconds() / 60))


# --- Tasks ---


def run_list_tasks(
    inp: ListTasksInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> TaskListOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "tasks:read")
    if errors or project is None:
        return TaskListOutput(errors=errors)
    found = tasks.list_by_project(project.id, inp.status, inp.assigned_to)
    return TaskListOutput(tasks=found, success=True)


def run_get_task(
    inp: TaskRefInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> TaskOutput:
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "tasks:read")
    if errors:
        return TaskOutput(errors=errors)
    return TaskOutput(task=task, success=True)


def run_create_task(
    inp: CreateTaskInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    users: UserLookupPort,
    policy: PolicyEngine,
    time: TimePort,
) -> TaskOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "tasks:edit")
    if errors or project is None:
        return TaskOutput(errors=errors)

    now = time.now_utc()
    try:
        task = Task(
            project_id=project.id,
            phase_id=inp.phase_id,
            parent_task_id=inp.parent_task_id,
            title=inp.title.strip(),
            description=inp.description,
            status=inp.status,
            priority=inp.priority,
            assigned_to=inp.assigned_to or inp.actor.id,
            created_by=inp.actor.id,
            start_date=inp.start_date,
            due_date=inp.due_date,
            estimated_hours=inp.estimated_hours,
            completion_percentage=inp.completion_percentage,
            tags=inp.tags,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as e:
        return TaskOutput(errors=[OperationError("invalid", str(e))])

    if task.status == "Completed":
        task.completed_date = time.today()
        task.completion_percentage = 100.0

    errors = _validate_task(task) + _check_references(task, inp.actor, tasks, projects, users)
    if errors:
        return TaskOutput(errors=errors)

    tasks.save(task)
    logger.info("Task created: %s in project %s", task.id, project.id)
    return TaskOutput(task=task, success=True)


def run_update_task(
    inp: UpdateTaskInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    users: UserLookupPort,
    policy: PolicyEngine,
    time: TimePort,
) -> TaskOutput:
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "tasks:edit")
    if errors or task is None:
        return TaskOutput(errors=errors)

    changes = {k: v for k, v in inp.changes.items() if k not in FIXED_TASK_FIELDS}
    new_status = changes.pop("status", None)
    changes.pop("completed_date", None)
    now = time.now_utc()

    updated, errors = apply_changes(task, {**changes, "updated_at": now})
    if errors or updated is None:
        return TaskOutput(errors=errors)

    if new_status is not None:
        try:
            updated = transition_task(updated, new_status, time.today(), now)
        except ValueError as e:
            return TaskOutput(errors=[OperationError("invalid_transition", str(e), "status")])

    errors = _validate_task(updated) + _check_references(
        updated, inp.actor, tasks, projects, users
    )
    if errors:
        return TaskOutput(errors=errors)

    tasks.save(updated)
    logger.info("Task updated: %s", updated.id)
    return TaskOutput(task=updated, success=True)


def run_delete_task(
    inp: TaskRefInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> DeleteOutput:
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "tasks:delete")
    if errors or task is None:
        return DeleteOutput(errors=errors)

    now = time.now_utc()
    task.is_deleted = True
    task.deleted_at = now
    task.updated_at = now
    tasks.save(task)
    removed = tasks.delete_dependencies_for_task(task.id)
    logger.info("Task deleted: %s (%d dependencies removed)", task.id, removed)
    return DeleteOutput(success=True)


# --- Dependencies ---


def run_list_dependencies(
    inp: TaskRefInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> DependencyListOutput:
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "tasks:read")
    if errors or task is None:
        return DependencyListOutput(errors=errors)
    return DependencyListOutput(
        predecessors=tasks.list_predecessors(task.id),
        successors=tasks.list_successors(task.id),
        success=True,
    )


def run_add_dependency(
    inp: AddDependencyInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> DependencyOutput:
    """The task in ``inp.task_id`` becomes the successor of ``predecessor_task_id``."""
    successor, project, errors = load_task(
        tasks, projects, inp.task_id, inp.actor, policy, "tasks:edit"
    )
    if errors or successor is None or project is None:
        return DependencyOutput(errors=errors)

    if inp.predecessor_task_id == successor.id:
        return DependencyOutput(
            errors=[
                OperationError(
                    "self_dependency", "A task cannot depend on itself", "predecessor_task_id"
                )
            ]
        )

    predecessor = tasks.get_by_id(inp.predecessor_task_id)
    if predecessor is None or predecessor.project_id != successor.project_id:
        return DependencyOutput(
            errors=[
                OperationError(
                    "not_found", "Predecessor task not found in this project", "predecessor_task_id"
                )
            ]
        )

    if tasks.find_dependency(predecessor.id, successor.id):
        return DependencyOutput(errors=[OperationError(CONFLICT, "Dependency already exists")])

    existing = [
        Link(d.predecessor_task_id, d.successor_task_id)
        for d in tasks.list_dependencies_for_project(project.id)
    ]
    if creates_cycle(existing, predecessor.id, successor.id):
        logger.warning("Rejected cyclic dependency %s -> %s", predecessor.id, successor.id)
        return DependencyOutput(
            errors=[OperationError(DEPENDENCY_CYCLE, "Dependency would create a cycle")]
        )

    try:
        dep = TaskDependency(
            predecessor_task_id=predecessor.id,
            successor_task_id=successor.id,
            type=inp.type,
            lag=inp.lag,
            created_by=inp.actor.id,
            created_at=time.now_utc(),
        )
    except ValidationError as e:
        return DependencyOutput(errors=[OperationError("invalid", str(e), "type")])

    tasks.save_dependency(dep)
    logger.info("Task dependency added: %s -> %s (%s)", predecessor.id, successor.id, dep.type)
    return DependencyOutput(dependency=dep, success=True)


def run_remove_dependency(
    inp: DependencyRefInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> DeleteOutput:
    dep = tasks.get_dependency(inp.dependency_id)
    if dep is None:
        return DeleteOutput(errors=[not_found("Dependency")])
    _, _, errors = load_task(
        tasks, projects, dep.successor_task_id, inp.actor, policy, "tasks:edit"
    )
    if errors:
        if errors[0].code == "not_found":
            return DeleteOutput(errors=[not_found("Dependency")])
        return DeleteOutput(errors=errors)

    tasks.delete_dependency(dep.id)
    return DeleteOutput(success=True)


# --- Comments ---


def run_list_comments(
    inp: TaskRefInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> CommentListOutput:
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "tasks:read")
    if errors or task is None:
        return CommentListOutput(errors=errors)
    return CommentListOutput(comments=tasks.list_comments(task.id), success=True)


def run_add_comment(
    inp: AddCommentInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> CommentOutput:
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "tasks:edit")
    if errors or task is None:
        return CommentOutput(errors=errors)

    content = inp.content.strip()
    if not content:
        return CommentOutput(
            errors=[OperationError("required", "Comment content is required", "content")]
        )

    comment = TaskComment(
        task_id=task.id, content=content, created_by=inp.actor.id, created_at=time.now_utc()
    )
    tasks.save_comment(comment)
    return CommentOutput(comment=comment, success=True)


# --- Time entries ---


def _load_entry(
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    entry_id: UUID,
    actor: User,
    policy: PolicyEngine,
) -> tuple[TimeEntry | None, list[OperationError]]:
    entry = tasks.get_time_entry(entry_id)
    if entry is None:
        return None, [not_found("Time entry")]
    _, _, errors = load_task(tasks, projects, entry.task_id, actor, policy, "time:log")
    if errors:
        if errors[0].code == "not_found":
            return None, [not_found("Time entry")]
        return None, errors
    if entry.user_id != actor.id and not policy.is_admin(actor):
        return None, [access_denied("Only the owner can change a time entry")]
    return entry, []


def _stop(entry: TimeEntry, now: datetime) -> TimeEntry:
    entry.end_time = now
    entry.is_running = False
    entry.duration_minutes = max(_minutes_between(entry.start_time, now), 0)
    return entry


def run_list_time_entries(
    inp: TaskRefInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> TimeEntryListOutput:
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "tasks:read")
    if errors or task is None:
        return TimeEntryListOutput(errors=errors)
    return TimeEntryListOutput(entries=tasks.list_time_entries(task.id), success=True)


def run_log_time(
    inp: LogTimeInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> TimeEntryOutput:
    """Manual entry: needs an end time or a duration in minutes."""
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "time:log")
    if errors or task is None:
        return TimeEntryOutput(errors=errors)

    start = as_utc(inp.start_time)
    if inp.end_time is not None:
        end = as_utc(inp.end_time)
        if end <= start:
            return TimeEntryOutput(
                errors=[OperationError("invalid_times", "End time must be after start", "end_time")]
            )
        minutes = _minutes_between(start, end)
    elif inp.duration_minutes is not None and inp.duration_minutes > 0:
        minutes = inp.duration_minutes
        end = start + timedelta(minutes=minutes)
    else:
        return TimeEntryOutput(
            errors=[
                OperationError(
                    "required", "Either an end time or a positive duration is required", "end_time"
                )
            ]
        )

    entry = TimeEntry(
        task_id=task.id,
        user_id=inp.actor.id,
        description=inp.description,
        start_time=start,
        end_time=end,
        duration_minutes=minutes,
        billable=inp.billable,
    )
    tasks.save_time_entry(entry)
    _recompute_actual_hours(tasks, task.id)
    return TimeEntryOutput(entry=entry, success=True)


def run_start_timer(
    inp: StartTimerInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> TimeEntryOutput:
    """Start a timer; a timer running on another task is stopped first."""
    task, _, errors = load_task(tasks, projects, inp.task_id, inp.actor, policy, "time:log")
    if errors or task is None:
        return TimeEntryOutput(errors=errors)

    now = time.now_utc()
    running = tasks.get_running_entry_for_user(inp.actor.id)
    if running is not None:
        if running.task_id == task.id:
            return TimeEntryOutput(
                errors=[OperationError(CONFLICT, "A timer is already running for this task")]
            )
        tasks.save_time_entry(_stop(running, now))
        _recompute_actual_hours(tasks, running.task_id)
        logger.info("Stopped running timer %s before starting a new one", running.id)

    entry = TimeEntry(
        task_id=task.id,
        user_id=inp.actor.id,
        description=inp.description,
        start_time=now,
        billable=inp.billable,
        is_running=True,
    )
    tasks.save_time_entry(entry)
    return TimeEntryOutput(entry=entry, success=True)


def run_stop_timer(
    inp: TimeEntryRefInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> TimeEntryOutput:
    entry, errors = _load_entry(tasks, projects, inp.entry_id, inp.actor, policy)
    if errors or entry is None:
        return TimeEntryOutput(errors=errors)
    if not entry.is_running:
        return TimeEntryOutput(errors=[OperationError("not_running", "Timer is not running")])

    tasks.save_time_entry(_stop(entry, time.now_utc()))
    _recompute_actual_hours(tasks, entry.task_id)
    return TimeEntryOutput(entry=entry, success=True)


def run_update_time_entry(
    inp: UpdateTimeEntryInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> TimeEntryOutput:
    entry, errors = _load_entry(tasks, projects, inp.entry_id, inp.actor, policy)
    if errors or entry is None:
        return TimeEntryOutput(errors=errors)

    allowed = ("description", "billable", "start_time", "end_time")
    changes = {k: v for k, v in inp.changes.items() if k in allowed}
    updated, errors = apply_changes(entry, changes)
    if errors or updated is None:
        return TimeEntryOutput(errors=errors)

    if entry.is_running and "end_time" in changes:
        error = OperationError("running", "Stop the timer before setting its end", "end_time")
        return TimeEntryOutput(errors=[error])

    updated.start_time = as_utc(updated.start_time)
    if updated.end_time is not None:
        updated.end_time = as_utc(updated.end_time)
        if updated.end_time <= updated.start_time:
            return TimeEntryOutput(
                errors=[OperationError("invalid_times", "End time must be after start", "end_time")]
            )
        if not updated.is_running:
            updated.duration_minutes = _minutes_between(updated.start_time, updated.end_time)

    tasks.save_time_entry(updated)
    _recompute_actual_hours(tasks, updated.task_id)
    return TimeEntryOutput(entry=updated, success=True)


def run_delete_time_entry(
    inp: TimeEntryRefInput, tasks: TaskRepoPort, projects: ProjectRepoPort, policy: PolicyEngine
) -> DeleteOutput:
    entry, errors = _load_entry(tasks, projects, inp.entry_id, inp.actor, policy)
    if errors or entry is None:
        return DeleteOutput(errors=errors)

    tasks.delete_time_entry(entry.id)
    _recompute_actual_hours(tasks, entry.task_id)
    return DeleteOutput(success=True)

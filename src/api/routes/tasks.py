from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from src.api.deps import (
    get_clock,
    get_current_user,
    get_policy,
    get_project_repo,
    get_rules,
    get_task_repo,
    get_user_repo,
    raise_for_errors,
)
from src.api.schemas import (
    CommentCreateRequest,
    TaskCreateRequest,
    TaskDependencyCreateRequest,
    TaskUpdateRequest,
    TimeEntryCreateRequest,
    TimeEntryUpdateRequest,
    TimerStartRequest,
)
from src.components.critical_path import CriticalPathReport, TaskCPMInput, run_task_cpm
from src.components.tasks import (
    AddCommentInput,
    AddDependencyInput,
    CreateTaskInput,
    DependencyRefInput,
    ListTasksInput,
    LogTimeInput,
    StartTimerInput,
    TaskRefInput,
    TimeEntryRefInput,
    UpdateTaskInput,
    UpdateTimeEntryInput,
    run_add_comment,
    run_add_dependency,
    run_create_task,
    run_delete_task,
    run_delete_time_entry,
    run_get_task,
    run_list_comments,
    run_list_dependencies,
    run_list_tasks,
    run_list_time_entries,
    run_log_time,
    run_remove_dependency,
    run_start_timer,
    run_stop_timer,
    run_update_task,
    run_update_time_entry,
)
from src.domain.entities import Task, TaskComment, TaskDependency, TimeEntry, User
from src.rules.models import Rules

router = APIRouter()


# --- Project task collection ---


@router.get("/projects/{project_id}/tasks", response_model=list[Task])
def list_tasks(
    project_id: UUID,
    status: str | None = None,
    assigned_to: UUID | None = None,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[Task]:
    inp = ListTasksInput(
        actor=current_user, project_id=project_id, status=status, assigned_to=assigned_to
    )
    result = run_list_tasks(inp, tasks, projects, policy)
    raise_for_errors(result.errors)
    return result.tasks


@router.post("/projects/{project_id}/tasks", response_model=Task, status_code=201)
def create_task(
    project_id: UUID,
    req: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    users: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Task:
    inp = CreateTaskInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_create_task(inp, tasks, projects, users, policy, clock)
    raise_for_errors(result.errors)
    assert result.task is not None
    return result.task


@router.get("/projects/{project_id}/tasks/critical-path", response_model=CriticalPathReport)
def task_critical_path(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    rules: Rules = Depends(get_rules),
) -> CriticalPathReport:
    """CPM over the project's task network."""
    inp = TaskCPMInput(actor=current_user, project_id=project_id)
    result = run_task_cpm(inp, tasks, projects, policy, rules.scheduling)
    raise_for_errors(result.errors)
    assert result.report is not None
    return result.report


# --- Single task ---


@router.get("/tasks/{task_id}", response_model=Task)
def get_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Task:
    inp = TaskRefInput(actor=current_user, task_id=task_id)
    result = run_get_task(inp, tasks, projects, policy)
    raise_for_errors(result.errors)
    assert result.task is not None
    return result.task


@router.put("/tasks/{task_id}", response_model=Task)
def update_task(
    task_id: UUID,
    req: TaskUpdateRequest,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    users: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Task:
    inp = UpdateTaskInput(actor=current_user, task_id=task_id, changes=req.changes())
    result = run_update_task(inp, tasks, projects, users, policy, clock)
    raise_for_errors(result.errors)
    assert result.task is not None
    return result.task


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = TaskRefInput(actor=current_user, task_id=task_id)
    raise_for_errors(run_delete_task(inp, tasks, projects, policy, clock).errors)
    return Response(status_code=204)


# --- Dependencies ---


@router.get("/tasks/{task_id}/dependencies")
def list_dependencies(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> dict[str, list[TaskDependency]]:
    inp = TaskRefInput(actor=current_user, task_id=task_id)
    result = run_list_dependencies(inp, tasks, projects, policy)
    raise_for_errors(result.errors)
    return {"predecessors": result.predecessors, "successors": result.successors}


@router.post("/tasks/{task_id}/dependencies", response_model=TaskDependency, status_code=201)
def add_dependency(
    task_id: UUID,
    req: TaskDependencyCreateRequest,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> TaskDependency:
    """Make ``task_id`` depend on ``predecessor_task_id``."""
    inp = AddDependencyInput(actor=current_user, task_id=task_id, **req.model_dump())
    result = run_add_dependency(inp, tasks, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.dependency is not None
    return result.dependency


@router.delete("/tasks/dependencies/{dependency_id}", status_code=204)
def remove_dependency(
    dependency_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Response:
    inp = DependencyRefInput(actor=current_user, dependency_id=dependency_id)
    raise_for_errors(run_remove_dependency(inp, tasks, projects, policy).errors)
    return Response(status_code=204)


# --- Comments ---


@router.get("/tasks/{task_id}/comments", response_model=list[TaskComment])
def list_comments(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[TaskComment]:
    inp = TaskRefInput(actor=current_user, task_id=task_id)
    result = run_list_comments(inp, tasks, projects, policy)
    raise_for_errors(result.errors)
    return result.comments


@router.post("/tasks/{task_id}/comments", response_model=TaskComment, status_code=201)
def add_comment(
    task_id: UUID,
    req: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> TaskComment:
    inp = AddCommentInput(actor=current_user, task_id=task_id, content=req.content)
    result = run_add_comment(inp, tasks, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.comment is not None
    return result.comment


# --- Time entries ---


@router.get("/tasks/{task_id}/time-entries", response_model=list[TimeEntry])
def list_time_entries(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[TimeEntry]:
    inp = TaskRefInput(actor=current_user, task_id=task_id)
    result = run_list_time_entries(inp, tasks, projects, policy)
    raise_for_errors(result.errors)
    return result.entries


@router.post("/tasks/{task_id}/time-entries", response_model=TimeEntry, status_code=201)
def log_time(
    task_id: UUID,
    req: TimeEntryCreateRequest,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> TimeEntry:
    inp = LogTimeInput(actor=current_user, task_id=task_id, **req.model_dump())
    result = run_log_time(inp, tasks, projects, policy)
    raise_for_errors(result.errors)
    assert result.entry is not None
    return result.entry


@router.post("/tasks/{task_id}/time-entries/start", response_model=TimeEntry, status_code=201)
def start_timer(
    task_id: UUID,
    req: TimerStartRequest,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> TimeEntry:
    inp = StartTimerInput(actor=current_user, task_id=task_id, **req.model_dump())
    result = run_start_timer(inp, tasks, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.entry is not None
    return result.entry


@router.put("/time-entries/{entry_id}/stop", response_model=TimeEntry)
def stop_timer(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> TimeEntry:
    inp = TimeEntryRefInput(actor=current_user, entry_id=entry_id)
    result = run_stop_timer(inp, tasks, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.entry is not None
    return result.entry


@router.put("/time-entries/{entry_id}", response_model=TimeEntry)
def update_time_entry(
    entry_id: UUID,
    req: TimeEntryUpdateRequest,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> TimeEntry:
    inp = UpdateTimeEntryInput(actor=current_user, entry_id=entry_id, changes=req.changes())
    result = run_update_time_entry(inp, tasks, projects, policy)
    raise_for_errors(result.errors)
    assert result.entry is not None
    return result.entry


@router.delete("/time-entries/{entry_id}", status_code=204)
def delete_time_entry(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    tasks: Any = Depends(get_task_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Response:
    inp = TimeEntryRefInput(actor=current_user, entry_id=entry_id)
    raise_for_errors(run_delete_time_entry(inp, tasks, projects, policy).errors)
    return Response(status_code=204)

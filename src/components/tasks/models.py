from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from uuid import UUID

from src.domain.entities import Task, TaskComment, TaskDependency, TimeEntry, User
from src.domain.errors import OperationError


@dataclass
class ListTasksInput:
    actor: User
    project_id: UUID
    status: str | None = None
    assigned_to: UUID | None = None


@dataclass
class TaskRefInput:
    actor: User
    task_id: UUID


@dataclass
class CreateTaskInput:
    actor: User
    project_id: UUID
    title: str
    start_date: date
    due_date: date
    assigned_to: UUID | None = None
    description: str = ""
    status: str = "Not Started"
    priority: str = "Medium"
    phase_id: UUID | None = None
    parent_task_id: UUID | None = None
    estimated_hours: float = 0.0
    completion_percentage: float = 0.0
    tags: list[str] = field(default_factory=list)


@dataclass
class UpdateTaskInput:
    actor: User
    task_id: UUID
    changes: dict[str, Any]


@dataclass
class AddDependencyInput:
    actor: User
    task_id: UUID
    predecessor_task_id: UUID
    type: str = "FS"
    lag: float = 0.0


@dataclass
class DependencyRefInput:
    actor: User
    dependency_id: UUID


@dataclass
class AddCommentInput:
    actor: User
    task_id: UUID
    content: str


@dataclass
class LogTimeInput:
    actor: User
    task_id: UUID
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: int | None = None
    description: str = ""
    billable: bool = False


@dataclass
class StartTimerInput:
    actor: User
    task_id: UUID
    description: str = ""
    billable: bool = False


@dataclass
class TimeEntryRefInput:
    actor: User
    entry_id: UUID


@dataclass
class UpdateTimeEntryInput:
    actor: User
    entry_id: UUID
    changes: dict[str, Any]


# --- Outputs ---


@dataclass
class TaskOutput:
    task: Task | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class TaskListOutput:
    tasks: list[Task] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DependencyOutput:
    dependency: TaskDependency | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DependencyListOutput:
    predecessors: list[TaskDependency] = field(default_factory=list)
    successors: list[TaskDependency] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class CommentOutput:
    comment: TaskComment | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class CommentListOutput:
    comments: list[TaskComment] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class TimeEntryOutput:
    entry: TimeEntry | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class TimeEntryListOutput:
    entries: list[TimeEntry] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DeleteOutput:
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False

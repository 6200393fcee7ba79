from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import Task, TaskComment, TaskDependency, TimeEntry


class TaskRepoPort(Protocol):
    def save(self, task: Task) -> Task: ...
    def get_by_id(self, task_id: UUID) -> Task | None: ...
    def list_by_project(
        self, project_id: UUID, status: str | None = None, assigned_to: UUID | None = None
    ) -> list[Task]: ...

    def save_dependency(self, dep: TaskDependency) -> TaskDependency: ...
    def get_dependency(self, dep_id: UUID) -> TaskDependency | None: ...
    def find_dependency(
        self, predecessor_id: UUID, successor_id: UUID
    ) -> TaskDependency | None: ...
    def list_predecessors(self, task_id: UUID) -> list[TaskDependency]: ...
    def list_successors(self, task_id: UUID) -> list[TaskDependency]: ...
    def list_dependencies_for_project(self, project_id: UUID) -> list[TaskDependency]: ...
    def delete_dependency(self, dep_id: UUID) -> None: ...
    def delete_dependencies_for_task(self, task_id: UUID) -> int: ...

    def save_comment(self, comment: TaskComment) -> TaskComment: ...
    def list_comments(self, task_id: UUID) -> list[TaskComment]: ...

    def save_time_entry(self, entry: TimeEntry) -> TimeEntry: ...
    def get_time_entry(self, entry_id: UUID) -> TimeEntry | None: ...
    def get_running_entry_for_user(self, user_id: UUID) -> TimeEntry | None: ...
    def list_time_entries(self, task_id: UUID) -> list[TimeEntry]: ...
    def delete_time_entry(self, entry_id: UUID) -> None: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
    def today(self) -> date: ...

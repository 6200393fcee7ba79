from typing import Any
from uuid import UUID

from src.adapters.sqlite.base import SQLiteRepo, TableMapping
from src.domain.entities import Task, TaskComment, TaskDependency, TimeEntry

TASKS = TableMapping("tasks", Task, json_fields=("tags",))
TASK_DEPENDENCIES = TableMapping("task_dependencies", TaskDependency)
TASK_COMMENTS = TableMapping("task_comments", TaskComment)
TIME_ENTRIES = TableMapping("time_entries", TimeEntry)


class SQLiteTaskRepo(SQLiteRepo):
    """Tasks with their dependencies, comments and time entries."""

    # --- tasks ---

    def save(self, task: Task) -> Task:
        return self._upsert(TASKS, task)

    def get_by_id(self, task_id: UUID) -> Task | None:
        return self._select_one(TASKS, "id = ? AND is_deleted = 0", (task_id,))

    def list_by_project(
        self,
        project_id: UUID,
        status: str | None = None,
        assigned_to: UUID | None = None,
    ) -> list[Task]:
        where = "project_id = ? AND is_deleted = 0"
        params: tuple[Any, ...] = (project_id,)
        if status:
            where += " AND status = ?"
            params += (status,)
        if assigned_to:
            where += " AND assigned_to = ?"
            params += (assigned_to,)
        return self._select_many(TASKS, where, params, order_by="start_date ASC, created_at ASC")

    # --- dependencies ---

    def save_dependency(self, dep: TaskDependency) -> TaskDependency:
        return self._upsert(TASK_DEPENDENCIES, dep)

    def get_dependency(self, dep_id: UUID) -> TaskDependency | None:
        return self._select_one(TASK_DEPENDENCIES, "id = ?", (dep_id,))

    def find_dependency(self, predecessor_id: UUID, successor_id: UUID) -> TaskDependency | None:
        return self._select_one(
            TASK_DEPENDENCIES,
            "predecessor_task_id = ? AND successor_task_id = ?",
            (predecessor_id, successor_id),
        )

    def list_predecessors(self, task_id: UUID) -> list[TaskDependency]:
        return self._select_many(TASK_DEPENDENCIES, "successor_task_id = ?", (task_id,))

    def list_successors(self, task_id: UUID) -> list[TaskDependency]:
        return self._select_many(TASK_DEPENDENCIES, "predecessor_task_id = ?", (task_id,))

    def list_dependencies_for_project(self, project_id: UUID) -> list[TaskDependency]:
        return self._select_many(
            TASK_DEPENDENCIES,
            "predecessor_task_id IN "
            "(SELECT id FROM tasks WHERE project_id = ? AND is_deleted = 0) "
            "AND successor_task_id IN "
            "(SELECT id FROM tasks WHERE project_id = ? AND is_deleted = 0)",
            (project_id, project_id),
        )

    def delete_dependency(self, dep_id: UUID) -> None:
        self._execute("DELETE FROM task_dependencies WHERE id = ?", (dep_id,))

    def delete_dependencies_for_task(self, task_id: UUID) -> int:
        return self._execute(
            "DELETE FROM task_dependencies WHERE predecessor_task_id = ? OR successor_task_id = ?",
            (task_id, task_id),
        )

    # --- comments ---

    def save_comment(self, comment: TaskComment) -> TaskComment:
        return self._upsert(TASK_COMMENTS, comment)

    def list_comments(self, task_id: UUID) -> list[TaskComment]:
        return self._select_many(
            TASK_COMMENTS, "task_id = ?", (task_id,), order_by="created_at DESC"
        )

    def list_recent_comments(self, project_id: UUID, limit: int) -> list[TaskComment]:
        return self._select_many(
            TASK_COMMENTS,
            "task_id IN (SELECT id FROM tasks WHERE project_id = ? AND is_deleted = 0)",
            (project_id,),
            order_by="created_at DESC",
            limit=limit,
        )

    # --- time entries ---

    def save_time_entry(self, entry: TimeEntry) -> TimeEntry:
        return self._upsert(TIME_ENTRIES, entry)

    def get_time_entry(self, entry_id: UUID) -> TimeEntry | None:
        return self._select_one(TIME_ENTRIES, "id = ?", (entry_id,))

    def get_running_entry_for_user(self, user_id: UUID) -> TimeEntry | None:
        return self._select_one(
            TIME_ENTRIES, "user_id = ? AND is_running = 1 ORDER BY start_time DESC", (user_id,)
        )

    def list_time_entries(self, task_id: UUID) -> list[TimeEntry]:
        return self._select_many(
            TIME_ENTRIES, "task_id = ?", (task_id,), order_by="start_time DESC"
        )

    def delete_time_entry(self, entry_id: UUID) -> None:
        self._execute("DELETE FROM time_entries WHERE id = ?", (entry_id,))

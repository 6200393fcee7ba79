from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from src.components.financials import FinancialRepoPort
from src.components.projects import ProjectRepoPort, UserLookupPort
from src.components.schedules import ScheduleRepoPort
from src.domain.entities import Dashboard, Task, TaskComment, TaskDependency
from src.rules.models import SchedulingRules


class DashboardRepoPort(Protocol):
    def save(self, dashboard: Dashboard) -> Dashboard: ...
    def get_by_id(self, dashboard_id: UUID) -> Dashboard | None: ...
    def list_by_project(self, project_id: UUID) -> list[Dashboard]: ...
    def clear_default(self, project_id: UUID, except_id: UUID | None = None) -> int: ...


class TaskSourcePort(Protocol):
    def list_by_project(
        self, project_id: UUID, status: str | None = None, assigned_to: UUID | None = None
    ) -> list[Task]: ...
    def list_dependencies_for_project(self, project_id: UUID) -> list[TaskDependency]: ...
    def list_recent_comments(self, project_id: UUID, limit: int) -> list[TaskComment]: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
    def today(self) -> date: ...


@dataclass
class WidgetSources:
    """Repositories widget data is aggregated from."""

    projects: ProjectRepoPort
    tasks: TaskSourcePort
    schedules: ScheduleRepoPort
    financials: FinancialRepoPort
    users: UserLookupPort
    scheduling: SchedulingRules

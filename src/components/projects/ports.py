from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import Project, ProjectMember, ProjectMetric, ProjectPhase, User


class ProjectRepoPort(Protocol):
    def save(self, project: Project) -> Project: ...
    def get_by_id(self, project_id: UUID) -> Project | None: ...
    def get_by_code(self, company_id: UUID, code: str) -> Project | None: ...
    def list_by_company(self, company_id: UUID, status: str | None = None) -> list[Project]: ...

    def save_phase(self, phase: ProjectPhase) -> ProjectPhase: ...
    def get_phase(self, phase_id: UUID) -> ProjectPhase | None: ...
    def list_phases(self, project_id: UUID) -> list[ProjectPhase]: ...
    def delete_phase(self, phase_id: UUID) -> None: ...

    def save_member(self, member: ProjectMember) -> ProjectMember: ...
    def get_member(self, member_id: UUID) -> ProjectMember | None: ...
    def get_active_member(self, project_id: UUID, user_id: UUID) -> ProjectMember | None: ...
    def list_members(self, project_id: UUID) -> list[ProjectMember]: ...

    def save_metric(self, metric: ProjectMetric) -> ProjectMetric: ...
    def get_metric(self, metric_id: UUID) -> ProjectMetric | None: ...
    def list_metrics(
        self, project_id: UUID, category: str | None = None
    ) -> list[ProjectMetric]: ...
    def delete_metric(self, metric_id: UUID) -> None: ...


class UserLookupPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
    def today(self) -> date: ...

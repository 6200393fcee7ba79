from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import UUID

from src.domain.entities import Project, ProjectMember, ProjectMetric, ProjectPhase, User
from src.domain.errors import OperationError


# --- Inputs ---


@dataclass
class ListProjectsInput:
    actor: User
    status: str | None = None


@dataclass
class GetProjectInput:
    actor: User
    project_id: UUID


@dataclass
class CreateProjectInput:
    actor: User
    name: str
    code: str
    start_date: date
    target_completion_date: date
    project_manager_id: UUID | None = None
    description: str = ""
    client_name: str | None = None
    status: str = "Planning"
    budget: float = 0.0
    location: str | None = None
    project_type: str | None = None
    tags: list[str] = field(default_factory=list)
    custom_fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class UpdateProjectInput:
    actor: User
    project_id: UUID
    changes: dict[str, Any]


@dataclass
class DeleteProjectInput:
    actor: User
    project_id: UUID


@dataclass
class AddPhaseInput:
    actor: User
    project_id: UUID
    name: str
    start_date: date
    end_date: date
    description: str = ""
    order: int | None = None
    status: str = "Not Started"
    completion_percentage: float = 0.0
    budget: float = 0.0


@dataclass
class UpdatePhaseInput:
    actor: User
    project_id: UUID
    phase_id: UUID
    changes: dict[str, Any]


@dataclass
class AddMemberInput:
    actor: User
    project_id: UUID
    user_id: UUID
    role: str
    permissions: dict[str, str] = field(default_factory=dict)


@dataclass
class UpdateMemberInput:
    actor: User
    project_id: UUID
    member_id: UUID
    changes: dict[str, Any]


@dataclass
class AddMetricInput:
    actor: User
    project_id: UUID
    name: str
    category: str
    value: float
    date: date
    target: float | None = None
    unit: str | None = None


@dataclass
class UpdateMetricInput:
    actor: User
    project_id: UUID
    metric_id: UUID
    changes: dict[str, Any]


@dataclass
class ChildRefInput:
    """Identifies a phase, member or metric of a project."""

    actor: User
    project_id: UUID
    child_id: UUID


# --- Outputs ---


@dataclass
class ProjectOutput:
    project: Project | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class ProjectListOutput:
    projects: list[Project] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class PhaseOutput:
    phase: ProjectPhase | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class PhaseListOutput:
    phases: list[ProjectPhase] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class MemberOutput:
    member: ProjectMember | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class MemberListOutput:
    members: list[ProjectMember] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class MetricOutput:
    metric: ProjectMetric | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class MetricListOutput:
    metrics: list[ProjectMetric] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DeleteOutput:
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False

import logging
import re
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from src.domain.entities import Project, ProjectMember, ProjectMetric, ProjectPhase, User
from src.domain.errors import CONFLICT, OperationError, access_denied, not_found
from src.domain.policy import PolicyEngine
from src.domain.state import transition_project
from src.rules.models import ProjectsRules

from .models import (
    AddMemberInput,
    AddMetricInput,
    AddPhaseInput,
    ChildRefInput,
    CreateProjectInput,
    DeleteOutput,
    DeleteProjectInput,
    GetProjectInput,
    ListProjectsInput,
    MemberListOutput,
    MemberOutput,
    MetricListOutput,
    MetricOutput,
    PhaseListOutput,
    PhaseOutput,
    ProjectListOutput,
    ProjectOutput,
    UpdateMemberInput,
    UpdateMetricInput,
    UpdatePhaseInput,
    UpdateProjectInput,
)
from .ports import ProjectRepoPort, TimePort, UserLookupPort

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

PROJECT_MANAGER_ROLE = "Project Manager"
CREATOR_ROLE = "Creator"
IMMUTABLE_PROJECT_FIELDS = ("id", "code", "company_id", "created_by", "created_at")


def load_project(
    repo: ProjectRepoPort,
    project_id: UUID,
    actor: User,
    policy: PolicyEngine,
    action: str,
) -> tuple[Project | None, list[OperationError]]:
    """
    Fetch a project the actor may act on.

    Projects of other companies are reported as not found.
    """
    if not policy.can(actor, action):
        return None, [access_denied()]
    project = repo.get_by_id(project_id)
    if project is None or not policy.same_company(actor, project):
        return None, [not_found("Project")]
    return project, []


def apply_changes(entity: M, changes: dict[str, Any]) -> tuple[M | None, list[OperationError]]:
    """Return a re-validated copy of ``entity`` with ``changes`` applied."""
    try:
        updated = type(entity).model_validate({**entity.model_dump(), **changes})
    except ValidationError as e:
        return None, [
            OperationError("invalid", err["msg"], ".".join(str(p) for p in err["loc"]))
            for err in e.errors()
        ]
    return updated, []


def _validate_project(project: Project) -> list[OperationError]:
    errors = []
    if not project.name.strip():
        errors.append(OperationError("required", "Project name is required", "name"))
    if project.target_completion_date < project.start_date:
        errors.append(
            OperationError(
                "invalid_dates",
                "Target completion date cannot be before start date",
                "target_completion_date",
            )
        )
    if project.budget < 0:
        errors.append(OperationError("invalid_budget", "Budget cannot be negative", "budget"))
    return errors


def _validate_code(code: str, rules: ProjectsRules) -> list[OperationError]:
    if not code:
        return [OperationError("required", "Project code is required", "code")]
    if len(code) > rules.max_code_length:
        return [
            OperationError(
                "invalid_code",
                f"Project code exceeds {rules.max_code_length} characters",
                "code",
            )
        ]
    if not re.match(rules.code_pattern, code):
        return [OperationError("invalid_code", f"Invalid project code: {code}", "code")]
    return []


def _company_user(
    users: UserLookupPort, actor: User, user_id: UUID
) -> tuple[User | None, list[OperationError]]:
    user = users.get_by_id(user_id)
    if user is None or user.company_id != actor.company_id:
        return None, [not_found("User")]
    return user, []


def _ensure_member(
    repo: ProjectRepoPort,
    project: Project,
    user_id: UUID,
    role: str,
    actor: User,
    time: TimePort,
) -> ProjectMember:
    existing = repo.get_active_member(project.id, user_id)
    if existing:
        if existing.role != role:
            existing.role = role
            repo.save_member(existing)
        return existing
    return repo.save_member(
        ProjectMember(
            project_id=project.id,
            user_id=user_id,
            role=role,
            joined_at=time.now_utc(),
            created_by=actor.id,
        )
    )


# --- Projects ---


def run_list_projects(
    inp: ListProjectsInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> ProjectListOutput:
    if not policy.can(inp.actor, "projects:read"):
        return ProjectListOutput(errors=[access_denied()])
    if inp.actor.company_id is None:
        return ProjectListOutput(success=True)
    projects = repo.list_by_company(inp.actor.company_id, inp.status)
    return ProjectListOutput(projects=projects, success=True)


def run_get_project(
    inp: GetProjectInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> ProjectOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:read")
    if errors:
        return ProjectOutput(errors=errors)
    return ProjectOutput(project=project, success=True)


def run_create_project(
    inp: CreateProjectInput,
    repo: ProjectRepoPort,
    users: UserLookupPort,
    policy: PolicyEngine,
    rules: ProjectsRules,
    time: TimePort,
) -> ProjectOutput:
    actor = inp.actor
    if not policy.can(actor, "projects:create"):
        return ProjectOutput(errors=[access_denied()])
    if actor.company_id is None:
        return ProjectOutput(errors=[access_denied("User does not belong to a company")])

    code = inp.code.strip().upper()
    errors = _validate_code(code, rules)

    manager_id = inp.project_manager_id or actor.id
    if manager_id != actor.id:
        _, manager_errors = _company_user(users, actor, manager_id)
        errors.extend(manager_errors)

    now = time.now_utc()
    try:
        project = Project(
            company_id=actor.company_id,
            name=inp.name.strip(),
            code=code,
            description=inp.description,
            client_name=inp.client_name,
            status=inp.status,
            start_date=inp.start_date,
            target_completion_date=inp.target_completion_date,
            budget=inp.budget,
            location=inp.location,
            project_type=inp.project_type,
            project_manager_id=manager_id,
            created_by=actor.id,
            tags=inp.tags,
            custom_fields=inp.custom_fields,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as e:
        return ProjectOutput(errors=errors + [OperationError("invalid", str(e))])

    if project.status == "Completed":
        project.actual_completion_date = now.date()
    errors.extend(_validate_project(project))
    if errors:
        return ProjectOutput(errors=errors)

    if repo.get_by_code(actor.company_id, code):
        return ProjectOutput(
            errors=[OperationError(CONFLICT, f"Project code '{code}' already exists", "code")]
        )

    repo.save(project)
    _ensure_member(repo, project, manager_id, PROJECT_MANAGER_ROLE, actor, time)
    if manager_id != actor.id:
        _ensure_member(repo, project, actor.id, CREATOR_ROLE, actor, time)

    logger.info("Project created: %s (%s)", project.id, project.code)
    return ProjectOutput(project=project, success=True)


def run_update_project(
    inp: UpdateProjectInput,
    repo: ProjectRepoPort,
    users: UserLookupPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ProjectOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return ProjectOutput(errors=errors)

    changes = dict(inp.changes)
    for key in IMMUTABLE_PROJECT_FIELDS:
        if key in changes and str(changes[key]) != str(getattr(project, key)):
            error = OperationError("immutable", f"{key} cannot be changed", key)
            return ProjectOutput(errors=[error])
        changes.pop(key, None)

    new_status = changes.pop("status", None)
    now = time.now_utc()

    old_manager = project.project_manager_id
    new_manager = changes.get("project_manager_id")
    if new_manager is not None and str(new_manager) != str(old_manager):
        _, manager_errors = _company_user(users, inp.actor, UUID(str(new_manager)))
        if manager_errors:
            return ProjectOutput(errors=manager_errors)

    updated, errors = apply_changes(project, {**changes, "updated_at": now})
    if errors or updated is None:
        return ProjectOutput(errors=errors)

    if new_status is not None:
        try:
            updated = transition_project(updated, new_status, time.today(), now)
        except ValueError as e:
            return ProjectOutput(errors=[OperationError("invalid_transition", str(e), "status")])

    errors = _validate_project(updated)
    if errors:
        return ProjectOutput(errors=errors)

    repo.save(updated)

    if updated.project_manager_id != old_manager:
        previous = repo.get_active_member(updated.id, old_manager)
        if previous and previous.role == PROJECT_MANAGER_ROLE:
            previous.removed_at = now
            repo.save_member(previous)
        _ensure_member(
            repo, updated, updated.project_manager_id, PROJECT_MANAGER_ROLE, inp.actor, time
        )

    logger.info("Project updated: %s", updated.id)
    return ProjectOutput(project=updated, success=True)


def run_delete_project(
    inp: DeleteProjectInput, repo: ProjectRepoPort, policy: PolicyEngine, time: TimePort
) -> DeleteOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:delete")
    if errors or project is None:
        return DeleteOutput(errors=errors)

    now = time.now_utc()
    project.is_deleted = True
    project.deleted_at = now
    project.updated_at = now
    repo.save(project)
    logger.info("Project deleted: %s", project.id)
    return DeleteOutput(success=True)


# --- Phases ---


def _validate_phase(phase: ProjectPhase) -> list[OperationError]:
    errors = []
    if not phase.name.strip():
        errors.append(OperationError("required", "Phase name is required", "name"))
    if phase.end_date < phase.start_date:
        errors.append(
            OperationError("invalid_dates", "End date cannot be before start date", "end_date")
        )
    if not 0 <= phase.completion_percentage <= 100:
        errors.append(
            OperationError(
                "invalid_percentage",
                "Completion must be between 0 and 100",
                "completion_percentage",
            )
        )
    if phase.budget < 0:
        errors.append(OperationError("invalid_budget", "Budget cannot be negative", "budget"))
    return errors


def run_list_phases(
    inp: GetProjectInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> PhaseListOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:read")
    if errors or project is None:
        return PhaseListOutput(errors=errors)
    return PhaseListOutput(phases=repo.list_phases(project.id), success=True)


def run_add_phase(inp: AddPhaseInput, repo: ProjectRepoPort, policy: PolicyEngine) -> PhaseOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return PhaseOutput(errors=errors)

    order = inp.order
    if order is None:
        existing = repo.list_phases(project.id)
        order = max((p.order for p in existing), default=0) + 1

    try:
        phase = ProjectPhase(
            project_id=project.id,
            name=inp.name.strip(),
            description=inp.description,
            order=order,
            start_date=inp.start_date,
            end_date=inp.end_date,
            status=inp.status,
            completion_percentage=inp.completion_percentage,
            budget=inp.budget,
        )
    except ValidationError as e:
        return PhaseOutput(errors=[OperationError("invalid", str(e))])

    errors = _validate_phase(phase)
    if errors:
        return PhaseOutput(errors=errors)

    repo.save_phase(phase)
    logger.info("Phase %s added to project %s", phase.id, project.id)
    return PhaseOutput(phase=phase, success=True)


def run_update_phase(
    inp: UpdatePhaseInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> PhaseOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return PhaseOutput(errors=errors)

    phase = repo.get_phase(inp.phase_id)
    if phase is None or phase.project_id != project.id:
        return PhaseOutput(errors=[not_found("Phase")])

    changes = {k: v for k, v in inp.changes.items() if k not in ("id", "project_id")}
    updated, errors = apply_changes(phase, changes)
    if errors or updated is None:
        return PhaseOutput(errors=errors)
    errors = _validate_phase(updated)
    if errors:
        return PhaseOutput(errors=errors)

    repo.save_phase(updated)
    return PhaseOutput(phase=updated, success=True)


def run_remove_phase(
    inp: ChildRefInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> DeleteOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return DeleteOutput(errors=errors)

    phase = repo.get_phase(inp.child_id)
    if phase is None or phase.project_id != project.id:
        return DeleteOutput(errors=[not_found("Phase")])

    repo.delete_phase(phase.id)
    logger.info("Phase %s removed from project %s", phase.id, project.id)
    return DeleteOutput(success=True)


# --- Members ---


def run_list_members(
    inp: GetProjectInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> MemberListOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:read")
    if errors or project is None:
        return MemberListOutput(errors=errors)
    return MemberListOutput(members=repo.list_members(project.id), success=True)


def run_add_member(
    inp: AddMemberInput,
    repo: ProjectRepoPort,
    users: UserLookupPort,
    policy: PolicyEngine,
    time: TimePort,
) -> MemberOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return MemberOutput(errors=errors)

    _, errors = _company_user(users, inp.actor, inp.user_id)
    if errors:
        return MemberOutput(errors=errors)
    if not inp.role.strip():
        return MemberOutput(errors=[OperationError("required", "Role is required", "role")])
    if repo.get_active_member(project.id, inp.user_id):
        return MemberOutput(
            errors=[OperationError(CONFLICT, "User is already a project member", "user_id")]
        )

    member = ProjectMember(
        project_id=project.id,
        user_id=inp.user_id,
        role=inp.role.strip(),
        permissions=inp.permissions,
        joined_at=time.now_utc(),
        created_by=inp.actor.id,
    )
    repo.save_member(member)
    logger.info("User %s joined project %s as %s", inp.user_id, project.id, member.role)
    return MemberOutput(member=member, success=True)


def run_update_member(
    inp: UpdateMemberInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> MemberOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return MemberOutput(errors=errors)

    member = repo.get_member(inp.member_id)
    if member is None or member.project_id != project.id or member.removed_at is not None:
        return MemberOutput(errors=[not_found("Member")])

    changes = {k: v for k, v in inp.changes.items() if k in ("role", "permissions")}
    updated, errors = apply_changes(member, changes)
    if errors or updated is None:
        return MemberOutput(errors=errors)
    if not updated.role.strip():
        return MemberOutput(errors=[OperationError("required", "Role is required", "role")])

    repo.save_member(updated)
    return MemberOutput(member=updated, success=True)


def run_remove_member(
    inp: ChildRefInput, repo: ProjectRepoPort, policy: PolicyEngine, time: TimePort
) -> DeleteOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return DeleteOutput(errors=errors)

    member = repo.get_member(inp.child_id)
    if member is None or member.project_id != project.id or member.removed_at is not None:
        return DeleteOutput(errors=[not_found("Member")])

    member.removed_at = time.now_utc()
    repo.save_member(member)
    logger.info("User %s removed from project %s", member.user_id, project.id)
    return DeleteOutput(success=True)


# --- Metrics ---


def _validate_metric(metric: ProjectMetric) -> list[OperationError]:
    errors = []
    if not metric.name.strip():
        errors.append(OperationError("required", "Metric name is required", "name"))
    if not metric.category.strip():
        errors.append(OperationError("required", "Metric category is required", "category"))
    return errors


def run_list_metrics(
    inp: GetProjectInput,
    repo: ProjectRepoPort,
    policy: PolicyEngine,
    category: str | None = None,
) -> MetricListOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:read")
    if errors or project is None:
        return MetricListOutput(errors=errors)
    return MetricListOutput(metrics=repo.list_metrics(project.id, category), success=True)


def run_add_metric(
    inp: AddMetricInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> MetricOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return MetricOutput(errors=errors)

    metric = ProjectMetric(
        project_id=project.id,
        name=inp.name.strip(),
        category=inp.category.strip(),
        value=inp.value,
        target=inp.target,
        unit=inp.unit,
        date=inp.date,
    )
    errors = _validate_metric(metric)
    if errors:
        return MetricOutput(errors=errors)

    repo.save_metric(metric)
    return MetricOutput(metric=metric, success=True)


def run_update_metric(
    inp: UpdateMetricInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> MetricOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return MetricOutput(errors=errors)

    metric = repo.get_metric(inp.metric_id)
    if metric is None or metric.project_id != project.id:
        return MetricOutput(errors=[not_found("Metric")])

    changes = {k: v for k, v in inp.changes.items() if k not in ("id", "project_id")}
    updated, errors = apply_changes(metric, changes)
    if errors or updated is None:
        return MetricOutput(errors=errors)
    errors = _validate_metric(updated)
    if errors:
        return MetricOutput(errors=errors)

    repo.save_metric(updated)
    return MetricOutput(metric=updated, success=True)


def run_remove_metric(
    inp: ChildRefInput, repo: ProjectRepoPort, policy: PolicyEngine
) -> DeleteOutput:
    project, errors = load_project(repo, inp.project_id, inp.actor, policy, "projects:edit")
    if errors or project is None:
        return DeleteOutput(errors=errors)

    metric = repo.get_metric(inp.child_id)
    if metric is None or metric.project_id != project.id:
        return DeleteOutput(errors=[not_found("Metric")])

    repo.delete_metric(metric.id)
    return DeleteOutput(success=True)

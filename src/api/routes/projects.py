from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from src.api.deps import (
    get_clock,
    get_current_user,
    get_policy,
    get_project_repo,
    get_rules,
    get_user_repo,
    raise_for_errors,
)
from src.api.schemas import (
    MemberCreateRequest,
    MemberUpdateRequest,
    MetricCreateRequest,
    MetricUpdateRequest,
    PhaseCreateRequest,
    PhaseUpdateRequest,
    ProjectCreateRequest,
    ProjectUpdateRequest,
)
from src.components.projects import (
    AddMemberInput,
    AddMetricInput,
    AddPhaseInput,
    ChildRefInput,
    CreateProjectInput,
    DeleteProjectInput,
    GetProjectInput,
    ListProjectsInput,
    UpdateMemberInput,
    UpdateMetricInput,
    UpdatePhaseInput,
    UpdateProjectInput,
    run_add_member,
    run_add_metric,
    run_add_phase,
    run_create_project,
    run_delete_project,
    run_get_project,
    run_list_members,
    run_list_metrics,
    run_list_phases,
    run_list_projects,
    run_remove_member,
    run_remove_metric,
    run_remove_phase,
    run_update_member,
    run_update_metric,
    run_update_phase,
    run_update_project,
)
from src.domain.entities import Project, ProjectMember, ProjectMetric, ProjectPhase, User
from src.rules.models import Rules

router = APIRouter()


@router.get("", response_model=list[Project])
def list_projects(
    status: str | None = None,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[Project]:
    """List the company's projects, newest first."""
    result = run_list_projects(ListProjectsInput(actor=current_user, status=status), repo, policy)
    raise_for_errors(result.errors)
    return result.projects


@router.post("", response_model=Project, status_code=201)
def create_project(
    req: ProjectCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    users: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Project:
    inp = CreateProjectInput(actor=current_user, **req.model_dump())
    result = run_create_project(inp, repo, users, policy, rules.projects, clock)
    raise_for_errors(result.errors)
    assert result.project is not None
    return result.project


@router.get("/{project_id}", response_model=Project)
def get_project(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Project:
    inp = GetProjectInput(actor=current_user, project_id=project_id)
    result = run_get_project(inp, repo, policy)
    raise_for_errors(result.errors)
    assert result.project is not None
    return result.project


@router.put("/{project_id}", response_model=Project)
def update_project(
    project_id: UUID,
    req: ProjectUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    users: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Project:
    inp = UpdateProjectInput(actor=current_user, project_id=project_id, changes=req.changes())
    result = run_update_project(inp, repo, users, policy, clock)
    raise_for_errors(result.errors)
    assert result.project is not None
    return result.project


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = DeleteProjectInput(actor=current_user, project_id=project_id)
    raise_for_errors(run_delete_project(inp, repo, policy, clock).errors)
    return Response(status_code=204)


# --- Phases ---


@router.get("/{project_id}/phases", response_model=list[ProjectPhase])
def list_phases(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[ProjectPhase]:
    inp = GetProjectInput(actor=current_user, project_id=project_id)
    result = run_list_phases(inp, repo, policy)
    raise_for_errors(result.errors)
    return result.phases


@router.post("/{project_id}/phases", response_model=ProjectPhase, status_code=201)
def add_phase(
    project_id: UUID,
    req: PhaseCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> ProjectPhase:
    inp = AddPhaseInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_add_phase(inp, repo, policy)
    raise_for_errors(result.errors)
    assert result.phase is not None
    return result.phase


@router.put("/{project_id}/phases/{phase_id}", response_model=ProjectPhase)
def update_phase(
    project_id: UUID,
    phase_id: UUID,
    req: PhaseUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> ProjectPhase:
    inp = UpdatePhaseInput(
        actor=current_user, project_id=project_id, phase_id=phase_id, changes=req.changes()
    )
    result = run_update_phase(inp, repo, policy)
    raise_for_errors(result.errors)
    assert result.phase is not None
    return result.phase


@router.delete("/{project_id}/phases/{phase_id}", status_code=204)
def remove_phase(
    project_id: UUID,
    phase_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Response:
    inp = ChildRefInput(actor=current_user, project_id=project_id, child_id=phase_id)
    raise_for_errors(run_remove_phase(inp, repo, policy).errors)
    return Response(status_code=204)


# --- Members ---


@router.get("/{project_id}/members", response_model=list[ProjectMember])
def list_members(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[ProjectMember]:
    inp = GetProjectInput(actor=current_user, project_id=project_id)
    result = run_list_members(inp, repo, policy)
    raise_for_errors(result.errors)
    return result.members


@router.post("/{project_id}/members", response_model=ProjectMember, status_code=201)
def add_member(
    project_id: UUID,
    req: MemberCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    users: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> ProjectMember:
    inp = AddMemberInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_add_member(inp, repo, users, policy, clock)
    raise_for_errors(result.errors)
    assert result.member is not None
    return result.member


@router.put("/{project_id}/members/{member_id}", response_model=ProjectMember)
def update_member(
    project_id: UUID,
    member_id: UUID,
    req: MemberUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> ProjectMember:
    inp = UpdateMemberInput(
        actor=current_user, project_id=project_id, member_id=member_id, changes=req.changes()
    )
    result = run_update_member(inp, repo, policy)
    raise_for_errors(result.errors)
    assert result.member is not None
    return result.member


@router.delete("/{project_id}/members/{member_id}", status_code=204)
def remove_member(
    project_id: UUID,
    member_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = ChildRefInput(actor=current_user, project_id=project_id, child_id=member_id)
    raise_for_errors(run_remove_member(inp, repo, policy, clock).errors)
    return Response(status_code=204)


# --- Metrics ---


@router.get("/{project_id}/metrics", response_model=list[ProjectMetric])
def list_metrics(
    project_id: UUID,
    category: str | None = None,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[ProjectMetric]:
    inp = GetProjectInput(actor=current_user, project_id=project_id)
    result = run_list_metrics(inp, repo, policy, category=category)
    raise_for_errors(result.errors)
    return result.metrics


@router.post("/{project_id}/metrics", response_model=ProjectMetric, status_code=201)
def add_metric(
    project_id: UUID,
    req: MetricCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> ProjectMetric:
    inp = AddMetricInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_add_metric(inp, repo, policy)
    raise_for_errors(result.errors)
    assert result.metric is not None
    return result.metric


@router.put("/{project_id}/metrics/{metric_id}", response_model=ProjectMetric)
def update_metric(
    project_id: UUID,
    metric_id: UUID,
    req: MetricUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> ProjectMetric:
    inp = UpdateMetricInput(
        actor=current_user, project_id=project_id, metric_id=metric_id, changes=req.changes()
    )
    result = run_update_metric(inp, repo, policy)
    raise_for_errors(result.errors)
    assert result.metric is not None
    return result.metric


@router.delete("/{project_id}/metrics/{metric_id}", status_code=204)
def remove_metric(
    project_id: UUID,
    metric_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Response:
    inp = ChildRefInput(actor=current_user, project_id=project_id, child_id=metric_id)
    raise_for_errors(run_remove_metric(inp, repo, policy).errors)
    return Response(status_code=204)

"""
Projects component - Projects with their phases, members and metrics.

Every operation is scoped to the actor's company.
"""

from .component import (
    CREATOR_ROLE,
    PROJECT_MANAGER_ROLE,
    apply_changes,
    load_project,
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

__all__ = [
    # Entry points
    "load_project",
    "apply_changes",
    "run_list_projects",
    "run_get_project",
    "run_create_project",
    "run_update_project",
    "run_delete_project",
    "run_list_phases",
    "run_add_phase",
    "run_update_phase",
    "run_remove_phase",
    "run_list_members",
    "run_add_member",
    "run_update_member",
    "run_remove_member",
    "run_list_metrics",
    "run_add_metric",
    "run_update_metric",
    "run_remove_metric",
    "PROJECT_MANAGER_ROLE",
    "CREATOR_ROLE",
    # Models
    "AddMemberInput",
    "AddMetricInput",
    "AddPhaseInput",
    "ChildRefInput",
    "CreateProjectInput",
    "DeleteOutput",
    "DeleteProjectInput",
    "GetProjectInput",
    "ListProjectsInput",
    "MemberListOutput",
    "MemberOutput",
    "MetricListOutput",
    "MetricOutput",
    "PhaseListOutput",
    "PhaseOutput",
    "ProjectListOutput",
    "ProjectOutput",
    "UpdateMemberInput",
    "UpdateMetricInput",
    "UpdatePhaseInput",
    "UpdateProjectInput",
    # Ports
    "ProjectRepoPort",
    "TimePort",
    "UserLookupPort",
]

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response

from src.api.deps import (
    get_clock,
    get_current_user,
    get_dashboard_repo,
    get_policy,
    get_project_repo,
    get_rules,
    get_user_repo,
    get_widget_sources,
    raise_for_errors,
)
from src.api.schemas import (
    DashboardCreateRequest,
    DashboardUpdateRequest,
    ShareRequest,
    WidgetCreateRequest,
    WidgetUpdateRequest,
)
from src.components.dashboards import (
    AddWidgetInput,
    CreateDashboardInput,
    DashboardRefInput,
    ListDashboardsInput,
    ShareDashboardInput,
    UnshareDashboardInput,
    UpdateDashboardInput,
    UpdateWidgetInput,
    WidgetRefInput,
    WidgetSources,
    run_add_widget,
    run_create_dashboard,
    run_delete_dashboard,
    run_get_dashboard,
    run_list_dashboards,
    run_remove_widget,
    run_share_dashboard,
    run_unshare_dashboard,
    run_update_dashboard,
    run_update_widget,
    run_widget_data,
)
from src.domain.entities import Dashboard, DashboardShare, User, Widget
from src.rules.models import Rules

router = APIRouter()


@router.get("/projects/{project_id}/dashboards", response_model=list[Dashboard])
def list_dashboards(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[Dashboard]:
    """Dashboards of the project the caller may see."""
    inp = ListDashboardsInput(actor=current_user, project_id=project_id)
    result = run_list_dashboards(inp, repo, projects, policy)
    raise_for_errors(result.errors)
    return result.dashboards


@router.post("/projects/{project_id}/dashboards", response_model=Dashboard, status_code=201)
def create_dashboard(
    project_id: UUID,
    req: DashboardCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Dashboard:
    inp = CreateDashboardInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_create_dashboard(inp, repo, projects, policy, rules.dashboards, clock)
    raise_for_errors(result.errors)
    assert result.dashboard is not None
    return result.dashboard


@router.get("/dashboards/{dashboard_id}", response_model=Dashboard)
def get_dashboard(
    dashboard_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
) -> Dashboard:
    return _fetch(dashboard_id, current_user, repo, policy)


@router.put("/dashboards/{dashboard_id}", response_model=Dashboard)
def update_dashboard(
    dashboard_id: UUID,
    req: DashboardUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Dashboard:
    inp = UpdateDashboardInput(actor=current_user, dashboard_id=dashboard_id, changes=req.changes())
    result = run_update_dashboard(inp, repo, policy, rules.dashboards, clock)
    raise_for_errors(result.errors)
    assert result.dashboard is not None
    return result.dashboard


@router.put("/dashboards/{dashboard_id}/default", response_model=Dashboard)
def set_default_dashboard(
    dashboard_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Dashboard:
    """Make this the project's default dashboard."""
    inp = UpdateDashboardInput(
        actor=current_user, dashboard_id=dashboard_id, changes={"is_default": True}
    )
    result = run_update_dashboard(inp, repo, policy, rules.dashboards, clock)
    raise_for_errors(result.errors)
    assert result.dashboard is not None
    return result.dashboard


@router.delete("/dashboards/{dashboard_id}", status_code=204)
def delete_dashboard(
    dashboard_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = DashboardRefInput(actor=current_user, dashboard_id=dashboard_id)
    raise_for_errors(run_delete_dashboard(inp, repo, policy, clock).errors)
    return Response(status_code=204)


# --- Sharing ---


@router.post("/dashboards/{dashboard_id}/share", response_model=list[DashboardShare])
def share_dashboard(
    dashboard_id: UUID,
    req: ShareRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    users: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> list[DashboardShare]:
    inp = ShareDashboardInput(
        actor=current_user,
        dashboard_id=dashboard_id,
        user_id=req.user_id,
        permission=req.permission,
    )
    result = run_share_dashboard(inp, repo, users, policy, clock)
    raise_for_errors(result.errors)
    return result.shared_with


@router.delete(
    "/dashboards/{dashboard_id}/share/{user_id}", response_model=list[DashboardShare]
)
def unshare_dashboard(
    dashboard_id: UUID,
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> list[DashboardShare]:
    inp = UnshareDashboardInput(actor=current_user, dashboard_id=dashboard_id, user_id=user_id)
    result = run_unshare_dashboard(inp, repo, policy, clock)
    raise_for_errors(result.errors)
    return result.shared_with


# --- Widgets ---


@router.get("/dashboards/{dashboard_id}/widgets", response_model=list[Widget])
def list_widgets(
    dashboard_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
) -> list[Widget]:
    return _fetch(dashboard_id, current_user, repo, policy).widgets


@router.post("/dashboards/{dashboard_id}/widgets", response_model=Widget, status_code=201)
def add_widget(
    dashboard_id: UUID,
    req: WidgetCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Widget:
    inp = AddWidgetInput(actor=current_user, dashboard_id=dashboard_id, widget=req.payload())
    result = run_add_widget(inp, repo, policy, rules.dashboards, clock)
    raise_for_errors(result.errors)
    assert result.widget is not None
    return result.widget


@router.get("/dashboards/{dashboard_id}/widgets/{widget_id}", response_model=Widget)
def get_widget(
    dashboard_id: UUID,
    widget_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
) -> Widget:
    dashboard = _fetch(dashboard_id, current_user, repo, policy)
    for widget in dashboard.widgets:
        if widget.id == widget_id:
            return widget
    raise HTTPException(status_code=404, detail="Widget not found")


@router.put("/dashboards/{dashboard_id}/widgets/{widget_id}", response_model=Widget)
def update_widget(
    dashboard_id: UUID,
    widget_id: UUID,
    req: WidgetUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Widget:
    inp = UpdateWidgetInput(
        actor=current_user, dashboard_id=dashboard_id, widget_id=widget_id, changes=req.changes()
    )
    result = run_update_widget(inp, repo, policy, clock)
    raise_for_errors(result.errors)
    assert result.widget is not None
    return result.widget


@router.delete("/dashboards/{dashboard_id}/widgets/{widget_id}", status_code=204)
def remove_widget(
    dashboard_id: UUID,
    widget_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = WidgetRefInput(actor=current_user, dashboard_id=dashboard_id, widget_id=widget_id)
    raise_for_errors(run_remove_widget(inp, repo, policy, clock).errors)
    return Response(status_code=204)


@router.get("/dashboards/{dashboard_id}/widgets/{widget_id}/data")
def widget_data(
    dashboard_id: UUID,
    widget_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: Any = Depends(get_dashboard_repo),
    sources: WidgetSources = Depends(get_widget_sources),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    """Computed payload for one widget; unsupported types report ``available: false``."""
    inp = WidgetRefInput(actor=current_user, dashboard_id=dashboard_id, widget_id=widget_id)
    result = run_widget_data(inp, repo, sources, policy, clock)
    raise_for_errors(result.errors)
    return result.data


def _fetch(dashboard_id: UUID, actor: User, repo: Any, policy: Any) -> Dashboard:
    inp = DashboardRefInput(actor=actor, dashboard_id=dashboard_id)
    result = run_get_dashboard(inp, repo, policy)
    raise_for_errors(result.errors)
    assert result.dashboard is not None
    return result.dashboard

import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from src.components.critical_path import DEPENDENCY_CYCLE
from src.components.projects import ProjectRepoPort, UserLookupPort, apply_changes, load_project
from src.domain.cpm import CycleError
from src.domain.entities import Dashboard, DashboardShare, User, Widget
from src.domain.errors import CONFLICT, OperationError, access_denied, not_found
from src.domain.policy import PolicyEngine
from src.rules.models import DashboardsRules

from ._widget_data import config_errors, widget_data
from .models import (
    AddWidgetInput,
    CreateDashboardInput,
    DashboardListOutput,
    DashboardOutput,
    DashboardRefInput,
    DeleteOutput,
    ListDashboardsInput,
    ShareDashboardInput,
    ShareOutput,
    UnshareDashboardInput,
    UpdateDashboardInput,
    UpdateWidgetInput,
    WidgetDataOutput,
    WidgetOutput,
    WidgetRefInput,
)
from .ports import DashboardRepoPort, TimePort, WidgetSources

logger = logging.getLogger(__name__)

DASHBOARD_FIELDS = ("name", "description", "columns", "widgets", "is_default")
FIXED_WIDGET_FIELDS = ("id",)


def _load_dashboard(
    repo: DashboardRepoPort,
    dashboard_id: UUID,
    actor: User,
    policy: PolicyEngine,
) -> tuple[Dashboard | None, list[OperationError]]:
    """Fetch a dashboard visible to the actor; hidden ones are reported as not found."""
    if not policy.can(actor, "dashboards:read"):
        return None, [access_denied()]
    dashboard = repo.get_by_id(dashboard_id)
    if dashboard is None or not policy.can_view_dashboard(actor, dashboard):
        return None, [not_found("Dashboard")]
    return dashboard, []


def _invalid(e: ValidationError) -> list[OperationError]:
    return [
        OperationError("invalid", err["msg"], ".".join(str(p) for p in err["loc"]))
        for err in e.errors()
    ]


def build_widget(data: dict[str, Any], rules: DashboardsRules) -> Widget:
    """Validate a widget payload, filling in a title and refresh interval."""
    values = dict(data)
    widget_type = str(values.get("type", ""))
    if not values.get("title"):
        values["title"] = widget_type.replace("_", " ").title()
    values.setdefault("refresh_interval", rules.default_refresh_seconds)
    return Widget.model_validate(values)


def _build_widgets(
    payloads: list[dict[str, Any]], rules: DashboardsRules
) -> tuple[list[Widget], list[OperationError]]:
    if len(payloads) > rules.max_widgets:
        return [], [_too_many_widgets(rules)]
    widgets = []
    for payload in payloads:
        try:
            widget = build_widget(payload, rules)
        except ValidationError as e:
            return [], _invalid(e)
        errors = config_errors(widget)
        if errors:
            return [], errors
        widgets.append(widget)
    return widgets, []


def _too_many_widgets(rules: DashboardsRules) -> OperationError:
    return OperationError(
        "too_many_widgets", f"A dashboard holds at most {rules.max_widgets} widgets", "widgets"
    )


def _default_widgets(rules: DashboardsRules) -> list[dict[str, Any]]:
    return [w.model_dump() for w in rules.default_widgets]


def _find_widget(dashboard: Dashboard, widget_id: UUID) -> int | None:
    for index, widget in enumerate(dashboard.widgets):
        if widget.id == widget_id:
            return index
    return None


def _load_editable(
    repo: DashboardRepoPort, dashboard_id: UUID, actor: User, policy: PolicyEngine
) -> tuple[Dashboard | None, list[OperationError]]:
    dashboard, errors = _load_dashboard(repo, dashboard_id, actor, policy)
    if errors or dashboard is None:
        return None, errors
    if not policy.can_edit_dashboard(actor, dashboard):
        return None, [access_denied("You cannot edit this dashboard")]
    return dashboard, []


# --- Dashboards ---


def run_list_dashboards(
    inp: ListDashboardsInput,
    repo: DashboardRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> DashboardListOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "dashboards:read")
    if errors or project is None:
        return DashboardListOutput(errors=errors)
    dashboards = [
        d for d in repo.list_by_project(project.id) if policy.can_view_dashboard(inp.actor, d)
    ]
    return DashboardListOutput(dashboards=dashboards, success=True)


def run_get_dashboard(
    inp: DashboardRefInput, repo: DashboardRepoPort, policy: PolicyEngine
) -> DashboardOutput:
    dashboard, errors = _load_dashboard(repo, inp.dashboard_id, inp.actor, policy)
    if errors:
        return DashboardOutput(errors=errors)
    return DashboardOutput(dashboard=dashboard, success=True)


def run_create_dashboard(
    inp: CreateDashboardInput,
    repo: DashboardRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    rules: DashboardsRules,
    time: TimePort,
) -> DashboardOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "dashboards:edit")
    if errors or project is None:
        return DashboardOutput(errors=errors)

    name = inp.name.strip()
    if not name:
        return DashboardOutput(errors=[OperationError("required", "Name is required", "name")])

    payloads = inp.widgets if inp.widgets is not None else _default_widgets(rules)
    widgets, errors = _build_widgets(payloads, rules)
    if errors:
        return DashboardOutput(errors=errors)

    now = time.now_utc()
    try:
        dashboard = Dashboard(
            name=name,
            description=inp.description,
            project_id=project.id,
            company_id=project.company_id,
            created_by=inp.actor.id,
            is_default=inp.is_default,
            columns=inp.columns,
            widgets=widgets,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as e:
        return DashboardOutput(errors=_invalid(e))

    if dashboard.is_default:
        repo.clear_default(project.id)
    repo.save(dashboard)
    logger.info("Dashboard created: %s (project %s)", dashboard.id, project.id)
    return DashboardOutput(dashboard=dashboard, success=True)


def run_update_dashboard(
    inp: UpdateDashboardInput,
    repo: DashboardRepoPort,
    policy: PolicyEngine,
    rules: DashboardsRules,
    time: TimePort,
) -> DashboardOutput:
    dashboard, errors = _load_editable(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return DashboardOutput(errors=errors)

    changes = {k: v for k, v in inp.changes.items() if k in DASHBOARD_FIELDS}
    if "name" in changes:
        changes["name"] = str(changes["name"] or "").strip()
        if not changes["name"]:
            error = OperationError("required", "Name is required", "name")
            return DashboardOutput(errors=[error])
    if "widgets" in changes:
        widgets, errors = _build_widgets(list(changes["widgets"] or []), rules)
        if errors:
            return DashboardOutput(errors=errors)
        changes["widgets"] = [w.model_dump() for w in widgets]

    updated, errors = apply_changes(dashboard, changes)
    if errors or updated is None:
        return DashboardOutput(errors=errors)
    updated.updated_at = time.now_utc()

    if updated.is_default and not dashboard.is_default:
        repo.clear_default(updated.project_id, except_id=updated.id)
    repo.save(updated)
    return DashboardOutput(dashboard=updated, success=True)


def run_delete_dashboard(
    inp: DashboardRefInput, repo: DashboardRepoPort, policy: PolicyEngine, time: TimePort
) -> DeleteOutput:
    dashboard, errors = _load_dashboard(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return DeleteOutput(errors=errors)
    if not policy.can_delete_dashboard(inp.actor, dashboard):
        return DeleteOutput(errors=[access_denied("You cannot delete this dashboard")])

    if dashboard.is_default:
        defaults = [d for d in repo.list_by_project(dashboard.project_id) if d.is_default]
        if len(defaults) <= 1:
            return DeleteOutput(
                errors=[OperationError(CONFLICT, "Cannot delete the only default dashboard")]
            )

    dashboard.is_active = False
    dashboard.updated_at = time.now_utc()
    repo.save(dashboard)
    logger.info("Dashboard deleted: %s", dashboard.id)
    return DeleteOutput(success=True)


def _load_own(
    repo: DashboardRepoPort, dashboard_id: UUID, actor: User, policy: PolicyEngine
) -> tuple[Dashboard | None, list[OperationError]]:
    dashboard, errors = _load_dashboard(repo, dashboard_id, actor, policy)
    if errors or dashboard is None:
        return None, errors
    if dashboard.created_by != actor.id:
        return None, [access_denied("Only the creator can share this dashboard")]
    return dashboard, []


def run_share_dashboard(
    inp: ShareDashboardInput,
    repo: DashboardRepoPort,
    users: UserLookupPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ShareOutput:
    dashboard, errors = _load_own(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return ShareOutput(errors=errors)
    if inp.user_id == inp.actor.id:
        error = OperationError("invalid", "Cannot share a dashboard with yourself", "user_id")
        return ShareOutput(errors=[error])
    user = users.get_by_id(inp.user_id)
    if user is None or user.company_id != inp.actor.company_id:
        return ShareOutput(errors=[not_found("User")])

    try:
        share = DashboardShare(user_id=inp.user_id, permission=inp.permission)
    except ValidationError as e:
        return ShareOutput(errors=_invalid(e))

    dashboard.shared_with = [s for s in dashboard.shared_with if s.user_id != inp.user_id]
    dashboard.shared_with.append(share)
    dashboard.updated_at = time.now_utc()
    repo.save(dashboard)
    logger.info("Dashboard %s shared with %s (%s)", dashboard.id, user.id, share.permission)
    return ShareOutput(shared_with=dashboard.shared_with, success=True)


def run_unshare_dashboard(
    inp: UnshareDashboardInput, repo: DashboardRepoPort, policy: PolicyEngine, time: TimePort
) -> ShareOutput:
    dashboard, errors = _load_own(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return ShareOutput(errors=errors)
    remaining = [s for s in dashboard.shared_with if s.user_id != inp.user_id]
    if len(remaining) == len(dashboard.shared_with):
        return ShareOutput(errors=[not_found("Share")])
    dashboard.shared_with = remaining
    dashboard.updated_at = time.now_utc()
    repo.save(dashboard)
    return ShareOutput(shared_with=remaining, success=True)


# --- Widgets ---


def run_add_widget(
    inp: AddWidgetInput,
    repo: DashboardRepoPort,
    policy: PolicyEngine,
    rules: DashboardsRules,
    time: TimePort,
) -> WidgetOutput:
    dashboard, errors = _load_editable(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return WidgetOutput(errors=errors)
    if len(dashboard.widgets) >= rules.max_widgets:
        return WidgetOutput(errors=[_too_many_widgets(rules)])
    try:
        widget = build_widget(inp.widget, rules)
    except ValidationError as e:
        return WidgetOutput(errors=_invalid(e))
    errors = config_errors(widget)
    if errors:
        return WidgetOutput(errors=errors)

    dashboard.widgets.append(widget)
    dashboard.updated_at = time.now_utc()
    repo.save(dashboard)
    return WidgetOutput(widget=widget, dashboard=dashboard, success=True)


def run_update_widget(
    inp: UpdateWidgetInput, repo: DashboardRepoPort, policy: PolicyEngine, time: TimePort
) -> WidgetOutput:
    dashboard, errors = _load_editable(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return WidgetOutput(errors=errors)
    index = _find_widget(dashboard, inp.widget_id)
    if index is None:
        return WidgetOutput(errors=[not_found("Widget")])

    changes = {k: v for k, v in inp.changes.items() if k not in FIXED_WIDGET_FIELDS}
    widget, errors = apply_changes(dashboard.widgets[index], changes)
    if not errors and widget is not None:
        errors = config_errors(widget)
    if errors or widget is None:
        return WidgetOutput(errors=errors)

    dashboard.widgets[index] = widget
    dashboard.updated_at = time.now_utc()
    repo.save(dashboard)
    return WidgetOutput(widget=widget, dashboard=dashboard, success=True)


def run_remove_widget(
    inp: WidgetRefInput, repo: DashboardRepoPort, policy: PolicyEngine, time: TimePort
) -> WidgetOutput:
    dashboard, errors = _load_editable(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return WidgetOutput(errors=errors)
    index = _find_widget(dashboard, inp.widget_id)
    if index is None:
        return WidgetOutput(errors=[not_found("Widget")])

    removed = dashboard.widgets.pop(index)
    dashboard.updated_at = time.now_utc()
    repo.save(dashboard)
    return WidgetOutput(widget=removed, dashboard=dashboard, success=True)


def run_widget_data(
    inp: WidgetRefInput,
    repo: DashboardRepoPort,
    sources: WidgetSources,
    policy: PolicyEngine,
    time: TimePort,
) -> WidgetDataOutput:
    dashboard, errors = _load_dashboard(repo, inp.dashboard_id, inp.actor, policy)
    if errors or dashboard is None:
        return WidgetDataOutput(errors=errors)
    index = _find_widget(dashboard, inp.widget_id)
    if index is None:
        return WidgetDataOutput(errors=[not_found("Widget")])
    project = sources.projects.get_by_id(dashboard.project_id)
    if project is None:
        return WidgetDataOutput(errors=[not_found("Project")])

    widget = dashboard.widgets[index]
    try:
        data = widget_data(widget, project, sources, time.today())
    except CycleError as e:
        logger.warning("Widget %s: %s", widget.id, e)
        return WidgetDataOutput(widget=widget, errors=[OperationError(DEPENDENCY_CYCLE, str(e))])
    return WidgetDataOutput(widget=widget, data=data, success=True)

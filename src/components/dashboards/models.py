from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from src.domain.entities import Dashboard, DashboardShare, User, Widget
from src.domain.errors import OperationError


@dataclass
class ListDashboardsInput:
    actor: User
    project_id: UUID


@dataclass
class DashboardRefInput:
    actor: User
    dashboard_id: UUID


@dataclass
class CreateDashboardInput:
    actor: User
    project_id: UUID
    name: str
    description: str = ""
    columns: int = 3
    widgets: list[dict[str, Any]] | None = None
    is_default: bool = False


@dataclass
class UpdateDashboardInput:
    actor: User
    dashboard_id: UUID
    changes: dict[str, Any]


@dataclass
class ShareDashboardInput:
    actor: User
    dashboard_id: UUID
    user_id: UUID
    permission: str = "view"


@dataclass
class UnshareDashboardInput:
    actor: User
    dashboard_id: UUID
    user_id: UUID


@dataclass
class AddWidgetInput:
    actor: User
    dashboard_id: UUID
    widget: dict[str, Any]


@dataclass
class WidgetRefInput:
    actor: User
    dashboard_id: UUID
    widget_id: UUID


@dataclass
class UpdateWidgetInput:
    actor: User
    dashboard_id: UUID
    widget_id: UUID
    changes: dict[str, Any]


# --- Outputs ---


@dataclass
class DashboardOutput:
    dashboard: Dashboard | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DashboardListOutput:
    dashboards: list[Dashboard] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class ShareOutput:
    shared_with: list[DashboardShare] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class WidgetOutput:
    widget: Widget | None = None
    dashboard: Dashboard | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class WidgetDataOutput:
    widget: Widget | None = None
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DeleteOutput:
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False

"""
Dashboards component - Per-project dashboards, their widgets and widget data.
"""

from ._widget_data import AGGREGATORS, widget_data
from .component import (
    build_widget,
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
from .ports import DashboardRepoPort, TaskSourcePort, TimePort, WidgetSources

__all__ = [
    "AGGREGATORS",
    "build_widget",
    "widget_data",
    "run_add_widget",
    "run_create_dashboard",
    "run_delete_dashboard",
    "run_get_dashboard",
    "run_list_dashboards",
    "run_remove_widget",
    "run_share_dashboard",
    "run_unshare_dashboard",
    "run_update_dashboard",
    "run_update_widget",
    "run_widget_data",
    "AddWidgetInput",
    "CreateDashboardInput",
    "DashboardListOutput",
    "DashboardOutput",
    "DashboardRefInput",
    "DeleteOutput",
    "ListDashboardsInput",
    "ShareDashboardInput",
    "ShareOutput",
    "UnshareDashboardInput",
    "UpdateDashboardInput",
    "UpdateWidgetInput",
    "WidgetDataOutput",
    "WidgetOutput",
    "WidgetRefInput",
    "DashboardRepoPort",
    "TaskSourcePort",
    "TimePort",
    "WidgetSources",
]

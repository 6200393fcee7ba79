"""
Schedules component - Schedules, their item hierarchy, item dependencies
and calendar events.
"""

from .component import (
    DEPENDENCY_CYCLE,
    descendant_ids,
    inclusive_days,
    load_schedule,
    run_add_item_dependency,
    run_create_event,
    run_create_item,
    run_create_schedule,
    run_delete_event,
    run_delete_item,
    run_delete_schedule,
    run_get_schedule,
    run_list_events,
    run_list_item_dependencies,
    run_list_items,
    run_list_schedules,
    run_remove_item_dependency,
    run_update_event,
    run_update_item,
    run_update_schedule,
)
from .models import (
    AddItemDependencyInput,
    CreateEventInput,
    CreateItemInput,
    CreateScheduleInput,
    DeleteOutput,
    DependencyListOutput,
    DependencyOutput,
    DependencyRefInput,
    EventListOutput,
    EventOutput,
    EventRefInput,
    ItemListOutput,
    ItemOutput,
    ItemRefInput,
    ListEventsInput,
    ListSchedulesInput,
    ScheduleListOutput,
    ScheduleOutput,
    ScheduleRefInput,
    UpdateEventInput,
    UpdateItemInput,
    UpdateScheduleInput,
)
from .ports import ScheduleRepoPort, TimePort

__all__ = [
    "DEPENDENCY_CYCLE",
    "descendant_ids",
    "inclusive_days",
    "load_schedule",
    "run_list_schedules",
    "run_get_schedule",
    "run_create_schedule",
    "run_update_schedule",
    "run_delete_schedule",
    "run_list_items",
    "run_create_item",
    "run_update_item",
    "run_delete_item",
    "run_list_item_dependencies",
    "run_add_item_dependency",
    "run_remove_item_dependency",
    "run_list_events",
    "run_create_event",
    "run_update_event",
    "run_delete_event",
    "AddItemDependencyInput",
    "CreateEventInput",
    "CreateItemInput",
    "CreateScheduleInput",
    "DeleteOutput",
    "DependencyListOutput",
    "DependencyOutput",
    "DependencyRefInput",
    "EventListOutput",
    "EventOutput",
    "EventRefInput",
    "ItemListOutput",
    "ItemOutput",
    "ItemRefInput",
    "ListEventsInput",
    "ListSchedulesInput",
    "ScheduleListOutput",
    "ScheduleOutput",
    "ScheduleRefInput",
    "UpdateEventInput",
    "UpdateItemInput",
    "UpdateScheduleInput",
    "ScheduleRepoPort",
    "TimePort",
]

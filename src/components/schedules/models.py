from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from uuid import UUID

from src.domain.entities import (
    Schedule,
    ScheduleCalendarEvent,
    ScheduleDependency,
    ScheduleItem,
    User,
)
from src.domain.errors import OperationError


@dataclass
class ListSchedulesInput:
    actor: User
    project_id: UUID
    status: str | None = None


@dataclass
class ScheduleRefInput:
    actor: User
    schedule_id: UUID


@dataclass
class CreateScheduleInput:
    actor: User
    project_id: UUID
    start_date: date
    end_date: date
    name: str = "Main Schedule"
    description: str = ""
    status: str = "Draft"


@dataclass
class UpdateScheduleInput:
    actor: User
    schedule_id: UUID
    changes: dict[str, Any]


@dataclass
class ItemRefInput:
    actor: User
    item_id: UUID


@dataclass
class CreateItemInput:
    actor: User
    schedule_id: UUID
    name: str
    start_date: date
    end_date: date | None = None
    duration: int | None = None
    type: str = "Task"
    description: str = ""
    parent_item_id: UUID | None = None
    task_id: UUID | None = None
    completion_percentage: float = 0.0
    status: str = "Not Started"
    assigned_to: UUID | None = None
    order: int | None = None


@dataclass
class UpdateItemInput:
    actor: User
    item_id: UUID
    changes: dict[str, Any]


@dataclass
class AddItemDependencyInput:
    """``item_id`` is the successor."""

    actor: User
    item_id: UUID
    predecessor_id: UUID
    type: str = "FS"
    lag: float = 0.0


@dataclass
class DependencyRefInput:
    actor: User
    dependency_id: UUID


@dataclass
class ListEventsInput:
    actor: User
    schedule_id: UUID
    start: datetime
    end: datetime


@dataclass
class CreateEventInput:
    actor: User
    schedule_id: UUID
    title: str
    start_at: datetime
    end_at: datetime
    description: str = ""
    all_day: bool = False
    location: str | None = None
    type: str | None = None
    schedule_item_id: UUID | None = None


@dataclass
class UpdateEventInput:
    actor: User
    event_id: UUID
    changes: dict[str, Any]


@dataclass
class EventRefInput:
    actor: User
    event_id: UUID


# --- Outputs ---


@dataclass
class ScheduleOutput:
    schedule: Schedule | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class ScheduleListOutput:
    schedules: list[Schedule] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class ItemOutput:
    item: ScheduleItem | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class ItemListOutput:
    items: list[ScheduleItem] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DependencyOutput:
    dependency: ScheduleDependency | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DependencyListOutput:
    predecessors: list[ScheduleDependency] = field(default_factory=list)
    successors: list[ScheduleDependency] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class EventOutput:
    event: ScheduleCalendarEvent | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class EventListOutput:
    events: list[ScheduleCalendarEvent] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DeleteOutput:
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False

from collections.abc import Iterable
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import (
    Schedule,
    ScheduleBaseline,
    ScheduleCalendarEvent,
    ScheduleDependency,
    ScheduleItem,
)


class ScheduleRepoPort(Protocol):
    def save(self, schedule: Schedule) -> Schedule: ...
    def get_by_id(self, schedule_id: UUID) -> Schedule | None: ...
    def list_by_project(self, project_id: UUID, status: str | None = None) -> list[Schedule]: ...

    def save_item(self, item: ScheduleItem) -> ScheduleItem: ...
    def get_item(self, item_id: UUID) -> ScheduleItem | None: ...
    def list_items(self, schedule_id: UUID) -> list[ScheduleItem]: ...
    def max_order(self, schedule_id: UUID, parent_item_id: UUID | None) -> int | None: ...
    def soft_delete_items(self, item_ids: Iterable[UUID], deleted_at: datetime) -> int: ...
    def soft_delete_schedule_items(self, schedule_id: UUID, deleted_at: datetime) -> int: ...

    def save_dependency(self, dep: ScheduleDependency) -> ScheduleDependency: ...
    def get_dependency(self, dep_id: UUID) -> ScheduleDependency | None: ...
    def find_dependency(
        self, predecessor_id: UUID, successor_id: UUID
    ) -> ScheduleDependency | None: ...
    def list_predecessors(self, item_id: UUID) -> list[ScheduleDependency]: ...
    def list_successors(self, item_id: UUID) -> list[ScheduleDependency]: ...
    def list_dependencies(self, schedule_id: UUID) -> list[ScheduleDependency]: ...
    def delete_dependency(self, dep_id: UUID) -> None: ...
    def delete_dependencies_touching(self, item_ids: Iterable[UUID]) -> int: ...

    def capture_baseline(
        self, baseline: ScheduleBaseline, items: list[ScheduleItem], schedule: Schedule
    ) -> ScheduleBaseline: ...
    def get_baseline(self, baseline_id: UUID) -> ScheduleBaseline | None: ...
    def list_baselines(self, schedule_id: UUID) -> list[ScheduleBaseline]: ...
    def delete_baseline(self, baseline_id: UUID) -> None: ...

    def save_event(self, event: ScheduleCalendarEvent) -> ScheduleCalendarEvent: ...
    def get_event(self, event_id: UUID) -> ScheduleCalendarEvent | None: ...
    def list_events(
        self, schedule_id: UUID, window_start: datetime, window_end: datetime
    ) -> list[ScheduleCalendarEvent]: ...
    def delete_event(self, event_id: UUID) -> None: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
    def today(self) -> date: ...

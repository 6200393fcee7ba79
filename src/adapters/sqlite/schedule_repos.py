from collections.abc import Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from src.adapters.sqlite.base import SQLiteRepo, TableMapping
from src.domain.entities import (
    Schedule,
    ScheduleBaseline,
    ScheduleCalendarEvent,
    ScheduleDependency,
    ScheduleItem,
)

SCHEDULES = TableMapping("schedules", Schedule)
ITEMS = TableMapping("schedule_items", ScheduleItem)
DEPENDENCIES = TableMapping("schedule_dependencies", ScheduleDependency)
BASELINES = TableMapping("schedule_baselines", ScheduleBaseline, json_fields=("items",))
EVENTS = TableMapping("schedule_calendar_events", ScheduleCalendarEvent)


class SQLiteScheduleRepo(SQLiteRepo):
    """Schedules with items, dependencies, baselines and calendar events."""

    # --- schedules ---

    def save(self, schedule: Schedule) -> Schedule:
        return self._upsert(SCHEDULES, schedule)

    def get_by_id(self, schedule_id: UUID) -> Schedule | None:
        return self._select_one(SCHEDULES, "id = ? AND is_deleted = 0", (schedule_id,))

    def list_by_project(self, project_id: UUID, status: str | None = None) -> list[Schedule]:
        where = "project_id = ? AND is_deleted = 0"
        params: tuple[Any, ...] = (project_id,)
        if status:
            where += " AND status = ?"
            params += (status,)
        return self._select_many(SCHEDULES, where, params, order_by="created_at DESC")

    # --- items ---

    def save_item(self, item: ScheduleItem) -> ScheduleItem:
        return self._upsert(ITEMS, item)

    def get_item(self, item_id: UUID) -> ScheduleItem | None:
        return self._select_one(ITEMS, "id = ? AND is_deleted = 0", (item_id,))

    def list_items(self, schedule_id: UUID) -> list[ScheduleItem]:
        return self._select_many(
            ITEMS,
            "schedule_id = ? AND is_deleted = 0",
            (schedule_id,),
            order_by='"order" ASC, created_at ASC',
        )

    def max_order(self, schedule_id: UUID, parent_item_id: UUID | None) -> int | None:
        conn = self._get_conn()
        try:
            if parent_item_id is None:
                row = conn.execute(
                    'SELECT MAX("order") AS m FROM schedule_items '
                    "WHERE schedule_id = ? AND parent_item_id IS NULL AND is_deleted = 0",
                    (str(schedule_id),),
                ).fetchone()
            else:
                row = conn.execute(
                    'SELECT MAX("order") AS m FROM schedule_items '
                    "WHERE schedule_id = ? AND parent_item_id = ? AND is_deleted = 0",
                    (str(schedule_id), str(parent_item_id)),
                ).fetchone()
            return row["m"] if row else None
        finally:
            conn.close()

    def soft_delete_items(self, item_ids: Iterable[UUID], deleted_at: datetime) -> int:
        ids = [str(i) for i in item_ids]
        if not ids:
            return 0
        marks = ", ".join("?" for _ in ids)
        stamp = deleted_at.isoformat()
        return self._execute(
            f"UPDATE schedule_items SET is_deleted = 1, deleted_at = ?, updated_at = ? "
            f"WHERE id IN ({marks})",
            (stamp, stamp, *ids),
        )

    def soft_delete_schedule_items(self, schedule_id: UUID, deleted_at: datetime) -> int:
        stamp = deleted_at.isoformat()
        return self._execute(
            "UPDATE schedule_items SET is_deleted = 1, deleted_at = ?, updated_at = ? "
            "WHERE schedule_id = ? AND is_deleted = 0",
            (stamp, stamp, schedule_id),
        )

    # --- dependencies ---

    def save_dependency(self, dep: ScheduleDependency) -> ScheduleDependency:
        return self._upsert(DEPENDENCIES, dep)

    def get_dependency(self, dep_id: UUID) -> ScheduleDependency | None:
        return self._select_one(DEPENDENCIES, "id = ?", (dep_id,))

    def find_dependency(
        self, predecessor_id: UUID, successor_id: UUID
    ) -> ScheduleDependency | None:
        return self._select_one(
            DEPENDENCIES,
            "predecessor_id = ? AND successor_id = ?",
            (predecessor_id, successor_id),
        )

    def list_predecessors(self, item_id: UUID) -> list[ScheduleDependency]:
        return self._select_many(DEPENDENCIES, "successor_id = ?", (item_id,))

    def list_successors(self, item_id: UUID) -> list[ScheduleDependency]:
        return self._select_many(DEPENDENCIES, "predecessor_id = ?", (item_id,))

    def list_dependencies(self, schedule_id: UUID) -> list[ScheduleDependency]:
        live = "(SELECT id FROM schedule_items WHERE schedule_id = ? AND is_deleted = 0)"
        return self._select_many(
            DEPENDENCIES,
            f"predecessor_id IN {live} AND successor_id IN {live}",
            (schedule_id, schedule_id),
        )

    def delete_dependency(self, dep_id: UUID) -> None:
        self._execute("DELETE FROM schedule_dependencies WHERE id = ?", (dep_id,))

    def delete_dependencies_touching(self, item_ids: Iterable[UUID]) -> int:
        ids = [str(i) for i in item_ids]
        if not ids:
            return 0
        marks = ", ".join("?" for _ in ids)
        return self._execute(
            f"DELETE FROM schedule_dependencies "
            f"WHERE predecessor_id IN ({marks}) OR successor_id IN ({marks})",
            (*ids, *ids),
        )

    # --- baselines ---

    def capture_baseline(
        self, baseline: ScheduleBaseline, items: list[ScheduleItem], schedule: Schedule
    ) -> ScheduleBaseline:
        """Store a baseline with the item and schedule dates it stamps, all or nothing."""
        writes: list[tuple[TableMapping, Any]] = [(BASELINES, baseline)]
        writes.extend((ITEMS, item) for item in items)
        writes.append((SCHEDULES, schedule))
        self._upsert_all(writes)
        return baseline

    def get_baseline(self, baseline_id: UUID) -> ScheduleBaseline | None:
        return self._select_one(BASELINES, "id = ?", (baseline_id,))

    def list_baselines(self, schedule_id: UUID) -> list[ScheduleBaseline]:
        return self._select_many(
            BASELINES, "schedule_id = ?", (schedule_id,), order_by="created_at DESC"
        )

    def delete_baseline(self, baseline_id: UUID) -> None:
        self._execute("DELETE FROM schedule_baselines WHERE id = ?", (baseline_id,))

    # --- calendar events ---

    def save_event(self, event: ScheduleCalendarEvent) -> ScheduleCalendarEvent:
        return self._upsert(EVENTS, event)

    def get_event(self, event_id: UUID) -> ScheduleCalendarEvent | None:
        return self._select_one(EVENTS, "id = ?", (event_id,))

    def list_events(
        self, schedule_id: UUID, window_start: datetime, window_end: datetime
    ) -> list[ScheduleCalendarEvent]:
        """Events overlapping ``[window_start, window_end]``."""
        return self._select_many(
            EVENTS,
            "schedule_id = ? AND start_at <= ? AND end_at >= ?",
            (schedule_id, window_end, window_start),
            order_by="start_at ASC",
        )

    def delete_event(self, event_id: UUID) -> None:
        self._execute("DELETE FROM schedule_calendar_events WHERE id = ?", (event_id,))

import logging
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from src.components.projects import ProjectRepoPort, apply_changes, load_project
from src.domain.cpm import (
    CycleError,
    Link,
    creates_cycle,
    expand_links,
    rollup_hierarchy,
    topological_order,
)
from src.domain.entities import (
    SCHEDULABLE_ITEM_TYPES,
    Project,
    Schedule,
    ScheduleCalendarEvent,
    ScheduleDependency,
    ScheduleItem,
    User,
    as_utc,
)
from src.domain.errors import CONFLICT, OperationError, access_denied, not_found
from src.domain.policy import PolicyEngine

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

logger = logging.getLogger(__name__)

DEPENDENCY_CYCLE = "dependency_cycle"
SCHEDULE_FIELDS = ("name", "description", "start_date", "end_date", "status")
FIXED_ITEM_FIELDS = (
    "id",
    "schedule_id",
    "baseline_start_date",
    "baseline_end_date",
    "is_deleted",
    "deleted_at",
    "created_at",
)
FIXED_EVENT_FIELDS = ("id", "schedule_id", "created_by", "created_at")


def load_schedule(
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    schedule_id: UUID,
    actor: User,
    policy: PolicyEngine,
    action: str,
) -> tuple[Schedule | None, Project | None, list[OperationError]]:
    """Fetch a live schedule whose project the actor may act on."""
    schedule = schedules.get_by_id(schedule_id)
    if schedule is None:
        if not policy.can(actor, action):
            return None, None, [access_denied()]
        return None, None, [not_found("Schedule")]
    project, errors = load_project(projects, schedule.project_id, actor, policy, action)
    if errors:
        if errors[0].code == "not_found":
            return None, None, [not_found("Schedule")]
        return None, None, errors
    return schedule, project, []


def _load_item(
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    item_id: UUID,
    actor: User,
    policy: PolicyEngine,
    action: str,
) -> tuple[ScheduleItem | None, Schedule | None, list[OperationError]]:
    item = schedules.get_item(item_id)
    if item is None:
        return None, None, [not_found("Schedule item")]
    schedule, _, errors = load_schedule(
        schedules, projects, item.schedule_id, actor, policy, action
    )
    if errors:
        if errors[0].code == "not_found":
            return None, None, [not_found("Schedule item")]
        return None, None, errors
    return item, schedule, []


def inclusive_days(start: date, end: date) -> int:
    """Calendar days from ``start`` to ``end``, both included."""
    return (end - start).days + 1


def _validate_window(start: date, end: date, field: str = "end_date") -> list[OperationError]:
    if end < start:
        return [OperationError("invalid_dates", "End date cannot be before start date", field)]
    return []


def descendant_ids(items: list[ScheduleItem], root_id: UUID) -> list[UUID]:
    """Ids of every item below ``root_id`` in the parent hierarchy."""
    children: dict[UUID | None, list[UUID]] = {}
    for item in items:
        children.setdefault(item.parent_item_id, []).append(item.id)

    found: list[UUID] = []
    stack = list(children.get(root_id, []))
    while stack:
        item_id = stack.pop()
        if item_id in found:
            continue
        found.append(item_id)
        stack.extend(children.get(item_id, []))
    return found


def rollup_network_has_cycle(items: list[ScheduleItem], links: list[Link]) -> bool:
    """True when ``links``, spread over the leaf items under each roll-up, form a cycle."""
    leaves, children = rollup_hierarchy(
        {i.id: i.parent_item_id for i in items},
        [i.id for i in items if i.type in SCHEDULABLE_ITEM_TYPES],
    )
    try:
        topological_order(list(leaves), expand_links(links, leaves, children))
    except CycleError:
        return True
    return False


def _check_network(
    schedules: ScheduleRepoPort, item: ScheduleItem
) -> list[OperationError]:
    items = [i for i in schedules.list_items(item.schedule_id) if i.id != item.id] + [item]
    links = [
        Link(d.predecessor_id, d.successor_id)
        for d in schedules.list_dependencies(item.schedule_id)
    ]
    if links and rollup_network_has_cycle(items, links):
        return [
            OperationError(
                DEPENDENCY_CYCLE,
                "Item placement would create a dependency cycle",
                "parent_item_id",
            )
        ]
    return []


def _check_parent(
    schedules: ScheduleRepoPort, item: ScheduleItem
) -> list[OperationError]:
    if item.parent_item_id is None:
        return []
    if item.parent_item_id == item.id:
        return [
            OperationError("invalid_parent", "An item cannot be its own parent", "parent_item_id")
        ]
    parent = schedules.get_item(item.parent_item_id)
    if parent is None or parent.schedule_id != item.schedule_id:
        return [OperationError("not_found", "Parent item not found", "parent_item_id")]
    if parent.id in descendant_ids(schedules.list_items(item.schedule_id), item.id):
        return [
            OperationError(
                "invalid_parent",
                "An item cannot be moved under its own descendant",
                "parent_item_id",
            )
        ]
    return []


def _validate_item(item: ScheduleItem) -> list[OperationError]:
    errors = []
    if not item.name.strip():
        errors.append(OperationError("required", "Item name is required", "name"))
    errors.extend(_validate_window(item.start_date, item.end_date))
    if not 0 <= item.completion_percentage <= 100:
        errors.append(
            OperationError(
                "invalid_percentage",
                "Completion must be between 0 and 100",
                "completion_percentage",
            )
        )
    return errors


def _normalize_dates(item: ScheduleItem, changed: set[str]) -> list[OperationError]:
    """
    Keep start, end and duration consistent after a create or update.

    Milestones are pinned to a single day with zero duration. Otherwise an
    explicit end wins and duration follows; a new start or duration moves
    the end.
    """
    if item.type == "Milestone":
        item.end_date = item.start_date
        item.duration = 0
        return []

    if "end_date" in changed:
        if item.end_date < item.start_date:
            return _validate_window(item.start_date, item.end_date)
        item.duration = inclusive_days(item.start_date, item.end_date)
        return []

    if "start_date" in changed or "duration" in changed or "type" in changed:
        if item.duration < 1 and "duration" not in changed:
            item.duration = 1
        if item.duration < 1:
            return [
                OperationError("invalid_duration", "Duration must be at least 1 day", "duration")
            ]
        item.end_date = item.start_date + timedelta(days=item.duration - 1)
    return []


# --- Schedules ---


def run_list_schedules(
    inp: ListSchedulesInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> ScheduleListOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "schedules:read")
    if errors or project is None:
        return ScheduleListOutput(errors=errors)
    return ScheduleListOutput(
        schedules=schedules.list_by_project(project.id, inp.status), success=True
    )


def run_get_schedule(
    inp: ScheduleRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> ScheduleOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:read"
    )
    if errors:
        return ScheduleOutput(errors=errors)
    return ScheduleOutput(schedule=schedule, success=True)


def run_create_schedule(
    inp: CreateScheduleInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ScheduleOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "schedules:edit")
    if errors or project is None:
        return ScheduleOutput(errors=errors)

    now = time.now_utc()
    try:
        schedule = Schedule(
            project_id=project.id,
            name=inp.name.strip(),
            description=inp.description,
            start_date=inp.start_date,
            end_date=inp.end_date,
            status=inp.status,
            created_by=inp.actor.id,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as e:
        return ScheduleOutput(errors=[OperationError("invalid", str(e))])

    errors = _validate_window(schedule.start_date, schedule.end_date)
    if not schedule.name:
        errors.append(OperationError("required", "Schedule name is required", "name"))
    if errors:
        return ScheduleOutput(errors=errors)

    schedules.save(schedule)
    logger.info("Schedule created: %s for project %s", schedule.id, project.id)
    return ScheduleOutput(schedule=schedule, success=True)


def run_update_schedule(
    inp: UpdateScheduleInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ScheduleOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:edit"
    )
    if errors or schedule is None:
        return ScheduleOutput(errors=errors)

    changes = {k: v for k, v in inp.changes.items() if k in SCHEDULE_FIELDS}
    updated, errors = apply_changes(schedule, {**changes, "updated_at": time.now_utc()})
    if errors or updated is None:
        return ScheduleOutput(errors=errors)

    errors = _validate_window(updated.start_date, updated.end_date)
    if not updated.name.strip():
        errors.append(OperationError("required", "Schedule name is required", "name"))
    if errors:
        return ScheduleOutput(errors=errors)

    schedules.save(updated)
    logger.info("Schedule updated: %s", updated.id)
    return ScheduleOutput(schedule=updated, success=True)


def run_delete_schedule(
    inp: ScheduleRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> DeleteOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:edit"
    )
    if errors or schedule is None:
        return DeleteOutput(errors=errors)

    now = time.now_utc()
    schedule.is_deleted = True
    schedule.deleted_at = now
    schedule.updated_at = now
    schedules.save(schedule)
    removed = schedules.soft_delete_schedule_items(schedule.id, now)
    logger.info("Schedule deleted: %s (%d items)", schedule.id, removed)
    return DeleteOutput(success=True)


# --- Items ---


def run_list_items(
    inp: ScheduleRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> ItemListOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:read"
    )
    if errors or schedule is None:
        return ItemListOutput(errors=errors)
    return ItemListOutput(items=schedules.list_items(schedule.id), success=True)


def run_create_item(
    inp: CreateItemInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ItemOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:edit"
    )
    if errors or schedule is None:
        return ItemOutput(errors=errors)

    if inp.type != "Milestone" and inp.end_date is None and inp.duration is None:
        error = OperationError("required", "Either end_date or duration is required", "end_date")
        return ItemOutput(errors=[error])

    order = inp.order
    if order is None:
        order = (schedules.max_order(schedule.id, inp.parent_item_id) or 0) + 1

    now = time.now_utc()
    try:
        item = ScheduleItem(
            schedule_id=schedule.id,
            parent_item_id=inp.parent_item_id,
            task_id=inp.task_id,
            name=inp.name.strip(),
            description=inp.description,
            type=inp.type,
            start_date=inp.start_date,
            end_date=inp.end_date or inp.start_date,
            duration=inp.duration if inp.duration is not None else 1,
            completion_percentage=inp.completion_percentage,
            status=inp.status,
            assigned_to=inp.assigned_to,
            order=order,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as e:
        return ItemOutput(errors=[OperationError("invalid", str(e))])

    changed = {"start_date", "end_date" if inp.end_date is not None else "duration"}
    errors = _normalize_dates(item, changed)
    if not errors:
        errors = _validate_item(item) + _check_parent(schedules, item)
    if not errors and item.parent_item_id is not None:
        errors = _check_network(schedules, item)
    if errors:
        return ItemOutput(errors=errors)

    schedules.save_item(item)
    logger.info("Schedule item created: %s (%s) in %s", item.id, item.type, schedule.id)
    return ItemOutput(item=item, success=True)


def run_update_item(
    inp: UpdateItemInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> ItemOutput:
    item, _, errors = _load_item(
        schedules, projects, inp.item_id, inp.actor, policy, "schedules:edit"
    )
    if errors or item is None:
        return ItemOutput(errors=errors)

    changes: dict[str, Any] = {
        k: v for k, v in inp.changes.items() if k not in FIXED_ITEM_FIELDS
    }
    updated, errors = apply_changes(item, {**changes, "updated_at": time.now_utc()})
    if errors or updated is None:
        return ItemOutput(errors=errors)

    errors = _normalize_dates(updated, set(changes))
    if not errors:
        errors = _validate_item(updated)
        if "parent_item_id" in changes:
            errors.extend(_check_parent(schedules, updated))
    if not errors and {"parent_item_id", "type"} & set(changes):
        errors = _check_network(schedules, updated)
    if errors:
        return ItemOutput(errors=errors)

    schedules.save_item(updated)
    logger.info("Schedule item updated: %s", updated.id)
    return ItemOutput(item=updated, success=True)


def run_delete_item(
    inp: ItemRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> DeleteOutput:
    """Soft-delete an item with its descendants and drop their dependencies."""
    item, _, errors = _load_item(
        schedules, projects, inp.item_id, inp.actor, policy, "schedules:edit"
    )
    if errors or item is None:
        return DeleteOutput(errors=errors)

    doomed = [item.id, *descendant_ids(schedules.list_items(item.schedule_id), item.id)]
    schedules.soft_delete_items(doomed, time.now_utc())
    dropped = schedules.delete_dependencies_touching(doomed)
    logger.info(
        "Schedule item deleted: %s (%d items, %d dependencies)", item.id, len(doomed), dropped
    )
    return DeleteOutput(success=True)


# --- Dependencies ---


def run_list_item_dependencies(
    inp: ItemRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> DependencyListOutput:
    item, _, errors = _load_item(
        schedules, projects, inp.item_id, inp.actor, policy, "schedules:read"
    )
    if errors or item is None:
        return DependencyListOutput(errors=errors)
    return DependencyListOutput(
        predecessors=schedules.list_predecessors(item.id),
        successors=schedules.list_successors(item.id),
        success=True,
    )


def run_add_item_dependency(
    inp: AddItemDependencyInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> DependencyOutput:
    successor, schedule, errors = _load_item(
        schedules, projects, inp.item_id, inp.actor, policy, "schedules:edit"
    )
    if errors or successor is None or schedule is None:
        return DependencyOutput(errors=errors)

    if inp.predecessor_id == successor.id:
        return DependencyOutput(
            errors=[
                OperationError(
                    "self_dependency", "An item cannot depend on itself", "predecessor_id"
                )
            ]
        )

    predecessor = schedules.get_item(inp.predecessor_id)
    if predecessor is None or predecessor.schedule_id != schedule.id:
        return DependencyOutput(
            errors=[
                OperationError(
                    "not_found", "Predecessor item not found in this schedule", "predecessor_id"
                )
            ]
        )

    if schedules.find_dependency(predecessor.id, successor.id):
        return DependencyOutput(errors=[OperationError(CONFLICT, "Dependency already exists")])

    items = schedules.list_items(schedule.id)
    if predecessor.id in descendant_ids(items, successor.id) or successor.id in descendant_ids(
        items, predecessor.id
    ):
        return DependencyOutput(
            errors=[
                OperationError(
                    "invalid",
                    "An item cannot depend on its own parent or descendant",
                    "predecessor_id",
                )
            ]
        )

    existing = [
        Link(d.predecessor_id, d.successor_id) for d in schedules.list_dependencies(schedule.id)
    ]
    candidate = Link(predecessor.id, successor.id)
    if creates_cycle(existing, predecessor.id, successor.id) or rollup_network_has_cycle(
        items, existing + [candidate]
    ):
        logger.warning("Rejected cyclic schedule dependency %s -> %s", predecessor.id, successor.id)
        return DependencyOutput(
            errors=[OperationError(DEPENDENCY_CYCLE, "Dependency would create a cycle")]
        )

    try:
        dep = ScheduleDependency(
            predecessor_id=predecessor.id,
            successor_id=successor.id,
            type=inp.type,
            lag=inp.lag,
            created_by=inp.actor.id,
            created_at=time.now_utc(),
        )
    except ValidationError as e:
        return DependencyOutput(errors=[OperationError("invalid", str(e), "type")])

    schedules.save_dependency(dep)
    logger.info("Schedule dependency added: %s -> %s (%s)", predecessor.id, successor.id, dep.type)
    return DependencyOutput(dependency=dep, success=True)


def run_remove_item_dependency(
    inp: DependencyRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> DeleteOutput:
    dep = schedules.get_dependency(inp.dependency_id)
    if dep is None:
        return DeleteOutput(errors=[not_found("Dependency")])
    _, _, errors = _load_item(
        schedules, projects, dep.successor_id, inp.actor, policy, "schedules:edit"
    )
    if errors:
        if errors[0].code == "not_found":
            return DeleteOutput(errors=[not_found("Dependency")])
        return DeleteOutput(errors=errors)

    schedules.delete_dependency(dep.id)
    return DeleteOutput(success=True)


# --- Calendar events ---


def _check_event(
    schedules: ScheduleRepoPort, event: ScheduleCalendarEvent
) -> list[OperationError]:
    errors = []
    if not event.title.strip():
        errors.append(OperationError("required", "Event title is required", "title"))
    if event.end_at < event.start_at:
        errors.append(
            OperationError("invalid_dates", "Event end cannot be before its start", "end_at")
        )
    if event.schedule_item_id is not None:
        item = schedules.get_item(event.schedule_item_id)
        if item is None or item.schedule_id != event.schedule_id:
            errors.append(
                OperationError("not_found", "Schedule item not found", "schedule_item_id")
            )
    return errors


def _load_event(
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    event_id: UUID,
    actor: User,
    policy: PolicyEngine,
) -> tuple[ScheduleCalendarEvent | None, list[OperationError]]:
    event = schedules.get_event(event_id)
    if event is None:
        return None, [not_found("Event")]
    _, _, errors = load_schedule(
        schedules, projects, event.schedule_id, actor, policy, "schedules:edit"
    )
    if errors:
        if errors[0].code == "not_found":
            return None, [not_found("Event")]
        return None, errors
    return event, []


def run_list_events(
    inp: ListEventsInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> EventListOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:read"
    )
    if errors or schedule is None:
        return EventListOutput(errors=errors)

    start, end = as_utc(inp.start), as_utc(inp.end)
    if end < start:
        return EventListOutput(
            errors=[OperationError("invalid_dates", "Window end cannot be before its start", "end")]
        )
    return EventListOutput(events=schedules.list_events(schedule.id, start, end), success=True)


def run_create_event(
    inp: CreateEventInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> EventOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:edit"
    )
    if errors or schedule is None:
        return EventOutput(errors=errors)

    event = ScheduleCalendarEvent(
        schedule_id=schedule.id,
        schedule_item_id=inp.schedule_item_id,
        title=inp.title.strip(),
        description=inp.description,
        start_at=as_utc(inp.start_at),
        end_at=as_utc(inp.end_at),
        all_day=inp.all_day,
        location=inp.location,
        type=inp.type,
        created_by=inp.actor.id,
        created_at=time.now_utc(),
    )
    errors = _check_event(schedules, event)
    if errors:
        return EventOutput(errors=errors)

    schedules.save_event(event)
    return EventOutput(event=event, success=True)


def run_update_event(
    inp: UpdateEventInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> EventOutput:
    event, errors = _load_event(schedules, projects, inp.event_id, inp.actor, policy)
    if errors or event is None:
        return EventOutput(errors=errors)

    changes = {k: v for k, v in inp.changes.items() if k not in FIXED_EVENT_FIELDS}
    updated, errors = apply_changes(event, changes)
    if errors or updated is None:
        return EventOutput(errors=errors)

    updated.start_at = as_utc(updated.start_at)
    updated.end_at = as_utc(updated.end_at)
    errors = _check_event(schedules, updated)
    if errors:
        return EventOutput(errors=errors)

    schedules.save_event(updated)
    return EventOutput(event=updated, success=True)


def run_delete_event(
    inp: EventRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> DeleteOutput:
    event, errors = _load_event(schedules, projects, inp.event_id, inp.actor, policy)
    if errors or event is None:
        return DeleteOutput(errors=errors)

    schedules.delete_event(event.id)
    return DeleteOutput(success=True)

from datetime import date, datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response

from src.api.deps import (
    get_clock,
    get_current_user,
    get_policy,
    get_project_repo,
    get_rules,
    get_schedule_repo,
    raise_for_errors,
)
from src.api.schemas import (
    BaselineCreateRequest,
    EventCreateRequest,
    EventUpdateRequest,
    ItemCreateRequest,
    ItemDependencyCreateRequest,
    ItemUpdateRequest,
    ScheduleCreateRequest,
    ScheduleUpdateRequest,
)
from src.components.baselines import (
    BaselineRefInput,
    CreateBaselineInput,
    ListBaselinesInput,
    VarianceInput,
    VarianceReport,
    run_compare_baseline,
    run_create_baseline,
    run_delete_baseline,
    run_get_baseline,
    run_list_baselines,
)
from src.components.critical_path import CriticalPathReport, ScheduleCPMInput, run_schedule_cpm
from src.components.schedules import (
    AddItemDependencyInput,
    CreateEventInput,
    CreateItemInput,
    CreateScheduleInput,
    DependencyRefInput,
    EventRefInput,
    ItemRefInput,
    ListEventsInput,
    ListSchedulesInput,
    ScheduleRefInput,
    UpdateEventInput,
    UpdateItemInput,
    UpdateScheduleInput,
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
from src.domain.entities import (
    Schedule,
    ScheduleBaseline,
    ScheduleCalendarEvent,
    ScheduleDependency,
    ScheduleItem,
    User,
)
from src.rules.models import Rules

router = APIRouter()

LATEST = "latest"


# --- Schedules ---


@router.get("/projects/{project_id}/schedules", response_model=list[Schedule])
def list_schedules(
    project_id: UUID,
    status: str | None = None,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[Schedule]:
    inp = ListSchedulesInput(actor=current_user, project_id=project_id, status=status)
    result = run_list_schedules(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    return result.schedules


@router.post("/projects/{project_id}/schedules", response_model=Schedule, status_code=201)
def create_schedule(
    project_id: UUID,
    req: ScheduleCreateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Schedule:
    inp = CreateScheduleInput(actor=current_user, project_id=project_id, **req.model_dump())
    result = run_create_schedule(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.schedule is not None
    return result.schedule


@router.get("/schedules/{schedule_id}", response_model=Schedule)
def get_schedule(
    schedule_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Schedule:
    inp = ScheduleRefInput(actor=current_user, schedule_id=schedule_id)
    result = run_get_schedule(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    assert result.schedule is not None
    return result.schedule


@router.put("/schedules/{schedule_id}", response_model=Schedule)
def update_schedule(
    schedule_id: UUID,
    req: ScheduleUpdateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Schedule:
    inp = UpdateScheduleInput(actor=current_user, schedule_id=schedule_id, changes=req.changes())
    result = run_update_schedule(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.schedule is not None
    return result.schedule


@router.delete("/schedules/{schedule_id}", status_code=204)
def delete_schedule(
    schedule_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = ScheduleRefInput(actor=current_user, schedule_id=schedule_id)
    raise_for_errors(run_delete_schedule(inp, schedules, projects, policy, clock).errors)
    return Response(status_code=204)


@router.get("/schedules/{schedule_id}/critical-path", response_model=CriticalPathReport)
def schedule_critical_path(
    schedule_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    rules: Rules = Depends(get_rules),
) -> CriticalPathReport:
    """Early/late dates, float, risks and suggestions for the schedule's items."""
    inp = ScheduleCPMInput(actor=current_user, schedule_id=schedule_id)
    result = run_schedule_cpm(inp, schedules, projects, policy, rules.scheduling)
    raise_for_errors(result.errors)
    assert result.report is not None
    return result.report


# --- Items ---


@router.get("/schedules/{schedule_id}/items", response_model=list[ScheduleItem])
def list_items(
    schedule_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[ScheduleItem]:
    inp = ScheduleRefInput(actor=current_user, schedule_id=schedule_id)
    result = run_list_items(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    return result.items


@router.post("/schedules/{schedule_id}/items", response_model=ScheduleItem, status_code=201)
def create_item(
    schedule_id: UUID,
    req: ItemCreateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> ScheduleItem:
    inp = CreateItemInput(actor=current_user, schedule_id=schedule_id, **req.model_dump())
    result = run_create_item(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.item is not None
    return result.item


@router.put("/schedule-items/{item_id}", response_model=ScheduleItem)
def update_item(
    item_id: UUID,
    req: ItemUpdateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> ScheduleItem:
    inp = UpdateItemInput(actor=current_user, item_id=item_id, changes=req.changes())
    result = run_update_item(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.item is not None
    return result.item


@router.delete("/schedule-items/{item_id}", status_code=204)
def delete_item(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> Response:
    inp = ItemRefInput(actor=current_user, item_id=item_id)
    raise_for_errors(run_delete_item(inp, schedules, projects, policy, clock).errors)
    return Response(status_code=204)


# --- Item dependencies ---


@router.get("/schedule-items/{item_id}/dependencies")
def list_item_dependencies(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> dict[str, list[ScheduleDependency]]:
    inp = ItemRefInput(actor=current_user, item_id=item_id)
    result = run_list_item_dependencies(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    return {"predecessors": result.predecessors, "successors": result.successors}


@router.post(
    "/schedule-items/{item_id}/dependencies", response_model=ScheduleDependency, status_code=201
)
def add_item_dependency(
    item_id: UUID,
    req: ItemDependencyCreateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> ScheduleDependency:
    """Make ``item_id`` a successor of ``predecessor_id``."""
    inp = AddItemDependencyInput(actor=current_user, item_id=item_id, **req.model_dump())
    result = run_add_item_dependency(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.dependency is not None
    return result.dependency


@router.delete("/schedule-dependencies/{dependency_id}", status_code=204)
def remove_item_dependency(
    dependency_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Response:
    inp = DependencyRefInput(actor=current_user, dependency_id=dependency_id)
    raise_for_errors(run_remove_item_dependency(inp, schedules, projects, policy).errors)
    return Response(status_code=204)


# --- Calendar ---


@router.get("/schedules/{schedule_id}/calendar", response_model=list[ScheduleCalendarEvent])
def list_events(
    schedule_id: UUID,
    start: datetime,
    end: datetime,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[ScheduleCalendarEvent]:
    """Events overlapping ``[start, end]``."""
    inp = ListEventsInput(actor=current_user, schedule_id=schedule_id, start=start, end=end)
    result = run_list_events(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    return result.events


@router.post(
    "/schedules/{schedule_id}/calendar", response_model=ScheduleCalendarEvent, status_code=201
)
def create_event(
    schedule_id: UUID,
    req: EventCreateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> ScheduleCalendarEvent:
    inp = CreateEventInput(actor=current_user, schedule_id=schedule_id, **req.model_dump())
    result = run_create_event(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.event is not None
    return result.event


@router.put("/schedule-calendar/{event_id}", response_model=ScheduleCalendarEvent)
def update_event(
    event_id: UUID,
    req: EventUpdateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> ScheduleCalendarEvent:
    inp = UpdateEventInput(actor=current_user, event_id=event_id, changes=req.changes())
    result = run_update_event(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    assert result.event is not None
    return result.event


@router.delete("/schedule-calendar/{event_id}", status_code=204)
def delete_event(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Response:
    inp = EventRefInput(actor=current_user, event_id=event_id)
    raise_for_errors(run_delete_event(inp, schedules, projects, policy).errors)
    return Response(status_code=204)


# --- Baselines ---


@router.get("/schedules/{schedule_id}/baselines", response_model=list[ScheduleBaseline])
def list_baselines(
    schedule_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> list[ScheduleBaseline]:
    inp = ListBaselinesInput(actor=current_user, schedule_id=schedule_id)
    result = run_list_baselines(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    return result.baselines


@router.post(
    "/schedules/{schedule_id}/baselines", response_model=ScheduleBaseline, status_code=201
)
def create_baseline(
    schedule_id: UUID,
    req: BaselineCreateRequest,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> ScheduleBaseline:
    """Snapshot the schedule's current items."""
    inp = CreateBaselineInput(actor=current_user, schedule_id=schedule_id, **req.model_dump())
    result = run_create_baseline(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.baseline is not None
    return result.baseline


@router.get(
    "/schedules/{schedule_id}/baselines/{baseline_id}/variance", response_model=VarianceReport
)
def baseline_variance(
    schedule_id: UUID,
    baseline_id: str,
    as_of: date | None = None,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> VarianceReport:
    """Compare current items with a baseline; ``latest`` picks the newest one."""
    inp = VarianceInput(
        actor=current_user,
        schedule_id=schedule_id,
        baseline_id=None if baseline_id == LATEST else _baseline_uuid(baseline_id),
        as_of=as_of,
    )
    result = run_compare_baseline(inp, schedules, projects, policy, clock)
    raise_for_errors(result.errors)
    assert result.report is not None
    return result.report


@router.get("/schedules/{schedule_id}/baselines/{baseline_id}", response_model=ScheduleBaseline)
def get_baseline(
    schedule_id: UUID,
    baseline_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> ScheduleBaseline:
    inp = BaselineRefInput(actor=current_user, schedule_id=schedule_id, baseline_id=baseline_id)
    result = run_get_baseline(inp, schedules, projects, policy)
    raise_for_errors(result.errors)
    assert result.baseline is not None
    return result.baseline


@router.delete("/schedules/{schedule_id}/baselines/{baseline_id}", status_code=204)
def delete_baseline(
    schedule_id: UUID,
    baseline_id: UUID,
    current_user: User = Depends(get_current_user),
    schedules: Any = Depends(get_schedule_repo),
    projects: Any = Depends(get_project_repo),
    policy: Any = Depends(get_policy),
) -> Response:
    inp = BaselineRefInput(actor=current_user, schedule_id=schedule_id, baseline_id=baseline_id)
    raise_for_errors(run_delete_baseline(inp, schedules, projects, policy).errors)
    return Response(status_code=204)


def _baseline_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(status_code=404, detail="Baseline not found") from None

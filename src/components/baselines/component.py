import logging
from uuid import UUID

from src.components.projects import ProjectRepoPort
from src.components.schedules import ScheduleRepoPort, TimePort, load_schedule
from src.domain.entities import BaselineItem, Schedule, ScheduleBaseline, User
from src.domain.errors import OperationError, not_found
from src.domain.policy import PolicyEngine

from ._variance import compare_baseline
from .models import (
    BaselineListOutput,
    BaselineOutput,
    BaselineRefInput,
    CreateBaselineInput,
    DeleteOutput,
    ListBaselinesInput,
    VarianceInput,
    VarianceOutput,
)

logger = logging.getLogger(__name__)


def _load_baseline(
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    schedule_id: UUID,
    baseline_id: UUID,
    actor: User,
    policy: PolicyEngine,
    action: str,
) -> tuple[ScheduleBaseline | None, Schedule | None, list[OperationError]]:
    schedule, _, errors = load_schedule(schedules, projects, schedule_id, actor, policy, action)
    if errors or schedule is None:
        return None, None, errors
    baseline = schedules.get_baseline(baseline_id)
    if baseline is None or baseline.schedule_id != schedule.id:
        return None, None, [not_found("Baseline")]
    return baseline, schedule, []


def run_create_baseline(
    inp: CreateBaselineInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> BaselineOutput:
    """
    Capture the schedule as it stands.

    Every live item gets its current dates copied into its baseline dates,
    and the schedule records its current window as the baseline window.
    """
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:edit"
    )
    if errors or schedule is None:
        return BaselineOutput(errors=errors)

    name = inp.name.strip()
    if not name:
        return BaselineOutput(
            errors=[OperationError("required", "Baseline name is required", "name")]
        )

    now = time.now_utc()
    items = schedules.list_items(schedule.id)
    baseline = ScheduleBaseline(
        schedule_id=schedule.id,
        name=name,
        description=inp.description,
        created_by=inp.actor.id,
        items=[
            BaselineItem(
                original_item_id=item.id,
                name=item.name,
                type=item.type,
                start_date=item.start_date,
                end_date=item.end_date,
                duration=item.duration,
                completion_percentage=item.completion_percentage,
            )
            for item in items
        ],
        created_at=now,
    )
    for item in items:
        item.baseline_start_date = item.start_date
        item.baseline_end_date = item.end_date
        item.updated_at = now
    schedule.baseline_start_date = schedule.start_date
    schedule.baseline_end_date = schedule.end_date
    schedule.updated_at = now
    schedules.capture_baseline(baseline, items, schedule)

    logger.info(
        "Baseline captured: %s for schedule %s (%d items)",
        baseline.id,
        schedule.id,
        len(baseline.items),
    )
    return BaselineOutput(baseline=baseline, success=True)


def run_list_baselines(
    inp: ListBaselinesInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> BaselineListOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:read"
    )
    if errors or schedule is None:
        return BaselineListOutput(errors=errors)
    return BaselineListOutput(baselines=schedules.list_baselines(schedule.id), success=True)


def run_get_baseline(
    inp: BaselineRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> BaselineOutput:
    baseline, _, errors = _load_baseline(
        schedules, projects, inp.schedule_id, inp.baseline_id, inp.actor, policy, "schedules:read"
    )
    if errors:
        return BaselineOutput(errors=errors)
    return BaselineOutput(baseline=baseline, success=True)


def run_delete_baseline(
    inp: BaselineRefInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
) -> DeleteOutput:
    baseline, _, errors = _load_baseline(
        schedules, projects, inp.schedule_id, inp.baseline_id, inp.actor, policy, "schedules:edit"
    )
    if errors or baseline is None:
        return DeleteOutput(errors=errors)

    schedules.delete_baseline(baseline.id)
    logger.info("Baseline deleted: %s", baseline.id)
    return DeleteOutput(success=True)


def run_compare_baseline(
    inp: VarianceInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> VarianceOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:read"
    )
    if errors or schedule is None:
        return VarianceOutput(errors=errors)

    if inp.baseline_id is None:
        captured = schedules.list_baselines(schedule.id)
        baseline = captured[0] if captured else None
    else:
        baseline = schedules.get_baseline(inp.baseline_id)
    if baseline is None or baseline.schedule_id != schedule.id:
        return VarianceOutput(errors=[not_found("Baseline")])

    as_of = inp.as_of or time.today()
    report = compare_baseline(baseline, schedules.list_items(schedule.id), as_of)
    return VarianceOutput(report=report, success=True)

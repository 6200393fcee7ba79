"""
Builds a CPM network from schedule items or tasks and reads the result
back as calendar dates, risk factors and suggestions.

Offsets are calendar days from an anchor date. An activity occupying day 0
only has ES 0 and EF 1, so its finish date is ``anchor + ceil(EF) - 1``.
"""

import math
import statistics
from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID

from src.domain.cpm import (
    Activity,
    CPMResult,
    Link,
    compute_cpm,
    expand_links,
    leaves_under,
    rollup_hierarchy,
)
from src.domain.entities import (
    SCHEDULABLE_ITEM_TYPES,
    Project,
    Schedule,
    ScheduleDependency,
    ScheduleItem,
    Task,
    TaskDependency,
)
from src.rules.models import SchedulingRules

from .models import CriticalPathReport, ItemTiming, RiskFactor, Suggestion

NO_FLOAT = "No float: any delay moves the finish date"
LATE_PLAN = "Planned end exceeds late finish"


@dataclass(frozen=True)
class Node:
    id: UUID
    name: str
    type: str
    start: date
    end: date
    duration: int
    completion: float = 0.0
    parent_id: UUID | None = None


def _days(offset: float) -> int:
    return math.floor(round(offset, 6))


def start_date_at(anchor: date, offset: float) -> date:
    return anchor + timedelta(days=_days(offset))


def finish_date_at(anchor: date, start: float, finish: float, duration: float) -> date:
    if duration <= 0:
        return start_date_at(anchor, start)
    return anchor + timedelta(days=math.ceil(round(finish, 6)) - 1)


def _hierarchy(nodes: Sequence[Node]) -> tuple[set[Hashable], dict[Hashable, list[Hashable]]]:
    schedulable = [n.id for n in nodes if n.type in SCHEDULABLE_ITEM_TYPES]
    return rollup_hierarchy({n.id: n.parent_id for n in nodes}, schedulable)


def _leaf_timing(node: Node, result: CPMResult, anchor: date) -> ItemTiming:
    t = result.timings[node.id]
    return ItemTiming(
        item_id=node.id,
        name=node.name,
        type=node.type,
        duration=t.duration,
        early_start=t.early_start,
        early_finish=t.early_finish,
        late_start=t.late_start,
        late_finish=t.late_finish,
        early_start_date=start_date_at(anchor, t.early_start),
        early_finish_date=finish_date_at(anchor, t.early_start, t.early_finish, t.duration),
        late_start_date=start_date_at(anchor, t.late_start),
        late_finish_date=finish_date_at(anchor, t.late_start, t.late_finish, t.duration),
        total_float=t.total_float,
        free_float=t.free_float,
        is_critical=t.is_critical,
        is_near_critical=t.is_near_critical,
        planned_start_date=node.start,
        planned_end_date=node.end,
        completion_percentage=node.completion,
    )


def _rollup_timing(node: Node, parts: Sequence[ItemTiming]) -> ItemTiming:
    critical = any(p.is_critical for p in parts)
    es = min(p.early_start for p in parts)
    ef = max(p.early_finish for p in parts)
    return ItemTiming(
        item_id=node.id,
        name=node.name,
        type=node.type,
        duration=ef - es,
        early_start=es,
        early_finish=ef,
        late_start=min(p.late_start for p in parts),
        late_finish=max(p.late_finish for p in parts),
        early_start_date=min(p.early_start_date for p in parts),
        early_finish_date=max(p.early_finish_date for p in parts),
        late_start_date=min(p.late_start_date for p in parts),
        late_finish_date=max(p.late_finish_date for p in parts),
        total_float=min(p.total_float for p in parts),
        free_float=min(p.free_float for p in parts),
        is_critical=critical,
        is_near_critical=not critical and any(p.is_near_critical for p in parts),
        is_rollup=True,
        planned_start_date=node.start,
        planned_end_date=node.end,
        completion_percentage=node.completion,
    )


def assess_risks(items: Sequence[ItemTiming]) -> list[RiskFactor]:
    """Risk factors for unfinished leaf activities."""
    risks = []
    for t in items:
        if t.is_rollup or t.completion_percentage >= 100:
            continue
        if t.is_critical:
            risks.append(RiskFactor(item_id=t.item_id, name=t.name, level="high", reason=NO_FLOAT))
        elif t.is_near_critical:
            risks.append(
                RiskFactor(
                    item_id=t.item_id,
                    name=t.name,
                    level="medium",
                    reason=f"Float of {round(t.total_float, 2):g} days",
                )
            )
        if t.planned_end_date > t.late_finish_date:
            risks.append(RiskFactor(item_id=t.item_id, name=t.name, level="high", reason=LATE_PLAN))
    return risks


def suggest(items: Sequence[ItemTiming], links: Sequence[Link]) -> list[Suggestion]:
    suggestions = []
    critical = [t for t in items if not t.is_rollup and t.is_critical and t.duration > 0]
    if critical:
        median = statistics.median(t.duration for t in critical)
        for t in critical:
            if t.duration > median:
                suggestions.append(
                    Suggestion(
                        kind="split_or_add_resources",
                        item_id=t.item_id,
                        message=(
                            f"'{t.name}' runs {t.duration:g} days on the critical path; "
                            "split it or add resources to shorten it"
                        ),
                    )
                )

    by_id = {t.item_id: t for t in items}
    for link in links:
        if link.type != "FS" or link.lag <= 0:
            continue
        pred, succ = by_id.get(link.predecessor), by_id.get(link.successor)
        if pred and succ and pred.is_critical and succ.is_critical:
            suggestions.append(
                Suggestion(
                    kind="review_lag",
                    item_id=pred.item_id,
                    related_item_id=succ.item_id,
                    message=(
                        f"Lag of {link.lag:g} days between '{pred.name}' and '{succ.name}' "
                        "is on the critical path; review whether it is needed"
                    ),
                )
            )
    return suggestions


def analyze(
    nodes: Sequence[Node],
    edges: Sequence[Link],
    *,
    project_id: UUID,
    schedule_id: UUID | None,
    anchor: date,
    window_end: date,
    rules: SchedulingRules,
) -> CriticalPathReport:
    """
    Run CPM over the leaf activities of ``nodes``.

    Raises CycleError when the expanded network is cyclic.
    """
    leaves, children = _hierarchy(nodes)
    leaf_nodes = [n for n in nodes if n.id in leaves]
    activities = [
        Activity(
            n.id,
            float(n.duration),
            float((n.start - anchor).days) if rules.honor_planned_start else 0.0,
        )
        for n in leaf_nodes
    ]
    links = expand_links(edges, leaves, children)
    result = compute_cpm(
        activities,
        links,
        near_critical_days=rules.near_critical_days,
        epsilon=rules.float_epsilon,
    )

    timings = {n.id: _leaf_timing(n, result, anchor) for n in leaf_nodes}
    for n in nodes:
        if n.id in leaves:
            continue
        below = leaves_under(n.id, leaves, children)
        if below:
            timings[n.id] = _rollup_timing(n, [timings[i] for i in below])
    items = [timings[n.id] for n in nodes if n.id in timings]

    length = result.project_duration
    project_length = (window_end - anchor).days + 1
    forecast = max((timings[n.id].early_finish_date for n in leaf_nodes), default=None)

    return CriticalPathReport(
        project_id=project_id,
        schedule_id=schedule_id,
        anchor_date=anchor,
        items=items,
        critical_path_items=list(result.critical_path),
        critical_path_length=length,
        project_length=project_length,
        critical_path_percentage=(
            round(length / project_length * 100, 1) if project_length > 0 else 0.0
        ),
        forecast_finish_date=forecast,
        finish_variance_days=(forecast - window_end).days if forecast else None,
        risk_factors=assess_risks(items),
        optimization_suggestions=suggest(items, result.links),
    )


def analyze_schedule(
    schedule: Schedule,
    items: Sequence[ScheduleItem],
    dependencies: Sequence[ScheduleDependency],
    rules: SchedulingRules,
) -> CriticalPathReport:
    nodes = [
        Node(
            id=i.id,
            name=i.name,
            type=i.type,
            start=i.start_date,
            end=i.end_date,
            duration=0 if i.type == "Milestone" else i.duration,
            completion=i.completion_percentage,
            parent_id=i.parent_item_id,
        )
        for i in items
        if not i.is_deleted
    ]
    edges = [Link(d.predecessor_id, d.successor_id, d.type, d.lag) for d in dependencies]
    return analyze(
        nodes,
        edges,
        project_id=schedule.project_id,
        schedule_id=schedule.id,
        anchor=schedule.start_date,
        window_end=schedule.end_date,
        rules=rules,
    )


def analyze_tasks(
    project: Project,
    tasks: Sequence[Task],
    dependencies: Sequence[TaskDependency],
    rules: SchedulingRules,
) -> CriticalPathReport:
    """Tasks form a flat network; cancelled ones drop out with their links."""
    nodes = [
        Node(
            id=t.id,
            name=t.title,
            type="Task",
            start=t.start_date,
            end=t.due_date,
            duration=(t.due_date - t.start_date).days + 1,
            completion=t.completion_percentage,
        )
        for t in tasks
        if not t.is_deleted and t.status != "Cancelled"
    ]
    edges = [
        Link(d.predecessor_task_id, d.successor_task_id, d.type, d.lag) for d in dependencies
    ]
    return analyze(
        nodes,
        edges,
        project_id=project.id,
        schedule_id=None,
        anchor=project.start_date,
        window_end=project.target_completion_date,
        rules=rules,
    )

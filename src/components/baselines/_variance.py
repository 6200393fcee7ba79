"""
Baseline versus current schedule comparison.

Variances are current minus baseline in calendar days, so a positive
finish variance means the item is late.
"""

from collections.abc import Sequence
from datetime import date

from src.domain.entities import BaselineItem, ScheduleBaseline, ScheduleItem

from .models import ItemRef, ItemVariance, VarianceReport, VarianceSummary


def expected_percent(item: BaselineItem, as_of: date) -> float:
    """Share of the baseline window elapsed at ``as_of`` (inclusive days)."""
    if item.type == "Milestone" or item.duration <= 0:
        return 100.0 if as_of >= item.start_date else 0.0
    span = (item.end_date - item.start_date).days + 1
    elapsed = (as_of - item.start_date).days + 1
    return round(min(max(elapsed / span, 0.0), 1.0) * 100, 1)


def _status(finish_variance: int) -> str:
    if finish_variance > 0:
        return "delayed"
    if finish_variance < 0:
        return "ahead"
    return "on_track"


def _compare(planned: BaselineItem, current: ScheduleItem, as_of: date) -> ItemVariance:
    finish = (current.end_date - planned.end_date).days
    expected = expected_percent(planned, as_of)
    return ItemVariance(
        item_id=current.id,
        name=current.name,
        type=current.type,
        baseline_start_date=planned.start_date,
        baseline_end_date=planned.end_date,
        current_start_date=current.start_date,
        current_end_date=current.end_date,
        start_variance_days=(current.start_date - planned.start_date).days,
        finish_variance_days=finish,
        duration_variance_days=current.duration - planned.duration,
        status=_status(finish),
        completion_percentage=current.completion_percentage,
        expected_percent=expected,
        percent_variance=round(current.completion_percentage - expected, 1),
        behind_schedule=current.completion_percentage < expected,
    )


def compare_baseline(
    baseline: ScheduleBaseline, items: Sequence[ScheduleItem], as_of: date
) -> VarianceReport:
    current = {i.id: i for i in items if not i.is_deleted}
    planned = {b.original_item_id: b for b in baseline.items}

    variances = [_compare(planned[i], current[i], as_of) for i in current if i in planned]
    added = [
        ItemRef(
            item_id=i.id, name=i.name, type=i.type, start_date=i.start_date, end_date=i.end_date
        )
        for i in current.values()
        if i.id not in planned
    ]
    removed = [
        ItemRef(
            item_id=b.original_item_id,
            name=b.name,
            type=b.type,
            start_date=b.start_date,
            end_date=b.end_date,
        )
        for b in baseline.items
        if b.original_item_id not in current
    ]

    finish_variances = [v.finish_variance_days for v in variances]
    baseline_finish = max((b.end_date for b in baseline.items), default=None)
    current_finish = max((i.end_date for i in current.values()), default=None)
    summary = VarianceSummary(
        matched=len(variances),
        delayed=sum(1 for v in variances if v.status == "delayed"),
        ahead=sum(1 for v in variances if v.status == "ahead"),
        on_track=sum(1 for v in variances if v.status == "on_track"),
        added=len(added),
        removed=len(removed),
        behind_schedule=sum(1 for v in variances if v.behind_schedule),
        max_finish_slip_days=max([0, *finish_variances]),
        average_finish_variance_days=(
            round(sum(finish_variances) / len(finish_variances), 2) if finish_variances else 0.0
        ),
        baseline_finish_date=baseline_finish,
        current_finish_date=current_finish,
        schedule_variance_days=(
            (current_finish - baseline_finish).days
            if baseline_finish and current_finish
            else None
        ),
    )

    return VarianceReport(
        schedule_id=baseline.schedule_id,
        baseline_id=baseline.id,
        baseline_name=baseline.name,
        captured_at=baseline.created_at,
        as_of=as_of,
        items=variances,
        added=added,
        removed=removed,
        summary=summary,
    )

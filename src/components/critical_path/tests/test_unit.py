"""
Critical path component unit tests.
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
from uuid import uuid4

import pytest

from src.components.critical_path import (
    ScheduleCPMInput,
    TaskCPMInput,
    analyze_schedule,
    run_schedule_cpm,
    run_task_cpm,
)
from src.domain.entities import Schedule, ScheduleDependency, ScheduleItem, Task, TaskDependency
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import SchedulingRules
from tests.fakes import (
    FakeProjectRepo,
    FakeScheduleRepo,
    FakeTaskRepo,
    FakeUserRepo,
    make_project,
    make_user,
)

COMPANY_ID = uuid4()
START = date(2025, 3, 3)
CREATOR = uuid4()


def _schedule() -> Schedule:
    return Schedule(
        project_id=uuid4(), start_date=START, end_date=date(2025, 3, 14), created_by=CREATOR
    )


def _item(schedule, name, offset, duration, type="Task", parent=None) -> ScheduleItem:
    start = START + timedelta(days=offset)
    end = start + timedelta(days=max(duration - 1, 0))
    return ScheduleItem(
        schedule_id=schedule.id,
        parent_item_id=parent.id if parent else None,
        name=name,
        type=type,
        start_date=start,
        end_date=end,
        duration=duration,
    )


def _dep(pred, succ, type="FS", lag=0.0) -> ScheduleDependency:
    return ScheduleDependency(
        predecessor_id=pred.id, successor_id=succ.id, type=type, lag=lag, created_by=CREATOR
    )


@pytest.fixture
def network():
    """A(3) -> B(2), C(5) -> milestone D."""
    schedule = _schedule()
    a = _item(schedule, "A", 0, 3)
    b = _item(schedule, "B", 3, 2)
    c = _item(schedule, "C", 3, 5)
    d = _item(schedule, "D", 8, 0, type="Milestone")
    deps = [_dep(a, b), _dep(a, c), _dep(b, d), _dep(c, d)]
    return schedule, [a, b, c, d], deps


class TestScheduleAnalysis:
    def test_critical_path_and_dates(self, network) -> None:
        schedule, (a, b, c, d), deps = network

        report = analyze_schedule(schedule, [a, b, c, d], deps, SchedulingRules())
        timings = {t.item_id: t for t in report.items}

        assert report.critical_path_items == [a.id, c.id, d.id]
        assert report.critical_path_length == 8
        assert report.project_length == 12
        assert report.critical_path_percentage == 66.7
        assert timings[b.id].total_float == 3
        assert timings[c.id].early_start_date == date(2025, 3, 6)
        assert timings[c.id].early_finish_date == date(2025, 3, 10)
        assert timings[d.id].early_finish_date == date(2025, 3, 11)
        assert report.forecast_finish_date == date(2025, 3, 11)
        assert report.finish_variance_days == -3

    def test_risks_and_suggestions(self, network) -> None:
        schedule, items, deps = network

        report = analyze_schedule(schedule, items, deps, SchedulingRules())

        assert [(r.name, r.level) for r in report.risk_factors] == [
            ("A", "high"),
            ("C", "high"),
            ("D", "high"),
        ]
        assert [(s.kind, s.item_id) for s in report.optimization_suggestions] == [
            ("split_or_add_resources", items[2].id)
        ]

    def test_near_critical_is_medium_risk(self, network) -> None:
        schedule, (a, b, c, d), deps = network
        b.duration = 4
        b.end_date = b.start_date + timedelta(days=3)

        report = analyze_schedule(schedule, [a, b, c, d], deps, SchedulingRules())

        risk = next(r for r in report.risk_factors if r.item_id == b.id)
        assert risk.level == "medium"
        assert risk.reason == "Float of 1 days"

    def test_completed_items_carry_no_risk(self, network) -> None:
        schedule, items, deps = network
        for item in items:
            item.completion_percentage = 100

        report = analyze_schedule(schedule, items, deps, SchedulingRules())

        assert report.risk_factors == []

    def test_planned_end_after_late_finish(self) -> None:
        schedule = _schedule()
        a = _item(schedule, "A", 0, 3)
        b = _item(schedule, "B", 0, 2)
        b.end_date = date(2025, 3, 20)
        c = _item(schedule, "C", 0, 1)

        report = analyze_schedule(
            schedule, [a, b, c], [_dep(a, c), _dep(b, c)], SchedulingRules()
        )

        late = [r for r in report.risk_factors if r.reason == "Planned end exceeds late finish"]
        assert [r.item_id for r in late] == [b.id]

    def test_rollups_and_expanded_dependencies(self) -> None:
        schedule = _schedule()
        phase = _item(schedule, "Phase", 0, 5, type="Phase")
        a = _item(schedule, "A", 0, 3, parent=phase)
        b = _item(schedule, "B", 0, 2, parent=phase)
        x = _item(schedule, "X", 0, 1)

        report = analyze_schedule(schedule, [phase, a, b, x], [_dep(phase, x)], SchedulingRules())
        timings = {t.item_id: t for t in report.items}

        assert timings[x.id].early_start == 3
        assert timings[phase.id].is_rollup is True
        assert timings[phase.id].is_critical is True
        assert (timings[phase.id].early_start, timings[phase.id].early_finish) == (0, 3)
        assert phase.id not in report.critical_path_items

    def test_planned_start_can_be_ignored(self, network) -> None:
        schedule, items, _ = network

        report = analyze_schedule(
            schedule, items, [], SchedulingRules(honor_planned_start=False)
        )

        assert all(t.early_start == 0 for t in report.items)
        assert report.critical_path_length == 5

    def test_empty_schedule(self) -> None:
        report = analyze_schedule(_schedule(), [], [], SchedulingRules())

        assert report.items == []
        assert report.forecast_finish_date is None
        assert report.critical_path_percentage == 0.0


@pytest.fixture
def policy() -> PolicyEngine:
    return PolicyEngine(load_rules(Path("rules.yaml").resolve()))


@pytest.fixture
def env():
    users, projects = FakeUserRepo(), FakeProjectRepo()
    manager = make_user(users, COMPANY_ID, ["manager"])
    project = make_project(projects, COMPANY_ID, manager)
    return manager, project, projects


class TestRunners:
    def test_schedule_cycle_reported(self, policy, env) -> None:
        manager, project, projects = env
        schedules = FakeScheduleRepo()
        schedule = Schedule(
            project_id=project.id, start_date=START, end_date=date(2025, 4, 1), created_by=CREATOR
        )
        schedules.save(schedule)
        a, b = _item(schedule, "A", 0, 2), _item(schedule, "B", 0, 2)
        for item in (a, b):
            schedules.save_item(item)
        for dep in (_dep(a, b), _dep(b, a)):
            schedules.save_dependency(dep)

        result = run_schedule_cpm(
            ScheduleCPMInput(manager, schedule.id), schedules, projects, policy, SchedulingRules()
        )

        assert result.errors[0].code == "dependency_cycle"

    def test_task_network(self, policy, env) -> None:
        manager, project, projects = env
        tasks = FakeTaskRepo()

        def task(title, start, due, status="Not Started"):
            return tasks.save(
                Task(
                    project_id=project.id,
                    title=title,
                    status=status,
                    assigned_to=manager.id,
                    created_by=manager.id,
                    start_date=start,
                    due_date=due,
                )
            )

        t1 = task("Survey", date(2025, 3, 3), date(2025, 3, 4))
        t2 = task("Grade", date(2025, 3, 5), date(2025, 3, 7))
        dropped = task("Dropped", date(2025, 3, 3), date(2025, 6, 1), status="Cancelled")
        tasks.save_dependency(
            TaskDependency(
                predecessor_task_id=t1.id, successor_task_id=t2.id, lag=1, created_by=manager.id
            )
        )

        result = run_task_cpm(
            TaskCPMInput(manager, project.id), tasks, projects, policy, SchedulingRules()
        )
        report = result.report

        assert result.success is True
        assert dropped.id not in {t.item_id for t in report.items}
        assert report.critical_path_items == [t1.id, t2.id]
        assert report.forecast_finish_date == date(2025, 3, 8)
        assert report.critical_path_percentage == 3.7
        assert [s.kind for s in report.optimization_suggestions] == [
            "split_or_add_resources",
            "review_lag",
        ]

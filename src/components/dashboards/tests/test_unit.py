"""
Dashboards component unit tests.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from pathlib import Path
from uuid import uuid4

import pytest

from src.components.dashboards import (
    AddWidgetInput,
    CreateDashboardInput,
    DashboardRefInput,
    ListDashboardsInput,
    ShareDashboardInput,
    UnshareDashboardInput,
    UpdateDashboardInput,
    UpdateWidgetInput,
    WidgetRefInput,
    WidgetSources,
    run_add_widget,
    run_create_dashboard,
    run_delete_dashboard,
    run_get_dashboard,
    run_list_dashboards,
    run_remove_widget,
    run_share_dashboard,
    run_unshare_dashboard,
    run_update_dashboard,
    run_update_widget,
    run_widget_data,
)
from src.domain.entities import (
    Budget,
    Expense,
    ProjectMetric,
    Schedule,
    ScheduleItem,
    Task,
    TaskComment,
)
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules
from tests.fakes import (
    FakeDashboardRepo,
    FakeFinancialRepo,
    FakeProjectRepo,
    FakeScheduleRepo,
    FakeTaskRepo,
    FakeUserRepo,
    FixedClock,
    make_project,
    make_user,
)

COMPANY_ID = uuid4()


@pytest.fixture
def rules() -> Rules:
    return load_rules(Path("rules.yaml").resolve())


@pytest.fixture
def policy(rules):
    return PolicyEngine(rules)


@pytest.fixture
def fakes():
    return {
        "users": FakeUserRepo(),
        "projects": FakeProjectRepo(),
        "tasks": FakeTaskRepo(),
        "schedules": FakeScheduleRepo(),
        "dashboards": FakeDashboardRepo(),
        "financials": FakeFinancialRepo(),
        "clock": FixedClock(),
    }


@pytest.fixture
def manager(fakes):
    return make_user(fakes["users"], COMPANY_ID, ["manager"], "pm@example.com")


@pytest.fixture
def member(fakes):
    return make_user(fakes["users"], COMPANY_ID, ["member"], "crew@example.com")


@pytest.fixture
def project(fakes, manager):
    return make_project(fakes["projects"], COMPANY_ID, manager)


@pytest.fixture
def sources(fakes, rules):
    return WidgetSources(
        projects=fakes["projects"],
        tasks=fakes["tasks"],
        schedules=fakes["schedules"],
        financials=fakes["financials"],
        users=fakes["users"],
        scheduling=rules.scheduling,
    )


@pytest.fixture
def create(fakes, policy, rules, project):
    def _create(actor, **kwargs):
        kwargs.setdefault("name", "Site overview")
        out = run_create_dashboard(
            CreateDashboardInput(actor=actor, project_id=project.id, **kwargs),
            fakes["dashboards"],
            fakes["projects"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )
        assert out.success, out.errors
        return out.dashboard

    return _create


class TestDashboards:
    def test_create_uses_default_layout(self, create, manager, rules):
        dashboard = create(manager)

        assert [w.type for w in dashboard.widgets] == [
            "project_summary",
            "task_status",
            "upcoming_milestones",
            "recent_activity",
        ]
        assert dashboard.widgets[0].width == 2
        assert all(
            w.refresh_interval == rules.dashboards.default_refresh_seconds
            for w in dashboard.widgets
        )

    def test_create_with_explicit_widgets(self, create, manager):
        dashboard = create(manager, widgets=[{"type": "budget_overview"}])

        assert len(dashboard.widgets) == 1
        assert dashboard.widgets[0].title == "Budget Overview"

    def test_create_requires_edit_permission(self, fakes, policy, rules, project):
        viewer = make_user(fakes["users"], COMPANY_ID, ["viewer"], "viewer@example.com")

        out = run_create_dashboard(
            CreateDashboardInput(actor=viewer, project_id=project.id, name="Mine"),
            fakes["dashboards"],
            fakes["projects"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert not out.success
        assert out.errors[0].code == "access_denied"

    def test_create_rejects_unknown_widget_type(self, fakes, policy, rules, project, manager):
        out = run_create_dashboard(
            CreateDashboardInput(
                actor=manager, project_id=project.id, name="Bad", widgets=[{"type": "clock"}]
            ),
            fakes["dashboards"],
            fakes["projects"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert not out.success
        assert out.errors[0].code == "invalid"

    def test_new_default_replaces_previous(self, fakes, create, manager):
        first = create(manager, is_default=True)
        second = create(manager, name="Second", is_default=True)

        assert not fakes["dashboards"].get_by_id(first.id).is_default
        assert fakes["dashboards"].get_by_id(second.id).is_default

    def test_list_shows_own_default_and_shared(
        self, fakes, policy, create, manager, member, project
    ):
        default = create(manager, is_default=True)
        private = create(manager, name="Private")
        own = create(member, name="Crew board")

        out = run_list_dashboards(
            ListDashboardsInput(actor=member, project_id=project.id),
            fakes["dashboards"],
            fakes["projects"],
            policy,
        )

        ids = [d.id for d in out.dashboards]
        assert ids[0] == default.id
        assert own.id in ids
        assert private.id not in ids

    def test_private_dashboard_is_hidden(self, fakes, policy, create, manager, member):
        private = create(manager, name="Private")

        out = run_get_dashboard(
            DashboardRefInput(actor=member, dashboard_id=private.id), fakes["dashboards"], policy
        )

        assert out.errors[0].code == "not_found"

    def test_update_by_creator(self, fakes, policy, rules, create, manager):
        dashboard = create(manager)

        out = run_update_dashboard(
            UpdateDashboardInput(
                actor=manager,
                dashboard_id=dashboard.id,
                changes={"name": " Renamed ", "columns": 4, "created_by": str(uuid4())},
            ),
            fakes["dashboards"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert out.success
        assert out.dashboard.name == "Renamed"
        assert out.dashboard.columns == 4
        assert out.dashboard.created_by == manager.id

    def test_update_rejects_invalid_columns(self, fakes, policy, rules, create, manager):
        dashboard = create(manager)

        out = run_update_dashboard(
            UpdateDashboardInput(actor=manager, dashboard_id=dashboard.id, changes={"columns": 9}),
            fakes["dashboards"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert out.errors[0].code == "invalid"

    def test_update_needs_edit_share(self, fakes, policy, rules, create, manager, member):
        dashboard = create(manager)
        share = ShareDashboardInput(actor=manager, dashboard_id=dashboard.id, user_id=member.id)
        run_share_dashboard(share, fakes["dashboards"], fakes["users"], policy, fakes["clock"])
        update = UpdateDashboardInput(
            actor=member, dashboard_id=dashboard.id, changes={"description": "crew notes"}
        )

        denied = run_update_dashboard(
            update, fakes["dashboards"], policy, rules.dashboards, fakes["clock"]
        )
        share.permission = "edit"
        run_share_dashboard(share, fakes["dashboards"], fakes["users"], policy, fakes["clock"])
        allowed = run_update_dashboard(
            update, fakes["dashboards"], policy, rules.dashboards, fakes["clock"]
        )

        assert denied.errors[0].code == "access_denied"
        assert allowed.success
        assert allowed.dashboard.description == "crew notes"

    def test_update_is_default_clears_others(self, fakes, policy, rules, create, manager):
        first = create(manager, is_default=True)
        second = create(manager, name="Second")

        out = run_update_dashboard(
            UpdateDashboardInput(
                actor=manager, dashboard_id=second.id, changes={"is_default": True}
            ),
            fakes["dashboards"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert out.success
        assert not fakes["dashboards"].get_by_id(first.id).is_default

    def test_only_default_cannot_be_deleted(self, fakes, policy, create, manager):
        dashboard = create(manager, is_default=True)

        out = run_delete_dashboard(
            DashboardRefInput(actor=manager, dashboard_id=dashboard.id),
            fakes["dashboards"],
            policy,
            fakes["clock"],
        )

        assert out.errors[0].code == "conflict"

    def test_delete_is_soft(self, fakes, policy, create, manager):
        dashboard = create(manager)

        out = run_delete_dashboard(
            DashboardRefInput(actor=manager, dashboard_id=dashboard.id),
            fakes["dashboards"],
            policy,
            fakes["clock"],
        )

        assert out.success
        assert fakes["dashboards"].get_by_id(dashboard.id) is None
        assert not fakes["dashboards"].dashboards[dashboard.id].is_active

    def test_admin_can_delete_others_dashboard(self, fakes, policy, create, member):
        dashboard = create(member)
        admin = make_user(fakes["users"], COMPANY_ID, ["admin"], "admin@example.com")
        share = ShareDashboardInput(actor=member, dashboard_id=dashboard.id, user_id=admin.id)
        run_share_dashboard(share, fakes["dashboards"], fakes["users"], policy, fakes["clock"])

        out = run_delete_dashboard(
            DashboardRefInput(actor=admin, dashboard_id=dashboard.id),
            fakes["dashboards"],
            policy,
            fakes["clock"],
        )

        assert out.success


class TestSharing:
    def test_share_replaces_existing_entry(self, fakes, policy, create, manager, member):
        dashboard = create(manager)
        share = ShareDashboardInput(actor=manager, dashboard_id=dashboard.id, user_id=member.id)
        run_share_dashboard(share, fakes["dashboards"], fakes["users"], policy, fakes["clock"])
        share.permission = "edit"

        out = run_share_dashboard(
            share, fakes["dashboards"], fakes["users"], policy, fakes["clock"]
        )

        assert out.success
        assert [(s.user_id, s.permission) for s in out.shared_with] == [(member.id, "edit")]

    def test_cannot_share_with_self(self, fakes, policy, create, manager):
        dashboard = create(manager)

        out = run_share_dashboard(
            ShareDashboardInput(actor=manager, dashboard_id=dashboard.id, user_id=manager.id),
            fakes["dashboards"],
            fakes["users"],
            policy,
            fakes["clock"],
        )

        assert out.errors[0].code == "invalid"

    def test_only_creator_shares(self, fakes, policy, create, manager, member):
        dashboard = create(manager, is_default=True)
        other = make_user(fakes["users"], COMPANY_ID, ["member"], "other@example.com")

        out = run_share_dashboard(
            ShareDashboardInput(actor=member, dashboard_id=dashboard.id, user_id=other.id),
            fakes["dashboards"],
            fakes["users"],
            policy,
            fakes["clock"],
        )

        assert out.errors[0].code == "access_denied"

    def test_share_with_foreign_user(self, fakes, policy, create, manager):
        dashboard = create(manager)
        outsider = make_user(fakes["users"], uuid4(), ["member"], "out@example.com")

        out = run_share_dashboard(
            ShareDashboardInput(actor=manager, dashboard_id=dashboard.id, user_id=outsider.id),
            fakes["dashboards"],
            fakes["users"],
            policy,
            fakes["clock"],
        )

        assert out.errors[0].code == "not_found"

    def test_unshare(self, fakes, policy, create, manager, member):
        dashboard = create(manager)
        run_share_dashboard(
            ShareDashboardInput(actor=manager, dashboard_id=dashboard.id, user_id=member.id),
            fakes["dashboards"],
            fakes["users"],
            policy,
            fakes["clock"],
        )
        unshare = UnshareDashboardInput(
            actor=manager, dashboard_id=dashboard.id, user_id=member.id
        )

        out = run_unshare_dashboard(unshare, fakes["dashboards"], policy, fakes["clock"])
        again = run_unshare_dashboard(unshare, fakes["dashboards"], policy, fakes["clock"])

        assert out.success
        assert out.shared_with == []
        assert again.errors[0].code == "not_found"


class TestWidgets:
    def test_add_update_remove(self, fakes, policy, rules, create, manager):
        dashboard = create(manager, widgets=[])

        added = run_add_widget(
            AddWidgetInput(
                actor=manager,
                dashboard_id=dashboard.id,
                widget={"type": "team_performance", "width": 2},
            ),
            fakes["dashboards"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )
        widget_id = added.widget.id
        updated = run_update_widget(
            UpdateWidgetInput(
                actor=manager,
                dashboard_id=dashboard.id,
                widget_id=widget_id,
                changes={"title": "Crew", "x": 1, "id": str(uuid4())},
            ),
            fakes["dashboards"],
            policy,
            fakes["clock"],
        )
        removed = run_remove_widget(
            WidgetRefInput(actor=manager, dashboard_id=dashboard.id, widget_id=widget_id),
            fakes["dashboards"],
            policy,
            fakes["clock"],
        )

        assert added.widget.title == "Team Performance"
        assert updated.widget.id == widget_id
        assert updated.widget.title == "Crew"
        assert updated.widget.x == 1
        assert removed.success
        assert fakes["dashboards"].get_by_id(dashboard.id).widgets == []

    def test_max_widgets(self, fakes, policy, rules, create, manager):
        limit = rules.dashboards.max_widgets
        dashboard = create(manager, widgets=[{"type": "task_status"}] * limit)

        out = run_add_widget(
            AddWidgetInput(
                actor=manager, dashboard_id=dashboard.id, widget={"type": "task_status"}
            ),
            fakes["dashboards"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert out.errors[0].code == "too_many_widgets"

    def test_invalid_widget_size(self, fakes, policy, rules, create, manager):
        dashboard = create(manager, widgets=[])

        out = run_add_widget(
            AddWidgetInput(
                actor=manager,
                dashboard_id=dashboard.id,
                widget={"type": "task_status", "height": 6},
            ),
            fakes["dashboards"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert out.errors[0].code == "invalid"

    def test_unknown_widget(self, fakes, policy, create, manager):
        dashboard = create(manager)

        out = run_remove_widget(
            WidgetRefInput(actor=manager, dashboard_id=dashboard.id, widget_id=uuid4()),
            fakes["dashboards"],
            policy,
            fakes["clock"],
        )

        assert out.errors[0].code == "not_found"

    @pytest.mark.parametrize(
        "widget",
        [
            {"type": "upcoming_milestones", "config": {"days": "soon"}},
            {"type": "upcoming_milestones", "config": {"days": 0}},
            {"type": "recent_activity", "config": {"limit": 1000}},
            {"type": "recent_activity", "config": {"limit": True}},
        ],
    )
    def test_add_rejects_bad_config(self, fakes, policy, rules, create, manager, widget):
        dashboard = create(manager, widgets=[])

        out = run_add_widget(
            AddWidgetInput(actor=manager, dashboard_id=dashboard.id, widget=widget),
            fakes["dashboards"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert out.errors[0].code == "invalid"
        assert out.errors[0].field == "config"
        assert fakes["dashboards"].get_by_id(dashboard.id).widgets == []

    def test_update_rejects_bad_config(self, fakes, policy, create, manager):
        dashboard = create(manager, widgets=[{"type": "recent_activity"}])
        widget_id = dashboard.widgets[0].id

        out = run_update_widget(
            UpdateWidgetInput(
                actor=manager,
                dashboard_id=dashboard.id,
                widget_id=widget_id,
                changes={"config": {"limit": 0}},
            ),
            fakes["dashboards"],
            policy,
            fakes["clock"],
        )

        assert out.errors[0].field == "config"
        assert fakes["dashboards"].get_by_id(dashboard.id).widgets[0].config == {}

    def test_create_rejects_bad_config(self, fakes, policy, rules, project, manager):
        out = run_create_dashboard(
            CreateDashboardInput(
                actor=manager,
                project_id=project.id,
                name="Bad",
                widgets=[{"type": "upcoming_milestones", "config": {"days": -7}}],
            ),
            fakes["dashboards"],
            fakes["projects"],
            policy,
            rules.dashboards,
            fakes["clock"],
        )

        assert out.errors[0].code == "invalid"
        assert fakes["dashboards"].dashboards == {}

    def test_other_widget_config_is_free_form(self, create, manager):
        dashboard = create(manager, widgets=[{"type": "custom_chart", "config": {"days": "x"}}])

        assert dashboard.widgets[0].config == {"days": "x"}


class TestWidgetData:
    @pytest.fixture
    def data(self, fakes, policy, sources, create, manager):
        def _data(widget: dict):
            dashboard = create(manager, widgets=[widget])
            out = run_widget_data(
                WidgetRefInput(
                    actor=manager,
                    dashboard_id=dashboard.id,
                    widget_id=dashboard.widgets[0].id,
                ),
                fakes["dashboards"],
                sources,
                policy,
                fakes["clock"],
            )
            assert out.success, out.errors
            return out.data

        return _data

    def _task(self, fakes, project, manager, member, **kwargs):
        kwargs.setdefault("title", "Pour slab")
        kwargs.setdefault("start_date", date(2025, 3, 1))
        kwargs.setdefault("due_date", date(2025, 3, 20))
        task = Task(
            project_id=project.id, assigned_to=member.id, created_by=manager.id, **kwargs
        )
        return fakes["tasks"].save(task)

    def test_task_status(self, data, fakes, project, manager, member):
        self._task(fakes, project, manager, member, due_date=date(2025, 3, 5))
        self._task(
            fakes, project, manager, member, status="Completed", due_date=date(2025, 3, 5)
        )
        self._task(fakes, project, manager, member, status="In Progress")

        result = data({"type": "task_status"})

        assert result["available"]
        assert result["total"] == 3
        assert result["overdue"] == 1
        assert result["status_counts"]["Not Started"] == 1
        assert result["status_counts"]["Completed"] == 1
        assert result["status_counts"]["Cancelled"] == 0

    def test_project_summary(self, data, fakes, project, manager, member):
        self._task(fakes, project, manager, member, completion_percentage=50)
        self._task(fakes, project, manager, member, completion_percentage=100)

        result = data({"type": "project_summary"})

        assert result["code"] == project.code
        assert result["days_elapsed"] == 9
        remaining = (project.target_completion_date - date(2025, 3, 10)).days
        assert result["days_remaining"] == remaining
        assert result["task_count"] == 2
        assert result["average_completion"] == 75.0

    def test_upcoming_milestones(self, data, fakes, project, manager):
        schedule = fakes["schedules"].save(
            Schedule(
                project_id=project.id,
                start_date=date(2025, 3, 1),
                end_date=date(2025, 9, 30),
                created_by=manager.id,
            )
        )
        for name, day in (("Late", date(2025, 3, 25)), ("Soon", date(2025, 3, 12))):
            fakes["schedules"].save_item(
                ScheduleItem(
                    schedule_id=schedule.id,
                    name=name,
                    type="Milestone",
                    start_date=day,
                    end_date=day,
                    duration=0,
                )
            )
        fakes["schedules"].save_item(
            ScheduleItem(
                schedule_id=schedule.id,
                name="Far",
                type="Milestone",
                start_date=date(2025, 6, 1),
                end_date=date(2025, 6, 1),
                duration=0,
            )
        )

        result = data({"type": "upcoming_milestones", "config": {"days": 20}})

        assert [m["name"] for m in result["milestones"]] == ["Soon", "Late"]
        assert result["window_end"] == date(2025, 3, 30)

    def test_recent_activity_merges_comments(self, data, fakes, project, manager, member):
        task = self._task(fakes, project, manager, member)
        fakes["tasks"].save_comment(
            TaskComment(task_id=task.id, content="Rebar delivered", created_by=member.id)
        )

        result = data({"type": "recent_activity", "config": {"limit": 5}})

        kinds = sorted(a["kind"] for a in result["activities"])
        assert kinds == ["comment", "task"]

    def _metric(self, fakes, project, name, category, value=1.0):
        fakes["projects"].save_metric(
            ProjectMetric(
                project_id=project.id,
                name=name,
                category=category,
                value=value,
                date=date(2025, 3, 9),
            )
        )

    def _schedule(self, fakes, project, manager, **kwargs):
        kwargs.setdefault("start_date", date(2025, 3, 1))
        kwargs.setdefault("end_date", date(2025, 9, 30))
        return fakes["schedules"].save(
            Schedule(project_id=project.id, created_by=manager.id, **kwargs)
        )

    def test_budget_overview(self, data, fakes, project, manager, member):
        self._metric(fakes, project, "Spend", "Financial", 1200.0)
        self._metric(fakes, project, "Defects", "Quality", 3)
        budget = fakes["financials"].save_budget(
            Budget(
                project_id=project.id,
                name="Structure",
                total_amount=80000,
                start_date=date(2025, 3, 1),
                end_date=date(2025, 6, 30),
                created_by=manager.id,
            )
        )
        for amount, status in ((5000, "Approved"), (750, "Pending"), (300, "Rejected")):
            fakes["financials"].save_expense(
                Expense(
                    project_id=project.id,
                    budget_id=budget.id,
                    description="Rebar",
                    amount=amount,
                    approval_status=status,
                    submitted_by=member.id,
                    date=date(2025, 3, 8),
                )
            )

        result = data({"type": "budget_overview"})

        assert result["budget"] == project.budget
        assert [m["name"] for m in result["metrics"]] == ["Spend"]
        assert result["total_budgeted"] == 80000
        assert result["approved_spend"] == 5000
        assert result["pending_spend"] == 750
        assert result["remaining"] == 75000
        assert [b["name"] for b in result["budgets"]] == ["Structure"]

    @pytest.mark.parametrize(
        "widget_type,expected",
        [("quality_metrics", ["Defects"]), ("safety_incidents", ["Near misses"])],
    )
    def test_category_metrics(self, data, fakes, project, widget_type, expected):
        self._metric(fakes, project, "Defects", "Quality", 3)
        self._metric(fakes, project, "Near misses", "Safety", 2)
        self._metric(fakes, project, "Spend", "Financial", 900.0)

        result = data({"type": widget_type})

        assert [m["name"] for m in result["metrics"]] == expected

    def test_team_performance(self, data, fakes, project, manager, member):
        self._task(fakes, project, manager, member, estimated_hours=8, actual_hours=6.5)
        self._task(
            fakes,
            project,
            manager,
            member,
            status="Completed",
            estimated_hours=4,
            actual_hours=5,
        )
        task = Task(
            project_id=project.id,
            title="Order steel",
            assigned_to=manager.id,
            created_by=manager.id,
            start_date=date(2025, 3, 1),
            due_date=date(2025, 3, 4),
            estimated_hours=2,
        )
        fakes["tasks"].save(task)

        result = data({"type": "team_performance"})

        rows = {r["name"]: r for r in result["members"]}
        assert [r["name"] for r in result["members"]] == ["Crew", "Pm"]
        assert rows["Crew"]["assigned"] == 2
        assert rows["Crew"]["completed"] == 1
        assert rows["Crew"]["estimated_hours"] == 12
        assert rows["Crew"]["actual_hours"] == 11.5
        assert rows["Pm"]["user_id"] == manager.id
        assert rows["Pm"]["completed"] == 0

    def test_schedule_timeline(self, data, fakes, project, manager):
        self._schedule(fakes, project, manager, name="Fit-out", start_date=date(2025, 6, 1))
        self._schedule(
            fakes,
            project,
            manager,
            name="Groundworks",
            start_date=date(2025, 2, 1),
            end_date=date(2025, 4, 30),
            status="Active",
        )

        result = data({"type": "schedule_timeline"})

        assert [s["name"] for s in result["schedules"]] == ["Groundworks", "Fit-out"]
        assert result["schedules"][0]["status"] == "Active"
        assert result["schedules"][0]["end_date"] == date(2025, 4, 30)

    def test_risk_assessment_without_active_schedule(self, data):
        result = data({"type": "risk_assessment"})

        assert result["schedule_id"] is None
        assert result["risk_factors"] == []

    def test_risk_assessment_uses_newest_active_schedule(self, data, fakes, project, manager):
        older = self._schedule(
            fakes, project, manager, status="Active", created_at=datetime(2025, 1, 5, tzinfo=UTC)
        )
        newer = self._schedule(
            fakes, project, manager, status="Active", created_at=datetime(2025, 2, 5, tzinfo=UTC)
        )
        self._schedule(fakes, project, manager, created_at=datetime(2025, 3, 5, tzinfo=UTC))
        for schedule, name in ((older, "Old pour"), (newer, "Frame")):
            fakes["schedules"].save_item(
                ScheduleItem(
                    schedule_id=schedule.id,
                    name=name,
                    start_date=date(2025, 3, 1),
                    end_date=date(2025, 3, 5),
                    duration=5,
                )
            )

        result = data({"type": "risk_assessment"})

        assert result["schedule_id"] == newer.id
        assert result["forecast_finish_date"] == date(2025, 3, 5)
        assert result["finish_variance_days"] == (date(2025, 3, 5) - date(2025, 9, 30)).days
        assert [(r["name"], r["level"], r["reason"]) for r in result["risk_factors"]] == [
            ("Frame", "high", "No float: any delay moves the finish date")
        ]

    def test_stored_bad_config_falls_back_to_default(
        self, fakes, policy, sources, create, manager, project, member
    ):
        for day in range(1, 13):
            self._task(fakes, project, manager, member, title=f"Task {day}")
        dashboard = create(manager, widgets=[{"type": "recent_activity"}])
        fakes["dashboards"].dashboards[dashboard.id].widgets[0].config = {"limit": "all"}

        out = run_widget_data(
            WidgetRefInput(
                actor=manager, dashboard_id=dashboard.id, widget_id=dashboard.widgets[0].id
            ),
            fakes["dashboards"],
            sources,
            policy,
            fakes["clock"],
        )

        assert out.success
        assert len(out.data["activities"]) == 10

    def test_unsupported_type(self, data):
        result = data({"type": "weather_forecast"})

        assert result == {"type": "weather_forecast", "available": False}

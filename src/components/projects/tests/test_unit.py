"""
Projects component unit tests.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from uuid import uuid4

import pytest

from src.components.projects import (
    AddMemberInput,
    AddMetricInput,
    AddPhaseInput,
    ChildRefInput,
    CreateProjectInput,
    DeleteProjectInput,
    GetProjectInput,
    ListProjectsInput,
    UpdateMemberInput,
    UpdatePhaseInput,
    UpdateProjectInput,
    run_add_member,
    run_add_metric,
    run_add_phase,
    run_create_project,
    run_delete_project,
    run_get_project,
    run_list_members,
    run_list_metrics,
    run_list_phases,
    run_list_projects,
    run_remove_member,
    run_remove_phase,
    run_update_member,
    run_update_phase,
    run_update_project,
)
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from tests.fakes import FakeProjectRepo, FakeUserRepo, FixedClock, make_user

COMPANY_ID = uuid4()


@pytest.fixture
def rules():
    return load_rules(Path("rules.yaml").resolve())


@pytest.fixture
def policy(rules) -> PolicyEngine:
    return PolicyEngine(rules)


@pytest.fixture
def repo() -> FakeProjectRepo:
    return FakeProjectRepo()


@pytest.fixture
def users() -> FakeUserRepo:
    return FakeUserRepo()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def manager(users):
    return make_user(users, COMPANY_ID, ["manager"])


@pytest.fixture
def viewer(users):
    return make_user(users, COMPANY_ID, ["viewer"])


@pytest.fixture
def create(repo, users, policy, rules, clock):
    def _create(actor, **overrides):
        fields = {
            "name": "Harbour Bridge Retrofit",
            "code": "hbr-01",
            "start_date": date(2025, 3, 1),
            "target_completion_date": date(2025, 12, 31),
            "budget": 1_500_000.0,
        }
        fields.update(overrides)
        inp = CreateProjectInput(actor=actor, **fields)
        return run_create_project(inp, repo, users, policy, rules.projects, clock)

    return _create


class TestCreateProject:
    def test_create_normalizes_code_and_adds_manager_member(self, create, manager, repo) -> None:
        result = create(manager)

        assert result.success is True
        project = result.project
        assert project.code == "HBR-01"
        assert project.company_id == COMPANY_ID
        assert project.project_manager_id == manager.id
        members = repo.list_members(project.id)
        assert [(m.user_id, m.role) for m in members] == [(manager.id, "Project Manager")]

    def test_creator_added_when_manager_differs(self, create, manager, users, repo) -> None:
        pm = make_user(users, COMPANY_ID, ["member"], email="pm@example.com")

        result = create(manager, project_manager_id=pm.id)

        roles = {m.user_id: m.role for m in repo.list_members(result.project.id)}
        assert roles == {pm.id: "Project Manager", manager.id: "Creator"}

    def test_manager_from_other_company_rejected(self, create, manager, users) -> None:
        outsider = make_user(users, uuid4(), ["member"], email="out@example.com")

        result = create(manager, project_manager_id=outsider.id)

        assert result.success is False
        assert result.errors[0].code == "not_found"

    def test_duplicate_code_conflicts(self, create, manager) -> None:
        create(manager)
        result = create(manager, code="HBR-01", name="Second")

        assert result.success is False
        assert result.errors[0].code == "conflict"

    def test_invalid_code_and_dates(self, create, manager) -> None:
        result = create(
            manager,
            code="bad code!",
            start_date=date(2025, 6, 1),
            target_completion_date=date(2025, 5, 1),
            budget=-5,
        )

        codes = {e.code for e in result.errors}
        assert codes == {"invalid_code", "invalid_dates", "invalid_budget"}

    def test_viewer_cannot_create(self, create, viewer) -> None:
        result = create(viewer)

        assert result.errors[0].code == "access_denied"


class TestProjectLifecycle:
    def test_list_is_company_scoped(self, create, manager, users, repo, policy) -> None:
        create(manager)
        other_manager = make_user(users, uuid4(), ["manager"], email="m2@example.com")
        create(other_manager, code="OTHER")

        result = run_list_projects(ListProjectsInput(actor=manager), repo, policy)

        assert [p.code for p in result.projects] == ["HBR-01"]

    def test_other_company_project_is_not_found(self, create, manager, users, repo, policy):
        project = create(manager).project
        stranger = make_user(users, uuid4(), ["owner"], email="s@example.com")

        result = run_get_project(GetProjectInput(stranger, project.id), repo, policy)

        assert result.errors[0].code == "not_found"

    def test_completing_stamps_actual_completion(
        self, create, manager, repo, users, policy, clock, monkeypatch
    ) -> None:
        project = create(manager, status="Active").project
        monkeypatch.setattr(clock, "today", lambda: date(2025, 3, 11))

        result = run_update_project(
            UpdateProjectInput(manager, project.id, {"status": "Completed"}),
            repo,
            users,
            policy,
            clock,
        )

        assert result.success is True
        assert result.project.actual_completion_date == date(2025, 3, 11)

    def test_invalid_transition(self, create, manager, repo, users, policy, clock) -> None:
        project = create(manager).project

        result = run_update_project(
            UpdateProjectInput(manager, project.id, {"status": "Completed"}),
            repo,
            users,
            policy,
            clock,
        )

        assert result.errors[0].code == "invalid_transition"

    def test_code_is_immutable(self, create, manager, repo, users, policy, clock) -> None:
        project = create(manager).project

        result = run_update_project(
            UpdateProjectInput(manager, project.id, {"code": "NEW"}), repo, users, policy, clock
        )

        assert result.errors[0].code == "immutable"

    def test_changing_manager_swaps_membership(
        self, create, manager, repo, users, policy, clock
    ) -> None:
        project = create(manager).project
        pm = make_user(users, COMPANY_ID, ["member"], email="pm@example.com")

        result = run_update_project(
            UpdateProjectInput(manager, project.id, {"project_manager_id": pm.id}),
            repo,
            users,
            policy,
            clock,
        )

        assert result.success is True
        active = {m.user_id: m.role for m in repo.list_members(project.id)}
        assert active == {pm.id: "Project Manager"}

    def test_soft_delete_requires_delete_permission(
        self, create, manager, users, repo, policy, clock
    ) -> None:
        project = create(manager).project

        denied = run_delete_project(DeleteProjectInput(manager, project.id), repo, policy, clock)
        assert denied.errors[0].code == "access_denied"

        admin = make_user(users, COMPANY_ID, ["admin"], email="admin@example.com")
        result = run_delete_project(DeleteProjectInput(admin, project.id), repo, policy, clock)

        assert result.success is True
        assert repo.get_by_id(project.id) is None
        assert repo.projects[project.id].deleted_at == clock.now


class TestPhases:
    def test_order_defaults_to_last_plus_one(self, create, manager, repo, policy) -> None:
        project = create(manager).project
        for name in ("Design", "Build"):
            run_add_phase(
                AddPhaseInput(manager, project.id, name, date(2025, 3, 1), date(2025, 4, 1)),
                repo,
                policy,
            )

        phases = run_list_phases(GetProjectInput(manager, project.id), repo, policy).phases

        assert [(p.name, p.order) for p in phases] == [("Design", 1), ("Build", 2)]

    def test_phase_dates_validated_on_update(self, create, manager, repo, policy) -> None:
        project = create(manager).project
        phase = run_add_phase(
            AddPhaseInput(manager, project.id, "Design", date(2025, 3, 1), date(2025, 4, 1)),
            repo,
            policy,
        ).phase

        result = run_update_phase(
            UpdatePhaseInput(manager, project.id, phase.id, {"end_date": date(2025, 2, 1)}),
            repo,
            policy,
        )

        assert result.errors[0].code == "invalid_dates"

    def test_remove_phase(self, create, manager, repo, policy) -> None:
        project = create(manager).project
        phase = run_add_phase(
            AddPhaseInput(manager, project.id, "Design", date(2025, 3, 1), date(2025, 4, 1)),
            repo,
            policy,
        ).phase

        result = run_remove_phase(ChildRefInput(manager, project.id, phase.id), repo, policy)

        assert result.success is True
        assert repo.list_phases(project.id) == []


class TestMembers:
    def test_add_update_remove_member(self, create, manager, users, repo, policy, clock) -> None:
        project = create(manager).project
        worker = make_user(users, COMPANY_ID, ["member"], email="worker@example.com")

        added = run_add_member(
            AddMemberInput(manager, project.id, worker.id, "Site Engineer"),
            repo,
            users,
            policy,
            clock,
        )
        assert added.success is True

        duplicate = run_add_member(
            AddMemberInput(manager, project.id, worker.id, "Foreman"), repo, users, policy, clock
        )
        assert duplicate.errors[0].code == "conflict"

        updated = run_update_member(
            UpdateMemberInput(manager, project.id, added.member.id, {"role": "Foreman"}),
            repo,
            policy,
        )
        assert updated.member.role == "Foreman"

        removed = run_remove_member(
            ChildRefInput(manager, project.id, added.member.id), repo, policy, clock
        )
        assert removed.success is True
        members = run_list_members(GetProjectInput(manager, project.id), repo, policy).members
        assert worker.id not in {m.user_id for m in members}


class TestMetrics:
    def test_metrics_filtered_by_category(self, create, manager, repo, policy) -> None:
        project = create(manager).project
        for name, category in (("Spend", "Financial"), ("Defects", "Quality")):
            run_add_metric(
                AddMetricInput(manager, project.id, name, category, 10.0, date(2025, 3, 5)),
                repo,
                policy,
            )

        result = run_list_metrics(
            GetProjectInput(manager, project.id), repo, policy, category="Quality"
        )

        assert [m.name for m in result.metrics] == ["Defects"]

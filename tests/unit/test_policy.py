from pathlib import Path
from uuid import uuid4

import pytest

from src.domain.entities import Dashboard, DashboardShare, User
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules

COMPANY = uuid4()


@pytest.fixture
def engine():
    rules_path = Path(__file__).parent.parent.parent / "rules.yaml"
    return PolicyEngine(load_rules(rules_path))


def make_user(*roles: str, company_id=COMPANY, status="active") -> User:
    return User(
        email=f"{'-'.join(roles) or 'none'}@acme.test",
        display_name="Test",
        password_hash="hash",
        roles=list(roles),
        status=status,
        company_id=company_id,
    )


def make_dashboard(created_by, **kwargs) -> Dashboard:
    return Dashboard(
        name="Board", project_id=uuid4(), company_id=COMPANY, created_by=created_by, **kwargs
    )


def test_public_permission_needs_no_user(engine):
    assert engine.check_permission(None, [], "health:read") is True


def test_owner_wildcard(engine):
    assert engine.can(make_user("owner"), "anything:really") is True


def test_scoped_wildcard(engine):
    admin = make_user("admin")
    assert engine.can(admin, "schedules:delete") is True
    assert engine.can(admin, "billing:read") is False


@pytest.mark.parametrize(
    "role,action,allowed",
    [
        ("manager", "projects:create", True),
        ("manager", "projects:delete", False),
        ("member", "tasks:edit", True),
        ("member", "schedules:edit", False),
        ("viewer", "tasks:read", True),
        ("viewer", "tasks:edit", False),
        ("viewer", "time:log", False),
        ("manager", "financials:approve", True),
        ("member", "financials:submit", True),
        ("member", "financials:approve", False),
        ("viewer", "financials:read", True),
        ("viewer", "financials:submit", False),
    ],
)
def test_role_matrix(engine, role, action, allowed):
    assert engine.can(make_user(role), action) is allowed


def test_disabled_user_denied(engine):
    assert engine.can(make_user("owner", status="disabled"), "projects:read") is False


def test_manage_users(engine):
    assert engine.can_manage_users(make_user("admin")) is True
    assert engine.can_manage_users(make_user("manager")) is False


def test_same_company(engine):
    user = make_user("member")
    dashboard = make_dashboard(uuid4())
    assert engine.same_company(user, dashboard) is True
    assert engine.same_company(make_user("member", company_id=uuid4()), dashboard) is False
    assert engine.same_company(make_user("member", company_id=None), dashboard) is False


class TestDashboardAccess:
    def test_default_visible_to_company(self, engine):
        board = make_dashboard(uuid4(), is_default=True)
        assert engine.can_view_dashboard(make_user("viewer"), board) is True
        outsider = make_user("owner", company_id=uuid4())
        assert engine.can_view_dashboard(outsider, board) is False

    def test_private_visible_to_creator_and_shares(self, engine):
        creator = make_user("manager")
        guest = make_user("member")
        board = make_dashboard(creator.id)
        assert engine.can_view_dashboard(creator, board) is True
        assert engine.can_view_dashboard(guest, board) is False

        board.shared_with.append(DashboardShare(user_id=guest.id))
        assert engine.can_view_dashboard(guest, board) is True
        assert engine.can_edit_dashboard(guest, board) is False

    def test_edit_share(self, engine):
        guest = make_user("member")
        board = make_dashboard(
            uuid4(), shared_with=[DashboardShare(user_id=guest.id, permission="edit")]
        )
        assert engine.can_edit_dashboard(guest, board) is True

    def test_edit_share_still_needs_role(self, engine):
        viewer = make_user("viewer")
        board = make_dashboard(
            uuid4(), shared_with=[DashboardShare(user_id=viewer.id, permission="edit")]
        )
        assert engine.can_edit_dashboard(viewer, board) is False

    def test_inactive_hidden(self, engine):
        creator = make_user("manager")
        board = make_dashboard(creator.id, is_active=False)
        assert engine.can_view_dashboard(creator, board) is False

    def test_delete_by_creator_or_admin(self, engine):
        creator = make_user("manager")
        board = make_dashboard(creator.id)
        assert engine.can_delete_dashboard(creator, board) is True
        assert engine.can_delete_dashboard(make_user("admin"), board) is True
        assert engine.can_delete_dashboard(make_user("manager"), board) is False

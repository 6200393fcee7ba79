"""
Auth component unit tests.

Tests for registration, login and user administration.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from src.components.auth import (
    ACCOUNT_DISABLED,
    INVALID_CREDENTIALS,
    CreateUserInput,
    ListUsersInput,
    LoginInput,
    RegisterInput,
    UpdateUserInput,
    run_create_user,
    run_list_users,
    run_login,
    run_register,
    run_update_user,
)
from src.domain.entities import Company, User
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules

# --- Mock Implementations ---


class MockUserRepo:
    """In-memory user repository for testing."""

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}

    def get_by_email(self, email: str) -> User | None:
        return next((u for u in self._users.values() if u.email == email), None)

    def get_by_id(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    def save(self, user: User) -> User:
        self._users[user.id] = user
        return user

    def list_by_company(self, company_id: UUID) -> list[User]:
        return [u for u in self._users.values() if u.company_id == company_id]


class MockCompanyRepo:
    def __init__(self) -> None:
        self.companies: dict[UUID, Company] = {}

    def save(self, company: Company) -> Company:
        self.companies[company.id] = company
        return company

    def get_by_id(self, company_id: UUID) -> Company | None:
        return self.companies.get(company_id)


class MockAuthAdapter:
    """Hash is "hashed_" + plain."""

    def verify_password(self, plain: str, hashed: str) -> bool:
        return hashed == f"hashed_{plain}"

    def hash_password(self, plain: str) -> str:
        return f"hashed_{plain}"

    def create_token(self, user_id: object, ttl_minutes: int) -> str:
        return f"token_{user_id}_{ttl_minutes}"


class MockTimePort:
    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._time = fixed_time or datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._time

    def advance(self, delta: timedelta) -> None:
        self._time = self._time + delta


# --- Fixtures ---

COMPANY_ID = uuid4()


@pytest.fixture
def user_repo() -> MockUserRepo:
    return MockUserRepo()


@pytest.fixture
def company_repo() -> MockCompanyRepo:
    return MockCompanyRepo()


@pytest.fixture
def auth_adapter() -> MockAuthAdapter:
    return MockAuthAdapter()


@pytest.fixture
def time_port() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def policy() -> PolicyEngine:
    rules = load_rules(Path("rules.yaml").resolve())
    return PolicyEngine(rules)


def _make_user(repo: MockUserRepo, email: str, roles: list, status: str = "active") -> User:
    user = User(
        email=email,
        display_name=email.split("@")[0],
        password_hash=f"hashed_{email.split('@')[0]}123",
        roles=roles,
        status=status,
        company_id=COMPANY_ID,
    )
    repo.save(user)
    return user


@pytest.fixture
def admin_user(user_repo: MockUserRepo) -> User:
    return _make_user(user_repo, "admin@example.com", ["admin"])


@pytest.fixture
def owner_user(user_repo: MockUserRepo) -> User:
    return _make_user(user_repo, "owner@example.com", ["owner"])


@pytest.fixture
def regular_user(user_repo: MockUserRepo) -> User:
    return _make_user(user_repo, "user@example.com", ["viewer"])


# --- Register Tests ---


class TestRegister:
    def test_register_creates_company_and_owner(
        self, user_repo, company_repo, auth_adapter, time_port
    ) -> None:
        inp = RegisterInput(
            email="Founder@Example.com",
            password="longenough",
            display_name="Founder",
            company_name="Acme Builders",
        )
        result = run_register(inp, user_repo, company_repo, auth_adapter, time_port, 8)

        assert result.success is True
        assert result.company is not None
        assert result.company.name == "Acme Builders"
        assert result.user is not None
        assert result.user.email == "founder@example.com"
        assert result.user.roles == ["owner"]
        assert result.user.company_id == result.company.id
        assert result.user.password_hash == "hashed_longenough"

    def test_register_duplicate_email(
        self, admin_user, user_repo, company_repo, auth_adapter, time_port
    ) -> None:
        inp = RegisterInput("admin@example.com", "longenough", "Dup", "Other Co")
        result = run_register(inp, user_repo, company_repo, auth_adapter, time_port, 8)

        assert result.success is False
        assert result.errors[0].code == "conflict"
        assert company_repo.companies == {}

    def test_register_validates_fields(
        self, user_repo, company_repo, auth_adapter, time_port
    ) -> None:
        inp = RegisterInput("not-an-email", "short", "", " ")
        result = run_register(inp, user_repo, company_repo, auth_adapter, time_port, 8)

        assert result.success is False
        fields = {e.field for e in result.errors}
        assert fields == {"email", "password", "display_name", "company_name"}


# --- Login Tests ---


class TestLogin:
    def test_login_success_records_last_login(
        self, admin_user, user_repo, auth_adapter, time_port
    ) -> None:
        inp = LoginInput(email="admin@example.com", password="admin123")
        result = run_login(inp, user_repo, auth_adapter, time_port, 60)

        assert result.success is True
        assert result.token == f"token_{admin_user.id}_60"
        assert user_repo.get_by_id(admin_user.id).last_login_at == time_port.now_utc()

    def test_login_invalid_email(self, user_repo, auth_adapter, time_port) -> None:
        inp = LoginInput(email="unknown@example.com", password="password")
        result = run_login(inp, user_repo, auth_adapter, time_port, 60)

        assert result.success is False
        assert result.user is None
        assert result.errors[0].code == INVALID_CREDENTIALS

    def test_login_invalid_password(self, admin_user, user_repo, auth_adapter, time_port) -> None:
        inp = LoginInput(email="admin@example.com", password="wrongpassword")
        result = run_login(inp, user_repo, auth_adapter, time_port, 60)

        assert result.success is False
        assert result.errors[0].code == INVALID_CREDENTIALS

    def test_login_disabled_user(self, user_repo, auth_adapter, time_port) -> None:
        _make_user(user_repo, "disabled@example.com", ["viewer"], status="disabled")

        inp = LoginInput(email="disabled@example.com", password="disabled123")
        result = run_login(inp, user_repo, auth_adapter, time_port, 60)

        assert result.success is False
        assert result.errors[0].code == ACCOUNT_DISABLED


# --- User Management Tests ---


class TestUserManagement:
    def test_create_user_joins_actor_company(
        self, admin_user, user_repo, auth_adapter, policy, time_port
    ) -> None:
        inp = CreateUserInput(
            actor=admin_user,
            email="newuser@example.com",
            password="newpass123",
            roles=["member"],
            display_name="New User",
        )
        result = run_create_user(inp, user_repo, auth_adapter, policy, time_port, 8)

        assert result.success is True
        assert result.user.company_id == COMPANY_ID
        assert result.user.display_name == "New User"

    def test_create_user_access_denied(
        self, regular_user, user_repo, auth_adapter, policy, time_port
    ) -> None:
        inp = CreateUserInput(regular_user, "newuser@example.com", "newpass123", ["viewer"])
        result = run_create_user(inp, user_repo, auth_adapter, policy, time_port, 8)

        assert result.success is False
        assert result.errors[0].code == "access_denied"

    def test_create_user_duplicate_email(
        self, admin_user, regular_user, user_repo, auth_adapter, policy, time_port
    ) -> None:
        inp = CreateUserInput(admin_user, "user@example.com", "newpass123", ["viewer"])
        result = run_create_user(inp, user_repo, auth_adapter, policy, time_port, 8)

        assert result.errors[0].code == "conflict"

    def test_admin_cannot_grant_owner(
        self, admin_user, user_repo, auth_adapter, policy, time_port
    ) -> None:
        inp = CreateUserInput(admin_user, "boss@example.com", "newpass123", ["owner"])
        result = run_create_user(inp, user_repo, auth_adapter, policy, time_port, 8)

        assert result.errors[0].code == "access_denied"

    def test_unknown_role_rejected(
        self, owner_user, user_repo, auth_adapter, policy, time_port
    ) -> None:
        inp = CreateUserInput(owner_user, "x@example.com", "newpass123", ["superuser"])
        result = run_create_user(inp, user_repo, auth_adapter, policy, time_port, 8)

        assert result.errors[0].code == "invalid_role"

    def test_update_user_roles_and_status(
        self, admin_user, regular_user, user_repo, policy, time_port
    ) -> None:
        inp = UpdateUserInput(
            actor=admin_user,
            target_id=str(regular_user.id),
            new_roles=["manager"],
            new_status="disabled",
        )
        result = run_update_user(inp, user_repo, policy, time_port)

        assert result.success is True
        assert result.user.roles == ["manager"]
        assert result.user.status == "disabled"

    def test_cannot_remove_own_admin_role(self, admin_user, user_repo, policy, time_port) -> None:
        inp = UpdateUserInput(admin_user, str(admin_user.id), new_roles=["viewer"])
        result = run_update_user(inp, user_repo, policy, time_port)

        assert result.success is False
        assert result.errors[0].code == "self_lockout"

    def test_cannot_disable_self(self, owner_user, user_repo, policy, time_port) -> None:
        inp = UpdateUserInput(owner_user, str(owner_user.id), new_status="disabled")
        result = run_update_user(inp, user_repo, policy, time_port)

        assert result.errors[0].message == "Cannot disable yourself"

    def test_update_user_other_company_is_not_found(
        self, admin_user, user_repo, policy, time_port
    ) -> None:
        outsider = User(
            email="out@elsewhere.com",
            display_name="Out",
            password_hash="x",
            roles=["viewer"],
            company_id=uuid4(),
        )
        user_repo.save(outsider)

        inp = UpdateUserInput(admin_user, str(outsider.id), new_status="disabled")
        result = run_update_user(inp, user_repo, policy, time_port)

        assert result.errors[0].code == "not_found"

    def test_update_user_invalid_id(self, admin_user, user_repo, policy, time_port) -> None:
        inp = UpdateUserInput(admin_user, "not-a-uuid")
        result = run_update_user(inp, user_repo, policy, time_port)

        assert result.errors[0].code == "invalid_id"

    def test_list_users_scoped_to_company(
        self, admin_user, regular_user, user_repo, policy
    ) -> None:
        user_repo.save(
            User(email="o@other.com", display_name="o", password_hash="x", company_id=uuid4())
        )

        result = run_list_users(ListUsersInput(actor=admin_user), user_repo, policy)

        assert result.success is True
        assert {u.email for u in result.users} == {"admin@example.com", "user@example.com"}

    def test_list_users_denied_for_viewer(self, regular_user, user_repo, policy) -> None:
        result = run_list_users(ListUsersInput(actor=regular_user), user_repo, policy)

        assert result.success is False
        assert result.users == []

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api import deps
from src.api.deps import PROJECT_ROOT, Settings, get_rules, get_settings
from src.api.main import app
from src.rules.loader import load_rules
from src.rules.models import Rules


@pytest.fixture
def rules() -> Rules:
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a fresh, fully migrated SQLite database."""
    s = Settings()
    s.data_dir = tmp_path / "data"
    s.data_dir.mkdir()
    s.db_path = str(s.data_dir / "test.db")
    s.rules_path = PROJECT_ROOT / "rules.yaml"
    SQLiteMigrator(s.db_path, s.migrations_dir).run_migrations()
    return s


@pytest.fixture
def client(test_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setattr(deps, "_rate_limiter_instance", None)
    get_rules.cache_clear()
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
    get_rules.cache_clear()


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Register a company; returns the response body plus ready-made auth headers."""

    def _register(
        email: str = "owner@acme.test",
        company_name: str = "Acme Builders",
        password: str = "password123",
    ) -> dict[str, Any]:
        resp = client.post(
            "/api/auth/register",
            json={
                "email": email,
                "password": password,
                "display_name": email.split("@")[0].title(),
                "company_name": company_name,
            },
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
        client.cookies.clear()
        return body

    return _register


@pytest.fixture
def owner(register: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return register()


@pytest.fixture
def add_user(client: TestClient, owner: dict[str, Any]) -> Callable[..., dict[str, Any]]:
    """Create a company user with the given roles and log them in."""

    def _add(email: str, roles: list[str]) -> dict[str, Any]:
        resp = client.post(
            "/api/users",
            json={"email": email, "password": "password123", "roles": roles},
            headers=owner["headers"],
        )
        assert resp.status_code == 201, resp.text
        login = client.post(
            "/api/auth/login", data={"username": email, "password": "password123"}
        )
        assert login.status_code == 200, login.text
        client.cookies.clear()
        user = resp.json()
        user["headers"] = {"Authorization": f"Bearer {login.json()['access_token']}"}
        return user

    return _add


@pytest.fixture
def project(client: TestClient, owner: dict[str, Any]) -> dict[str, Any]:
    resp = client.post(
        "/api/projects",
        json={
            "name": "Harbour Tower",
            "code": "HT-01",
            "start_date": "2025-03-01",
            "target_completion_date": "2025-06-30",
            "budget": 250000,
        },
        headers=owner["headers"],
    )
    assert resp.status_code == 201, resp.text
    return resp.json()

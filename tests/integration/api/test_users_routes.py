"""Integration tests for users API routes."""

from fastapi.testclient import TestClient


def test_owner_creates_and_lists_users(client: TestClient, owner) -> None:
    resp = client.post(
        "/api/users",
        json={"email": "pm@acme.test", "password": "password123", "roles": ["manager"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["roles"] == ["manager"]
    assert created["company_id"] == owner["company_id"]

    listing = client.get("/api/users", headers=owner["headers"])
    assert listing.status_code == 200
    emails = {u["email"] for u in listing.json()}
    assert emails == {"owner@acme.test", "pm@acme.test"}


def test_users_are_scoped_to_company(client: TestClient, owner, register) -> None:
    other = register(email="boss@rival.test", company_name="Rival Co")

    listing = client.get("/api/users", headers=other["headers"])
    assert [u["email"] for u in listing.json()] == ["boss@rival.test"]

    resp = client.put(
        f"/api/users/{owner['user']['id']}", json={"status": "disabled"}, headers=other["headers"]
    )
    assert resp.status_code == 404


def test_member_cannot_manage_users(client: TestClient, add_user) -> None:
    member = add_user("crew@acme.test", ["member"])
    resp = client.post(
        "/api/users",
        json={"email": "x@acme.test", "password": "password123"},
        headers=member["headers"],
    )
    assert resp.status_code == 403


def test_admin_cannot_grant_owner(client: TestClient, add_user) -> None:
    admin = add_user("admin@acme.test", ["admin"])
    resp = client.post(
        "/api/users",
        json={"email": "x@acme.test", "password": "password123", "roles": ["owner"]},
        headers=admin["headers"],
    )
    assert resp.status_code == 403


def test_owner_cannot_disable_self(client: TestClient, owner) -> None:
    resp = client.put(
        f"/api/users/{owner['user']['id']}", json={"status": "disabled"}, headers=owner["headers"]
    )
    assert resp.status_code == 400
    assert resp.json()["detail"][0]["code"] == "self_lockout"


def test_update_roles(client: TestClient, owner, add_user) -> None:
    member = add_user("crew@acme.test", ["member"])
    resp = client.put(
        f"/api/users/{member['id']}", json={"roles": ["viewer"]}, headers=owner["headers"]
    )
    assert resp.status_code == 200
    assert resp.json()["roles"] == ["viewer"]

from fastapi.testclient import TestClient


def test_create_project_uppercases_code_and_adds_manager(client: TestClient, owner) -> None:
    resp = client.post(
        "/api/projects",
        json={
            "name": "Depot Extension",
            "code": "dep-7",
            "start_date": "2025-04-01",
            "target_completion_date": "2025-09-30",
        },
        headers=owner["headers"],
    )
    assert resp.status_code == 201
    project = resp.json()
    assert project["code"] == "DEP-7"
    assert project["status"] == "Planning"
    assert project["project_manager_id"] == owner["user"]["id"]

    members = client.get(f"/api/projects/{project['id']}/members", headers=owner["headers"])
    assert [m["user_id"] for m in members.json()] == [owner["user"]["id"]]


def test_duplicate_code_conflicts(client: TestClient, owner, project) -> None:
    resp = client.post(
        "/api/projects",
        json={
            "name": "Copy",
            "code": "ht-01",
            "start_date": "2025-03-01",
            "target_completion_date": "2025-06-30",
        },
        headers=owner["headers"],
    )
    assert resp.status_code == 409


def test_target_before_start_rejected(client: TestClient, owner) -> None:
    resp = client.post(
        "/api/projects",
        json={
            "name": "Backwards",
            "code": "BK",
            "start_date": "2025-06-01",
            "target_completion_date": "2025-05-01",
        },
        headers=owner["headers"],
    )
    assert resp.status_code == 400


def test_other_company_sees_not_found(client: TestClient, project, register) -> None:
    rival = register(email="boss@rival.test", company_name="Rival Co")
    resp = client.get(f"/api/projects/{project['id']}", headers=rival["headers"])
    assert resp.status_code == 404
    assert client.get("/api/projects", headers=rival["headers"]).json() == []


def test_viewer_reads_but_cannot_edit(client: TestClient, project, add_user) -> None:
    viewer = add_user("view@acme.test", ["viewer"])
    url = f"/api/projects/{project['id']}"
    assert client.get(url, headers=viewer["headers"]).status_code == 200
    resp = client.put(url, json={"name": "Nope"}, headers=viewer["headers"])
    assert resp.status_code == 403


def test_status_transitions(client: TestClient, owner, project) -> None:
    url = f"/api/projects/{project['id']}"
    resp = client.put(url, json={"status": "Completed"}, headers=owner["headers"])
    assert resp.status_code == 400
    assert resp.json()["detail"][0]["code"] == "invalid_transition"

    assert client.put(url, json={"status": "Active"}, headers=owner["headers"]).status_code == 200
    done = client.put(url, json={"status": "Completed"}, headers=owner["headers"])
    assert done.status_code == 200
    assert done.json()["actual_completion_date"] is not None


def test_update_rejects_unknown_fields(client: TestClient, owner, project) -> None:
    resp = client.put(
        f"/api/projects/{project['id']}",
        json={"company_id": owner["company_id"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 422


def test_list_filters_by_status(client: TestClient, owner, project) -> None:
    active = client.get("/api/projects", params={"status": "Active"}, headers=owner["headers"])
    assert active.json() == []
    planning = client.get("/api/projects", params={"status": "Planning"}, headers=owner["headers"])
    assert [p["id"] for p in planning.json()] == [project["id"]]


def test_delete_project(client: TestClient, owner, project) -> None:
    url = f"/api/projects/{project['id']}"
    assert client.delete(url, headers=owner["headers"]).status_code == 204
    assert client.get(url, headers=owner["headers"]).status_code == 404


def test_phases_crud(client: TestClient, owner, project) -> None:
    base = f"/api/projects/{project['id']}/phases"
    first = client.post(
        base,
        json={"name": "Foundations", "start_date": "2025-03-01", "end_date": "2025-03-31"},
        headers=owner["headers"],
    )
    second = client.post(
        base,
        json={"name": "Framing", "start_date": "2025-04-01", "end_date": "2025-04-30"},
        headers=owner["headers"],
    )
    assert first.status_code == 201 and second.status_code == 201
    assert second.json()["order"] == first.json()["order"] + 1

    bad = client.post(
        base,
        json={"name": "Bad", "start_date": "2025-04-01", "end_date": "2025-03-01"},
        headers=owner["headers"],
    )
    assert bad.status_code == 400

    phase_id = first.json()["id"]
    upd = client.put(
        f"{base}/{phase_id}", json={"completion_percentage": 50}, headers=owner["headers"]
    )
    assert upd.json()["completion_percentage"] == 50

    assert client.delete(f"{base}/{phase_id}", headers=owner["headers"]).status_code == 204
    names = [p["name"] for p in client.get(base, headers=owner["headers"]).json()]
    assert names == ["Framing"]


def test_members_crud(client: TestClient, owner, project, add_user) -> None:
    crew = add_user("crew@acme.test", ["member"])
    base = f"/api/projects/{project['id']}/members"

    added = client.post(
        base, json={"user_id": crew["id"], "role": "Site Engineer"}, headers=owner["headers"]
    )
    assert added.status_code == 201
    again = client.post(
        base, json={"user_id": crew["id"], "role": "Site Engineer"}, headers=owner["headers"]
    )
    assert again.status_code == 409

    member_id = added.json()["id"]
    upd = client.put(f"{base}/{member_id}", json={"role": "Foreman"}, headers=owner["headers"])
    assert upd.json()["role"] == "Foreman"

    assert client.delete(f"{base}/{member_id}", headers=owner["headers"]).status_code == 204
    user_ids = [m["user_id"] for m in client.get(base, headers=owner["headers"]).json()]
    assert crew["id"] not in user_ids


def test_metrics_filter_by_category(client: TestClient, owner, project) -> None:
    base = f"/api/projects/{project['id']}/metrics"
    for name, category in [("Cost to date", "Financial"), ("Incidents", "Safety")]:
        resp = client.post(
            base,
            json={"name": name, "category": category, "value": 3, "date": "2025-03-05"},
            headers=owner["headers"],
        )
        assert resp.status_code == 201

    safety = client.get(base, params={"category": "Safety"}, headers=owner["headers"])
    assert [m["name"] for m in safety.json()] == ["Incidents"]
    assert len(client.get(base, headers=owner["headers"]).json()) == 2


def test_update_and_remove_metric(client: TestClient, owner, project) -> None:
    base = f"/api/projects/{project['id']}/metrics"
    metric = client.post(
        base,
        json={"name": "Incidents", "category": "Safety", "value": 1, "date": "2025-03-05"},
        headers=owner["headers"],
    ).json()

    resp = client.put(
        f"{base}/{metric['id']}",
        json={"value": 4, "date": "2025-03-12"},
        headers=owner["headers"],
    )
    assert resp.status_code == 200
    assert resp.json()["value"] == 4
    assert resp.json()["date"] == "2025-03-12"

    unknown = client.put(f"{base}/{metric['id']}", json={"colour": "red"}, headers=owner["headers"])
    assert unknown.status_code == 422

    assert client.delete(f"{base}/{metric['id']}", headers=owner["headers"]).status_code == 204
    assert client.get(base, headers=owner["headers"]).json() == []

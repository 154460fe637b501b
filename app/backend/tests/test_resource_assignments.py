from __future__ import annotations

import uuid

from fastapi.testclient import TestClient


def _create_user(client: TestClient, email: str, monthly_salary: str = "8000.00") -> str:
    response = client.post(
        "/api/v1/users",
        json={"email": email, "display_name": email.split("@")[0], "monthly_salary": monthly_salary},
    )
    assert response.status_code == 201
    return response.json()["id"]


def _create_project(client: TestClient, code: str, total_fee: str = "100000.00") -> tuple[str, list[str]]:
    response = client.post(
        "/api/v1/projects",
        json={
            "code": code,
            "name": f"Project {code}",
            "client_name": "Client Ltd",
            "total_fee": total_fee,
            "target_profit_margin": "0.20",
            "lifecycle_stages": ["prelim", "concept"],
        },
    )
    assert response.status_code == 201
    body = response.json()
    return body["id"], [phase["id"] for phase in body["phases"]]


def _assign(client: TestClient, phase_id: str, user_id: str, planned_hours: int, **extra: object):
    return client.post(
        f"/api/v1/phases/{phase_id}/assignments",
        json={"user_id": user_id, "planned_hours": planned_hours, **extra},
    )


def test_create_assignment_snapshots_rate_and_reports_utilization(client: TestClient) -> None:
    user_id = _create_user(client, "alice@test.local")
    _, phase_ids = _create_project(client, "RA-1")

    created = _assign(client, phase_ids[0], user_id, 25, start_date="2024-05-06", end_date="2024-05-31")
    assert created.status_code == 201
    body = created.json()
    assert body["user_id"] == user_id
    assert body["phase_id"] == phase_ids[0]
    assert body["billing_rate"] == "125.00"
    assert body["planned_cost"] == "3125.00"
    assert body["utilization"]["week_start"] == "2024-05-06"
    assert body["utilization"]["total_hours_planned"] == 25
    assert body["utilization"]["is_over_utilized"] is False

    over = _assign(client, phase_ids[1], user_id, 20, start_date="2024-05-08")
    assert over.status_code == 201
    assert over.json()["utilization"]["total_hours_planned"] == 45
    assert over.json()["utilization"]["is_over_utilized"] is True
    assert over.json()["utilization"]["hours_over_limit"] == 5


def test_duplicate_assignment_is_conflict(client: TestClient) -> None:
    user_id = _create_user(client, "bob@test.local")
    _, phase_ids = _create_project(client, "RA-2")

    assert _assign(client, phase_ids[0], user_id, 10).status_code == 201

    duplicate = _assign(client, phase_ids[0], user_id, 5)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "User is already assigned to this phase."

    listing = client.get(f"/api/v1/phases/{phase_ids[0]}/assignments")
    assert listing.status_code == 200
    assert len(listing.json()["items"]) == 1


def test_assignment_validation_and_missing_references(client: TestClient) -> None:
    user_id = _create_user(client, "carol@test.local")
    _, phase_ids = _create_project(client, "RA-3")

    assert _assign(client, phase_ids[0], user_id, 0).status_code == 422
    assert _assign(client, phase_ids[0], user_id, -4).status_code == 422

    reversed_window = _assign(client, phase_ids[0], user_id, 8, start_date="2024-05-10", end_date="2024-05-01")
    assert reversed_window.status_code == 422

    missing_user = _assign(client, phase_ids[0], str(uuid.uuid4()), 8)
    assert missing_user.status_code == 404
    assert missing_user.json()["detail"] == "User not found."

    missing_phase = _assign(client, str(uuid.uuid4()), user_id, 8)
    assert missing_phase.status_code == 404
    assert missing_phase.json()["detail"] == "Phase not found."


def test_salary_change_does_not_rewrite_existing_rates(client: TestClient) -> None:
    user_id = _create_user(client, "dan@test.local")
    project_id, phase_ids = _create_project(client, "RA-4")

    assert _assign(client, phase_ids[0], user_id, 10).status_code == 201

    updated = client.patch(f"/api/v1/users/{user_id}/compensation", json={"monthly_salary": "16000.00"})
    assert updated.status_code == 200
    assert updated.json()["hourly_billing_rate"] == "250.00"

    rate = client.get(f"/api/v1/users/{user_id}/hourly-rate")
    assert rate.json()["hourly_billing_rate"] == "250.00"

    assert _assign(client, phase_ids[1], user_id, 10).status_code == 201

    listing = client.get(f"/api/v1/projects/{project_id}/assignments")
    assert listing.status_code == 200
    rates = [item["billing_rate"] for item in listing.json()["items"]]
    assert rates == ["125.00", "250.00"]


def test_reassign_replaces_row_with_fresh_snapshot(client: TestClient) -> None:
    user_id = _create_user(client, "erin@test.local")
    _, phase_ids = _create_project(client, "RA-5")

    original = _assign(client, phase_ids[0], user_id, 10).json()
    client.patch(f"/api/v1/users/{user_id}/compensation", json={"monthly_salary": "9600.00"})

    replaced = client.put(
        f"/api/v1/assignments/{original['id']}",
        json={"planned_hours": 30, "start_date": "2024-05-06"},
    )
    assert replaced.status_code == 200
    body = replaced.json()
    assert body["id"] != original["id"]
    assert body["planned_hours"] == 30
    assert body["billing_rate"] == "150.00"
    assert body["utilization"]["total_hours_planned"] == 30

    listing = client.get(f"/api/v1/phases/{phase_ids[0]}/assignments").json()["items"]
    assert [item["id"] for item in listing] == [body["id"]]

    missing = client.put(f"/api/v1/assignments/{original['id']}", json={"planned_hours": 5})
    assert missing.status_code == 404


def test_delete_assignment(client: TestClient) -> None:
    user_id = _create_user(client, "fay@test.local")
    _, phase_ids = _create_project(client, "RA-6")
    assignment_id = _assign(client, phase_ids[0], user_id, 12).json()["id"]

    assert client.delete(f"/api/v1/assignments/{assignment_id}").status_code == 204
    assert client.get(f"/api/v1/phases/{phase_ids[0]}/assignments").json()["items"] == []
    assert client.delete(f"/api/v1/assignments/{assignment_id}").status_code == 404


def test_burn_rate_endpoint(client: TestClient) -> None:
    senior_id = _create_user(client, "senior@test.local", monthly_salary="8000.00")
    junior_id = _create_user(client, "junior@test.local", monthly_salary="6400.00")
    project_id, phase_ids = _create_project(client, "RA-7")
    other_project_id, other_phase_ids = _create_project(client, "RA-8")

    empty = client.get(f"/api/v1/projects/{project_id}/phases/{phase_ids[0]}/burn-rate")
    assert empty.status_code == 200
    assert empty.json()["burn_percentage"] == "0.00"
    assert empty.json()["status"] == "healthy"

    assert _assign(client, phase_ids[0], senior_id, 400).status_code == 201
    assert _assign(client, phase_ids[1], junior_id, 300).status_code == 201
    assert _assign(client, other_phase_ids[0], junior_id, 100).status_code == 201

    response = client.get(f"/api/v1/projects/{project_id}/phases/{phase_ids[1]}/burn-rate")
    assert response.status_code == 200
    body = response.json()
    assert body["total_fee"] == "100000.00"
    assert body["production_budget"] == "80000.00"
    assert body["current_burn"] == "80000.00"
    assert body["burn_percentage"] == "100.00"
    assert body["status"] == "warning"
    assert body["assignment_count"] == 2

    again = client.get(f"/api/v1/projects/{project_id}/phases/{phase_ids[1]}/burn-rate")
    assert again.json() == response.json()

    mismatched = client.get(f"/api/v1/projects/{other_project_id}/phases/{phase_ids[0]}/burn-rate")
    assert mismatched.status_code == 404
    assert mismatched.json()["detail"] == "Phase not found in project."

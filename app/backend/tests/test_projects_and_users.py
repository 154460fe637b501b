from __future__ import annotations

import uuid

from fastapi.testclient import TestClient


def _project_payload(code: str, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "code": code,
        "name": "Harbour Offices",
        "client_name": "Harbour Holdings",
        "total_fee": "250000.00",
    }
    payload.update(overrides)
    return payload


def test_create_project_creates_phase_per_stage(client: TestClient) -> None:
    response = client.post("/api/v1/projects", json=_project_payload("PRJ-ALL"))

    assert response.status_code == 201
    body = response.json()
    assert body["project_stage"] == "concept"
    assert body["status"] == "active"
    assert body["total_fee"] == "250000.00"
    assert [phase["stage"] for phase in body["phases"]] == [
        "concept",
        "prelim",
        "statutory",
        "tender",
        "contract",
        "construction",
        "completion",
    ]
    assert [phase["phase_number"] for phase in body["phases"]] == [1, 2, 3, 4, 5, 6, 7]
    assert body["phases"][5]["name"] == "Construction Stage"

    phases = client.get(f"/api/v1/projects/{body['id']}/phases")
    assert phases.status_code == 200
    assert [phase["id"] for phase in phases.json()["items"]] == [phase["id"] for phase in body["phases"]]


def test_create_project_with_selected_stages(client: TestClient) -> None:
    response = client.post(
        "/api/v1/projects",
        json=_project_payload("PRJ-SEL", lifecycle_stages=["construction", "concept", "construction"]),
    )

    assert response.status_code == 201
    assert [phase["stage"] for phase in response.json()["phases"]] == ["concept", "construction"]


def test_project_validation_and_conflicts(client: TestClient) -> None:
    assert client.post("/api/v1/projects", json=_project_payload("PRJ-DUP")).status_code == 201

    duplicate = client.post("/api/v1/projects", json=_project_payload("PRJ-DUP"))
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Project code already exists."

    assert client.post("/api/v1/projects", json=_project_payload("PRJ-M", target_profit_margin="1")).status_code == 422
    assert client.post("/api/v1/projects", json=_project_payload("PRJ-F", total_fee="-1")).status_code == 422
    assert client.get(f"/api/v1/projects/{uuid.uuid4()}").status_code == 404


def test_update_project_financials(client: TestClient) -> None:
    project_id = client.post("/api/v1/projects", json=_project_payload("PRJ-FIN")).json()["id"]

    response = client.patch(
        f"/api/v1/projects/{project_id}/financials",
        json={"total_fee": "300000.00", "target_profit_margin": "0.25"},
    )

    assert response.status_code == 200
    assert response.json()["total_fee"] == "300000.00"
    assert response.json()["target_profit_margin"] == "0.2500"

    fetched = client.get(f"/api/v1/projects/{project_id}")
    assert fetched.json()["total_fee"] == "300000.00"


def test_stage_transitions(client: TestClient) -> None:
    project_id = client.post("/api/v1/projects", json=_project_payload("PRJ-STG")).json()["id"]
    url = f"/api/v1/projects/{project_id}/stage"

    forward = client.post(url, json={"stage": "tender"})
    assert forward.status_code == 200
    assert forward.json()["project_stage"] == "tender"

    backward = client.post(url, json={"stage": "prelim"})
    assert backward.status_code == 422

    override = client.post(url, json={"stage": "prelim", "allow_backward": True})
    assert override.status_code == 200
    assert override.json()["project_stage"] == "prelim"

    completed = client.post(url, json={"stage": "completion"})
    assert completed.json()["status"] == "inactive"

    reopened = client.post(url, json={"stage": "construction", "allow_backward": True})
    assert reopened.json()["status"] == "active"


def test_user_lifecycle_and_rate_preview(client: TestClient) -> None:
    created = client.post(
        "/api/v1/users",
        json={
            "email": "Architect@Test.local",
            "display_name": "Architect",
            "monthly_salary": "9000.00",
            "typical_hours_per_month": 150,
            "overhead_multiplier": "2.0",
        },
    )
    assert created.status_code == 201
    user = created.json()
    assert user["email"] == "architect@test.local"
    assert user["hourly_billing_rate"] == "120.00"

    duplicate = client.post(
        "/api/v1/users",
        json={"email": "architect@test.local", "display_name": "Again"},
    )
    assert duplicate.status_code == 409

    fetched = client.get(f"/api/v1/users/{user['id']}")
    assert fetched.json()["display_name"] == "Architect"

    invalid = client.patch(f"/api/v1/users/{user['id']}/compensation", json={"overhead_multiplier": "0.5"})
    assert invalid.status_code == 422

    assert client.get(f"/api/v1/users/{uuid.uuid4()}/hourly-rate").status_code == 404

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.entities import Phase, Project, ProjectStage, ProjectStatus, ResourceAssignment, User
from app.services.planning_service import PlanningService
from app.services.utilization import WeekWindow, evaluate_utilization, overlaps_window, week_window

WEEK = WeekWindow(start=date(2024, 5, 6), end=date(2024, 5, 12))


def _create_user(db: Session, email: str = "planner@test.local") -> User:
    now = datetime.utcnow()
    user = User(
        email=email,
        display_name="Planner",
        active=True,
        monthly_salary=Decimal("8000.00"),
        typical_hours_per_month=160,
        overhead_multiplier=Decimal("2.50"),
        tax_rate=Decimal("0"),
        insurance_deduction=Decimal("0"),
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    return user


def _create_phase(db: Session, code: str) -> Phase:
    now = datetime.utcnow()
    project = Project(
        code=code,
        name=f"Project {code}",
        total_fee=Decimal("100000.00"),
        target_profit_margin=Decimal("0.20"),
        project_stage=ProjectStage.CONCEPT,
        status=ProjectStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    db.flush()
    phase = Phase(project_id=project.id, stage=ProjectStage.CONCEPT, name="Concept Design", phase_number=1)
    db.add(phase)
    db.commit()
    return phase


def _book(
    db: Session,
    user: User,
    phase: Phase,
    hours: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> None:
    db.add(
        ResourceAssignment(
            user_id=user.id,
            phase_id=phase.id,
            planned_hours=hours,
            billing_rate=Decimal("125.00"),
            start_date=start_date,
            end_date=end_date,
            created_at=datetime.utcnow(),
        )
    )
    db.commit()


def test_week_window_is_monday_to_sunday() -> None:
    window = week_window(date(2024, 5, 9))

    assert window.start == date(2024, 5, 6)
    assert window.end == date(2024, 5, 12)
    assert week_window(date(2024, 5, 6)) == window
    assert week_window(date(2024, 5, 12)) == window


def test_overlaps_window_handles_open_ranges() -> None:
    assert overlaps_window(None, None, WEEK)
    assert overlaps_window(date(2024, 4, 1), None, WEEK)
    assert overlaps_window(None, date(2024, 5, 6), WEEK)
    assert overlaps_window(date(2024, 5, 12), date(2024, 6, 1), WEEK)
    assert not overlaps_window(date(2024, 5, 13), None, WEEK)
    assert not overlaps_window(None, date(2024, 5, 5), WEEK)


def test_evaluate_utilization_over_capacity() -> None:
    result = evaluate_utilization(WEEK, [25], proposed_hours=20)

    assert result.total_hours_planned == 45
    assert result.is_over_utilized is True
    assert result.hours_over_limit == 5


def test_single_large_proposal_is_over_capacity() -> None:
    result = evaluate_utilization(WEEK, [], proposed_hours=45)

    assert result.is_over_utilized is True
    assert result.hours_over_limit == 5


def test_exact_capacity_is_not_over_utilized() -> None:
    result = evaluate_utilization(WEEK, [20, 20])

    assert result.total_hours_planned == 40
    assert result.is_over_utilized is False
    assert result.hours_over_limit == 0


def test_utilization_sums_across_projects(db_session: Session) -> None:
    user = _create_user(db_session)
    _book(db_session, user, _create_phase(db_session, "UT-A"), 25, date(2024, 5, 6), date(2024, 5, 31))

    result = PlanningService(db_session).check_utilization(
        user.id,
        week_start=date(2024, 5, 8),
        proposed_hours=20,
    )

    assert result.week_start == date(2024, 5, 6)
    assert result.total_hours_planned == 45
    assert result.is_over_utilized is True
    assert result.hours_over_limit == 5


def test_utilization_includes_open_ended_and_excludes_other_weeks(db_session: Session) -> None:
    user = _create_user(db_session)
    other_user = _create_user(db_session, email="other@test.local")
    _book(db_session, user, _create_phase(db_session, "UT-OPEN"), 10)
    _book(db_session, user, _create_phase(db_session, "UT-LATER"), 30, date(2024, 5, 13), None)
    _book(db_session, user, _create_phase(db_session, "UT-EARLIER"), 30, None, date(2024, 5, 3))
    _book(db_session, user, _create_phase(db_session, "UT-STARTED"), 15, date(2024, 4, 1), None)
    _book(db_session, other_user, _create_phase(db_session, "UT-OTHER"), 40)

    result = PlanningService(db_session).check_utilization(user.id, week_start=date(2024, 5, 6))

    assert result.total_hours_planned == 25
    assert result.is_over_utilized is False


def test_utilization_validates_inputs(db_session: Session) -> None:
    user = _create_user(db_session)
    service = PlanningService(db_session)

    with pytest.raises(ValidationError):
        service.check_utilization(user.id, proposed_hours=-1)

    with pytest.raises(NotFoundError):
        service.check_utilization(uuid.uuid4())


def test_utilization_endpoint(client: TestClient, db_session: Session) -> None:
    user = _create_user(db_session)
    _book(db_session, user, _create_phase(db_session, "UT-API"), 32, date(2024, 5, 1), date(2024, 5, 31))

    response = client.get(
        f"/api/v1/users/{user.id}/utilization",
        params={"week_start": "2024-05-06", "proposed_hours": 16},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["week_start"] == "2024-05-06"
    assert body["week_end"] == "2024-05-12"
    assert body["total_hours_planned"] == 48
    assert body["is_over_utilized"] is True
    assert body["hours_over_limit"] == 8
    assert body["capacity_hours"] == 40

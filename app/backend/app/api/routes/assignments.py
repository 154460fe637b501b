"""Resource assignment ledger endpoints."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session
from app.services.planning_service import AssignmentCreateData, AssignmentResult, PlanningService

router = APIRouter(tags=["assignments"])


class AssignmentCreatePayload(BaseModel):
    user_id: UUID
    planned_hours: int = Field(gt=0)
    start_date: date | None = None
    end_date: date | None = None


class ReassignPayload(BaseModel):
    planned_hours: int = Field(gt=0)
    start_date: date | None = None
    end_date: date | None = None


def _planning_service(db: Session) -> PlanningService:
    return PlanningService(db)


def _serialize_result(service: PlanningService, result: AssignmentResult) -> dict[str, object]:
    return {
        **service.serialize_assignment(result.assignment),
        "utilization": service.serialize_utilization(result.utilization),
    }


@router.post("/phases/{phase_id}/assignments", status_code=status.HTTP_201_CREATED)
def create_assignment(
    phase_id: UUID,
    payload: AssignmentCreatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    result = service.create_assignment(
        AssignmentCreateData(
            user_id=payload.user_id,
            phase_id=phase_id,
            planned_hours=payload.planned_hours,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    )
    return _serialize_result(service, result)


@router.get("/phases/{phase_id}/assignments")
def list_phase_assignments(phase_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _planning_service(db)
    return {"items": [service.serialize_assignment(row) for row in service.list_phase_assignments(phase_id)]}


@router.put("/assignments/{assignment_id}")
def reassign(
    assignment_id: UUID,
    payload: ReassignPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    result = service.reassign(
        assignment_id,
        planned_hours=payload.planned_hours,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return _serialize_result(service, result)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(assignment_id: UUID, db: Session = Depends(get_db_session)) -> Response:
    _planning_service(db).delete_assignment(assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

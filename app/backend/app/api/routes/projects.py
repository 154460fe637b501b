"""Project setup, lifecycle, burn and stage invoicing endpoints."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session
from app.models.entities import ProjectStage
from app.services.billing_service import BillingService
from app.services.planning_service import PlanningService, ProjectCreateData, ProjectFinancialsUpdateData

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectCreatePayload(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    client_name: str | None = Field(default=None, max_length=255)
    total_fee: Decimal = Field(ge=0)
    target_profit_margin: Decimal = Field(default=Decimal("0.20"), ge=0, lt=1)
    project_stage: ProjectStage = ProjectStage.CONCEPT
    lifecycle_stages: list[ProjectStage] | None = None


class ProjectFinancialsPayload(BaseModel):
    total_fee: Decimal | None = Field(default=None, ge=0)
    target_profit_margin: Decimal | None = Field(default=None, ge=0, lt=1)


class StageTransitionPayload(BaseModel):
    stage: ProjectStage
    allow_backward: bool = False


def _planning_service(db: Session) -> PlanningService:
    return PlanningService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(payload: ProjectCreatePayload, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    project, phases = service.create_project(
        ProjectCreateData(
            code=payload.code,
            name=payload.name,
            client_name=payload.client_name,
            total_fee=payload.total_fee,
            target_profit_margin=payload.target_profit_margin,
            project_stage=payload.project_stage,
            lifecycle_stages=payload.lifecycle_stages,
        )
    )
    return {
        **service.serialize_project(project),
        "phases": [service.serialize_phase(phase) for phase in phases],
    }


@router.get("/{project_id}")
def get_project(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    return service.serialize_project(service.get_project(project_id))


@router.patch("/{project_id}/financials")
def update_project_financials(
    project_id: UUID,
    payload: ProjectFinancialsPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    project = service.update_project_financials(
        project_id,
        ProjectFinancialsUpdateData(
            total_fee=payload.total_fee,
            target_profit_margin=payload.target_profit_margin,
        ),
    )
    return service.serialize_project(project)


@router.post("/{project_id}/stage")
def transition_project_stage(
    project_id: UUID,
    payload: StageTransitionPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    project = service.transition_stage(project_id, payload.stage, allow_backward=payload.allow_backward)
    return service.serialize_project(project)


@router.get("/{project_id}/phases")
def list_project_phases(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _planning_service(db)
    return {"items": [service.serialize_phase(phase) for phase in service.list_phases(project_id)]}


@router.get("/{project_id}/assignments")
def list_project_assignments(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _planning_service(db)
    rows = service.list_project_assignments(project_id)
    return {"items": [service.serialize_assignment(row) for row in rows]}


@router.get("/{project_id}/phases/{phase_id}/burn-rate")
def get_burn_rate(project_id: UUID, phase_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    return service.serialize_burn(service.get_burn_rate(project_id, phase_id))


@router.get("/{project_id}/stage-invoice-line")
def get_stage_invoice_line(
    project_id: UUID,
    stage: ProjectStage = Query(...),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = BillingService(db)
    return service.serialize_draft(service.compute_stage_invoice_line(project_id, stage))

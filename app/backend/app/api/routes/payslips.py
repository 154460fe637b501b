"""Payslip status endpoint."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session
from app.models.entities import PayslipStatus
from app.services.billing_service import BillingService

router = APIRouter(prefix="/payslips", tags=["payslips"])


class PayslipStatusPayload(BaseModel):
    status: PayslipStatus


@router.patch("/{payslip_id}/status")
def update_payslip_status(
    payslip_id: UUID,
    payload: PayslipStatusPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = BillingService(db)
    return service.serialize_payslip(service.update_payslip_status(payslip_id, payload.status))

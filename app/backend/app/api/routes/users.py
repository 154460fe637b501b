"""User compensation, utilization and payroll endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session
from app.services.billing_service import BillingService, PayslipInput
from app.services.planning_service import CompensationUpdateData, PlanningService, UserCreateData

router = APIRouter(prefix="/users", tags=["users"])


class UserCreatePayload(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    display_name: str = Field(min_length=1, max_length=255)
    monthly_salary: Decimal = Field(default=Decimal("0"), ge=0)
    typical_hours_per_month: int = Field(default=160, gt=0)
    overhead_multiplier: Decimal = Field(default=Decimal("2.5"), ge=1)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    insurance_deduction: Decimal = Field(default=Decimal("0"), ge=0)


class CompensationUpdatePayload(BaseModel):
    monthly_salary: Decimal | None = Field(default=None, ge=0)
    typical_hours_per_month: int | None = Field(default=None, gt=0)
    overhead_multiplier: Decimal | None = Field(default=None, ge=1)
    tax_rate: Decimal | None = Field(default=None, ge=0, le=100)
    insurance_deduction: Decimal | None = Field(default=None, ge=0)


class PayslipPayload(BaseModel):
    pay_period_start: date | None = None
    pay_period_end: date | None = None
    monthly_salary: Decimal | None = None
    allowances: Decimal = Decimal("0")
    bonuses: Decimal = Decimal("0")
    other_deductions: Decimal = Decimal("0")
    notes: str | None = Field(default=None, max_length=2000)

    def to_input(self) -> PayslipInput:
        return PayslipInput(
            pay_period_start=self.pay_period_start,
            pay_period_end=self.pay_period_end,
            monthly_salary=self.monthly_salary,
            allowances=self.allowances,
            bonuses=self.bonuses,
            other_deductions=self.other_deductions,
            notes=self.notes,
        )


def _planning_service(db: Session) -> PlanningService:
    return PlanningService(db)


def _billing_service(db: Session) -> BillingService:
    return BillingService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreatePayload, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    user = service.create_user(
        UserCreateData(
            email=payload.email,
            display_name=payload.display_name,
            monthly_salary=payload.monthly_salary,
            typical_hours_per_month=payload.typical_hours_per_month,
            overhead_multiplier=payload.overhead_multiplier,
            tax_rate=payload.tax_rate,
            insurance_deduction=payload.insurance_deduction,
        )
    )
    return service.serialize_user(user)


@router.get("/{user_id}")
def get_user(user_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    return service.serialize_user(service.get_user(user_id))


@router.patch("/{user_id}/compensation")
def update_compensation(
    user_id: UUID,
    payload: CompensationUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    user = service.update_compensation(
        user_id,
        CompensationUpdateData(
            monthly_salary=payload.monthly_salary,
            typical_hours_per_month=payload.typical_hours_per_month,
            overhead_multiplier=payload.overhead_multiplier,
            tax_rate=payload.tax_rate,
            insurance_deduction=payload.insurance_deduction,
        ),
    )
    return service.serialize_user(user)


@router.get("/{user_id}/hourly-rate")
def get_hourly_rate(user_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, str]:
    rate = _planning_service(db).hourly_rate(user_id)
    return {"user_id": str(user_id), "hourly_billing_rate": str(rate)}


@router.get("/{user_id}/utilization")
def get_utilization(
    user_id: UUID,
    week_start: date | None = Query(default=None),
    proposed_hours: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    result = service.check_utilization(user_id, week_start=week_start, proposed_hours=proposed_hours)
    return service.serialize_utilization(result)


@router.post("/{user_id}/payslips:compute")
def compute_payslip(
    user_id: UUID,
    payload: PayslipPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _billing_service(db)
    return service.serialize_computation(service.compute_payslip(user_id, payload.to_input()))


@router.post("/{user_id}/payslips", status_code=status.HTTP_201_CREATED)
def generate_payslip(
    user_id: UUID,
    payload: PayslipPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _billing_service(db)
    return service.serialize_payslip(service.generate_payslip(user_id, payload.to_input()))


@router.get("/{user_id}/payslips")
def list_payslips(user_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _billing_service(db)
    return {"items": [service.serialize_payslip(row) for row in service.list_payslips(user_id)]}

"""Invoice endpoints for stage-based and manual billing."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.db.dependencies import get_db_session
from app.models.entities import InvoiceItemType, ProjectStage
from app.services.billing_service import BillingService, ManualItemInput

router = APIRouter(tags=["invoices"])


class ManualItemPayload(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price: Decimal
    item_type: InvoiceItemType = InvoiceItemType.FIXED_PRICE


class InvoiceCreatePayload(BaseModel):
    mode: Literal["standard", "manual"] = "standard"
    stage: ProjectStage | None = None
    items: list[ManualItemPayload] = Field(default_factory=list)
    issue_date: date | None = None
    due_date: date | None = None
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    client_name: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=2000)


def _billing_service(db: Session) -> BillingService:
    return BillingService(db)


@router.post("/projects/{project_id}/invoices", status_code=status.HTTP_201_CREATED)
def create_invoice(
    project_id: UUID,
    payload: InvoiceCreatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _billing_service(db)
    if payload.mode == "standard":
        if payload.stage is None:
            raise ValidationError("stage is required for standard invoices.")
        invoice = service.create_standard_invoice(
            project_id,
            stage=payload.stage,
            tax_rate=payload.tax_rate,
            notes=payload.notes,
            client_name=payload.client_name,
        )
    else:
        invoice = service.create_manual_invoice(
            project_id,
            items=[
                ManualItemInput(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    item_type=item.item_type,
                )
                for item in payload.items
            ],
            issue_date=payload.issue_date,
            due_date=payload.due_date,
            tax_rate=payload.tax_rate,
            notes=payload.notes,
            client_name=payload.client_name,
        )
    return service.serialize_invoice(invoice)


@router.get("/projects/{project_id}/invoices")
def list_project_invoices(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _billing_service(db)
    return {"items": [service.serialize_invoice(row) for row in service.list_invoices(project_id)]}


@router.get("/invoices/{invoice_id}")
def get_invoice(invoice_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _billing_service(db)
    return service.serialize_invoice(service.get_invoice(invoice_id))

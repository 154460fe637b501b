"""Stage invoicing and payroll service layer."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.entities import (
    Invoice,
    InvoiceItem,
    InvoiceItemType,
    Payslip,
    PayslipStatus,
    Project,
    ProjectStage,
    User,
)
from app.repositories.billing_repository import BillingRepository
from app.repositories.planning_repository import PlanningRepository
from app.services.payroll import PayslipComputation, compute_payslip
from app.services.stage_invoicing import (
    InvoiceDraft,
    ManualLineItem,
    StandardLineItem,
    invoice_totals,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")

# Payslips in these states are final and cannot change status again.
FINAL_PAYSLIP_STATUSES = {PayslipStatus.PAID, PayslipStatus.CANCELLED}


def _money(value: Decimal) -> str:
    return str(Decimal(value).quantize(Q2))


@dataclass(slots=True)
class ManualItemInput:
    description: str
    quantity: Decimal
    unit_price: Decimal
    item_type: InvoiceItemType = InvoiceItemType.FIXED_PRICE


@dataclass(slots=True)
class PayslipInput:
    pay_period_start: date | None
    pay_period_end: date | None
    monthly_salary: Decimal | None = None
    allowances: Decimal = ZERO
    bonuses: Decimal = ZERO
    other_deductions: Decimal = ZERO
    notes: str | None = None


class BillingService:
    """Stage-based and manual invoices, payslip computation and persistence."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = BillingRepository(db)
        self.planning_repo = PlanningRepository(db)
        self.settings = get_settings()

    def _require_project(self, project_id: UUID) -> Project:
        project = self.planning_repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found.")
        return project

    def _require_user(self, user_id: UUID) -> User:
        user = self.planning_repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    # ---------- Serialization ----------
    @staticmethod
    def serialize_line_item(item: StandardLineItem | ManualLineItem) -> dict[str, object]:
        payload: dict[str, object] = {
            "description": item.description,
            "item_type": item.item_type.value,
            "quantity": str(item.quantity),
            "unit_price": _money(item.unit_price),
            "amount": _money(item.amount),
            "read_only": isinstance(item, StandardLineItem),
        }
        if isinstance(item, StandardLineItem):
            payload["stage"] = item.stage.value
            payload["fee_percentage"] = str(item.fee_percentage)
        return payload

    @classmethod
    def serialize_draft(cls, draft: InvoiceDraft) -> dict[str, object]:
        return {
            "mode": draft.mode.value,
            "stage": draft.stage.value if draft.stage else None,
            "issue_date": draft.issue_date.isoformat() if draft.issue_date else None,
            "due_date": draft.due_date.isoformat() if draft.due_date else None,
            "items": [cls.serialize_line_item(item) for item in draft.items],
            "subtotal": _money(draft.subtotal),
        }

    @staticmethod
    def serialize_invoice(invoice: Invoice) -> dict[str, object]:
        return {
            "id": str(invoice.id),
            "project_id": str(invoice.project_id),
            "invoice_number": invoice.invoice_number,
            "client_name": invoice.client_name,
            "mode": invoice.mode.value,
            "stage": invoice.stage.value if invoice.stage else None,
            "issue_date": invoice.issue_date.isoformat(),
            "due_date": invoice.due_date.isoformat(),
            "status": invoice.status.value,
            "subtotal": _money(invoice.subtotal),
            "tax_rate": str(invoice.tax_rate),
            "tax_amount": _money(invoice.tax_amount),
            "total_amount": _money(invoice.total_amount),
            "notes": invoice.notes,
            "items": [
                {
                    "description": item.description,
                    "item_type": item.item_type.value,
                    "quantity": str(item.quantity),
                    "unit_price": _money(item.unit_price),
                    "amount": _money(item.amount),
                }
                for item in invoice.items
            ],
        }

    @staticmethod
    def serialize_computation(result: PayslipComputation) -> dict[str, object]:
        return {
            "monthly_salary": _money(result.monthly_salary),
            "pay_period_start": result.pay_period_start.isoformat(),
            "pay_period_end": result.pay_period_end.isoformat(),
            "worked_days": result.worked_days,
            "month_working_days": result.month_working_days,
            "daily_rate": _money(result.daily_rate),
            "gross_salary": _money(result.gross_salary),
            "allowances": _money(result.allowances),
            "bonuses": _money(result.bonuses),
            "tax_deduction": _money(result.tax_deduction),
            "insurance_deduction": _money(result.insurance_deduction),
            "other_deductions": _money(result.other_deductions),
            "total_deductions": _money(result.total_deductions),
            "net_salary": _money(result.net_salary),
        }

    @staticmethod
    def serialize_payslip(payslip: Payslip) -> dict[str, object]:
        return {
            "id": str(payslip.id),
            "user_id": str(payslip.user_id),
            "payslip_number": payslip.payslip_number,
            "pay_period_start": payslip.pay_period_start.isoformat(),
            "pay_period_end": payslip.pay_period_end.isoformat(),
            "pay_date": payslip.pay_date.isoformat(),
            "monthly_salary": _money(payslip.monthly_salary),
            "worked_days": payslip.worked_days,
            "month_working_days": payslip.month_working_days,
            "gross_salary": _money(payslip.gross_salary),
            "total_deductions": _money(payslip.total_deductions),
            "net_salary": _money(payslip.net_salary),
            "status": payslip.status.value,
            "notes": payslip.notes,
        }

    # ---------- Stage invoicing ----------
    def compute_stage_invoice_line(self, project_id: UUID, stage: ProjectStage) -> InvoiceDraft:
        """Standard-mode draft for ``stage``: one read-only line, due in 15 days."""

        project = self._require_project(project_id)
        return InvoiceDraft.standard(project_budget=project.total_fee, stage=stage, today=date.today())

    def _next_invoice_number(self) -> str:
        prefix = f"{self.settings.organization_code}-{date.today().year}-"
        sequence = self.repo.count_invoices_with_prefix(prefix) + 1
        return f"{prefix}{sequence:03d}"

    def _persist_invoice(
        self,
        *,
        project: Project,
        draft: InvoiceDraft,
        tax_rate: Decimal,
        notes: str | None,
        client_name: str | None,
    ) -> Invoice:
        if tax_rate < ZERO:
            raise ValidationError("tax_rate must be greater or equal zero.")
        if not draft.items:
            raise ValidationError("Invoice requires at least one line item.")
        if draft.issue_date is None or draft.due_date is None:
            raise ValidationError("Invoice issue_date and due_date are required.")
        if draft.due_date < draft.issue_date:
            raise ValidationError("due_date must be greater than or equal to issue_date.")

        subtotal = draft.subtotal
        tax_amount, total_amount = invoice_totals(subtotal, tax_rate)
        if total_amount < ZERO:
            raise ValidationError("Invoice total must be greater or equal zero.")

        invoice = Invoice(
            project_id=project.id,
            invoice_number=self._next_invoice_number(),
            client_name=client_name or project.client_name,
            mode=draft.mode,
            stage=draft.stage,
            issue_date=draft.issue_date,
            due_date=draft.due_date,
            subtotal=subtotal,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            total_amount=total_amount,
            notes=notes,
            created_at=datetime.utcnow(),
        )
        invoice.items = [
            InvoiceItem(
                position=index,
                description=item.description,
                item_type=item.item_type,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.amount,
            )
            for index, item in enumerate(draft.items, start=1)
        ]

        try:
            self.repo.add_invoice(invoice)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Invoice number already exists, retry the request.") from exc

        self.db.refresh(invoice)
        logger.info(
            "Created %s invoice %s for project %s, total %s",
            invoice.mode.value,
            invoice.invoice_number,
            project.code,
            invoice.total_amount,
        )
        return invoice

    def create_standard_invoice(
        self,
        project_id: UUID,
        *,
        stage: ProjectStage,
        tax_rate: Decimal = ZERO,
        notes: str | None = None,
        client_name: str | None = None,
    ) -> Invoice:
        project = self._require_project(project_id)
        draft = InvoiceDraft.standard(project_budget=project.total_fee, stage=stage, today=date.today())
        return self._persist_invoice(
            project=project,
            draft=draft,
            tax_rate=tax_rate,
            notes=notes,
            client_name=client_name,
        )

    def create_manual_invoice(
        self,
        project_id: UUID,
        *,
        items: list[ManualItemInput],
        issue_date: date | None = None,
        due_date: date | None = None,
        tax_rate: Decimal = ZERO,
        notes: str | None = None,
        client_name: str | None = None,
    ) -> Invoice:
        project = self._require_project(project_id)
        line_items: list[ManualLineItem] = []
        for item in items:
            if not item.description.strip():
                raise ValidationError("Line item description is required.")
            if item.quantity <= ZERO:
                raise ValidationError("Line item quantity must be greater than zero.")
            if item.item_type is InvoiceItemType.STAGE_FEE:
                raise ValidationError("Stage fee items are only available on standard invoices.")
            line_items.append(
                ManualLineItem(
                    description=item.description.strip(),
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    item_type=item.item_type,
                )
            )

        draft = InvoiceDraft.manual(
            items=tuple(line_items),
            today=date.today(),
            issue_date=issue_date,
            due_date=due_date,
        )
        return self._persist_invoice(
            project=project,
            draft=draft,
            tax_rate=tax_rate,
            notes=notes,
            client_name=client_name,
        )

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self.repo.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found.")
        return invoice

    def list_invoices(self, project_id: UUID) -> list[Invoice]:
        project = self._require_project(project_id)
        return self.repo.list_invoices_for_project(project.id)

    # ---------- Payroll ----------
    def compute_payslip(self, user_id: UUID, data: PayslipInput) -> PayslipComputation:
        """Prorated payslip figures for a user; nothing is stored."""

        user = self._require_user(user_id)
        salary = data.monthly_salary if data.monthly_salary is not None else user.monthly_salary
        return compute_payslip(
            monthly_salary=salary,
            pay_period_start=data.pay_period_start,
            pay_period_end=data.pay_period_end,
            allowances=data.allowances,
            bonuses=data.bonuses,
            other_deductions=data.other_deductions,
            tax_rate=user.tax_rate,
            insurance_deduction=user.insurance_deduction,
        )

    def generate_payslip(self, user_id: UUID, data: PayslipInput) -> Payslip:
        result = self.compute_payslip(user_id, data)
        if self.repo.overlapping_payslip_count(
            user_id,
            period_start=result.pay_period_start,
            period_end=result.pay_period_end,
        ):
            raise ConflictError("Payslip already exists for this period.")

        today = date.today()
        payslip = Payslip(
            user_id=user_id,
            payslip_number=f"PSL-{result.pay_period_start:%Y%m}-{uuid.uuid4().hex[:8].upper()}",
            pay_period_start=result.pay_period_start,
            pay_period_end=result.pay_period_end,
            pay_date=today,
            monthly_salary=result.monthly_salary,
            worked_days=result.worked_days,
            month_working_days=result.month_working_days,
            daily_rate=result.daily_rate,
            gross_salary=result.gross_salary,
            allowances=result.allowances,
            bonuses=result.bonuses,
            tax_deduction=result.tax_deduction,
            insurance_deduction=result.insurance_deduction,
            other_deductions=result.other_deductions,
            total_deductions=result.total_deductions,
            net_salary=result.net_salary,
            status=PayslipStatus.GENERATED,
            notes=data.notes.strip() if data.notes else None,
            created_at=datetime.utcnow(),
        )
        self.repo.add_payslip(payslip)
        self.db.commit()
        self.db.refresh(payslip)
        logger.info(
            "Generated payslip %s for user %s: gross=%s net=%s",
            payslip.payslip_number,
            user_id,
            payslip.gross_salary,
            payslip.net_salary,
        )
        return payslip

    def list_payslips(self, user_id: UUID) -> list[Payslip]:
        self._require_user(user_id)
        return self.repo.list_payslips_for_user(user_id)

    def update_payslip_status(self, payslip_id: UUID, status: PayslipStatus) -> Payslip:
        payslip = self.repo.get_payslip(payslip_id)
        if payslip is None:
            raise NotFoundError("Payslip not found.")
        if payslip.status in FINAL_PAYSLIP_STATUSES and status is not payslip.status:
            raise ValidationError(f"Payslip in status {payslip.status.value} cannot change status.")

        payslip.status = status
        self.db.commit()
        self.db.refresh(payslip)
        return payslip

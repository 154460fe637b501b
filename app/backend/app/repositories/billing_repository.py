"""Repository helpers for invoices and payslips."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from app.models.entities import Invoice, Payslip, PayslipStatus


class BillingRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Invoices ----------
    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        return self.db.scalar(
            select(Invoice).options(selectinload(Invoice.items)).where(Invoice.id == invoice_id)
        )

    def list_invoices_for_project(self, project_id: UUID) -> list[Invoice]:
        return self.db.scalars(
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(Invoice.project_id == project_id)
            .order_by(Invoice.issue_date.asc(), Invoice.invoice_number.asc())
        ).all()

    def add_invoice(self, invoice: Invoice) -> Invoice:
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def count_invoices_with_prefix(self, prefix: str) -> int:
        return (
            self.db.scalar(
                select(func.count()).select_from(Invoice).where(Invoice.invoice_number.like(f"{prefix}%"))
            )
            or 0
        )

    # ---------- Payslips ----------
    def get_payslip(self, payslip_id: UUID) -> Payslip | None:
        return self.db.scalar(select(Payslip).where(Payslip.id == payslip_id))

    def list_payslips_for_user(self, user_id: UUID) -> list[Payslip]:
        return self.db.scalars(
            select(Payslip)
            .where(Payslip.user_id == user_id)
            .order_by(Payslip.pay_period_start.desc())
        ).all()

    def overlapping_payslip_count(self, user_id: UUID, *, period_start: date, period_end: date) -> int:
        return (
            self.db.scalar(
                select(func.count())
                .select_from(Payslip)
                .where(
                    and_(
                        Payslip.user_id == user_id,
                        Payslip.pay_period_start <= period_end,
                        Payslip.pay_period_end >= period_start,
                        Payslip.status != PayslipStatus.CANCELLED,
                    )
                )
            )
            or 0
        )

    def add_payslip(self, payslip: Payslip) -> Payslip:
        self.db.add(payslip)
        self.db.flush()
        return payslip

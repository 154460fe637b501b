"""ORM entities for the financial planning schema."""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ProjectStage(str, enum.Enum):
    """Delivery lifecycle stages in their fixed order."""

    CONCEPT = "concept"
    PRELIM = "prelim"
    STATUTORY = "statutory"
    TENDER = "tender"
    CONTRACT = "contract"
    CONSTRUCTION = "construction"
    COMPLETION = "completion"

    @property
    def position(self) -> int:
        return list(ProjectStage).index(self)


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class InvoiceMode(str, enum.Enum):
    STANDARD = "standard"
    MANUAL = "manual"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceItemType(str, enum.Enum):
    STAGE_FEE = "stage_fee"
    FIXED_PRICE = "fixed_price"
    TIME_BASED = "time_based"
    EXPENSE = "expense"
    DISCOUNT = "discount"


class PayslipStatus(str, enum.Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("monthly_salary >= 0", name="ck_users_monthly_salary_non_negative"),
        CheckConstraint("typical_hours_per_month > 0", name="ck_users_typical_hours_positive"),
        CheckConstraint("overhead_multiplier >= 1", name="ck_users_overhead_multiplier_min"),
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="ck_users_tax_rate_range"),
        CheckConstraint("insurance_deduction >= 0", name="ck_users_insurance_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    monthly_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    typical_hours_per_month: Mapped[int] = mapped_column(Integer, nullable=False, default=160)
    overhead_multiplier: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("2.50"))
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    insurance_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("total_fee >= 0", name="ck_projects_total_fee_non_negative"),
        CheckConstraint(
            "target_profit_margin >= 0 AND target_profit_margin < 1",
            name="ck_projects_target_margin_range",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    total_fee: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    target_profit_margin: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False, default=Decimal("0.20"))
    project_stage: Mapped[ProjectStage] = mapped_column(
        SQLEnum(ProjectStage, name="project_stage", values_callable=_enum_values),
        nullable=False,
        default=ProjectStage.CONCEPT,
    )
    status: Mapped[ProjectStatus] = mapped_column(
        SQLEnum(ProjectStatus, name="project_status", values_callable=_enum_values),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Phase(Base):
    __tablename__ = "phases"
    __table_args__ = (
        Index("ix_phases_project_id", "project_id"),
        UniqueConstraint("project_id", "phase_number", name="uq_phases_project_phase_number"),
        CheckConstraint(
            "budget_share_percentage IS NULL OR (budget_share_percentage >= 0 AND budget_share_percentage <= 100)",
            name="ck_phases_budget_share_range",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False)
    stage: Mapped[ProjectStage] = mapped_column(
        SQLEnum(ProjectStage, name="project_stage", values_callable=_enum_values),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phase_number: Mapped[int] = mapped_column(Integer, nullable=False)
    budget_share_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)


class ResourceAssignment(Base):
    __tablename__ = "resource_assignments"
    __table_args__ = (
        CheckConstraint("planned_hours > 0", name="ck_resource_assignments_planned_hours_positive"),
        CheckConstraint("billing_rate >= 0", name="ck_resource_assignments_billing_rate_non_negative"),
        UniqueConstraint("user_id", "phase_id", name="uq_resource_assignments_user_phase"),
        Index("ix_resource_assignments_phase_id", "phase_id"),
        Index("ix_resource_assignments_user_window", "user_id", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    phase_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("phases.id"), nullable=False)
    planned_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    # Snapshot taken at creation; salary edits never rewrite it.
    billing_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_invoices_total_non_negative"),
        Index("ix_invoices_project_id", "project_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False)
    invoice_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mode: Mapped[InvoiceMode] = mapped_column(
        SQLEnum(InvoiceMode, name="invoice_mode", values_callable=_enum_values),
        nullable=False,
    )
    stage: Mapped[ProjectStage | None] = mapped_column(
        SQLEnum(ProjectStage, name="project_stage", values_callable=_enum_values),
        nullable=True,
    )
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        SQLEnum(InvoiceStatus, name="invoice_status", values_callable=_enum_values),
        nullable=False,
        default=InvoiceStatus.DRAFT,
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    items: Mapped[list[InvoiceItem]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_items"
    __table_args__ = (Index("ix_invoice_items_invoice_id", "invoice_id"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("invoices.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    item_type: Mapped[InvoiceItemType] = mapped_column(
        SQLEnum(InvoiceItemType, name="invoice_item_type", values_callable=_enum_values),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    invoice: Mapped[Invoice] = relationship(back_populates="items")


class Payslip(Base):
    __tablename__ = "payslips"
    __table_args__ = (
        CheckConstraint("pay_period_end >= pay_period_start", name="ck_payslips_period_order"),
        Index("ix_payslips_user_period", "user_id", "pay_period_start"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    payslip_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    pay_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    monthly_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    worked_days: Mapped[int] = mapped_column(Integer, nullable=False)
    month_working_days: Mapped[int] = mapped_column(Integer, nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    allowances: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    bonuses: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tax_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    insurance_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    other_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    net_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[PayslipStatus] = mapped_column(
        SQLEnum(PayslipStatus, name="payslip_status", values_callable=_enum_values),
        nullable=False,
        default=PayslipStatus.GENERATED,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

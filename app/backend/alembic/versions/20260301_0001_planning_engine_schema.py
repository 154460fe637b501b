"""planning engine schema

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


project_stage = postgresql.ENUM(
    "concept",
    "prelim",
    "statutory",
    "tender",
    "contract",
    "construction",
    "completion",
    name="project_stage",
    create_type=False,
)
project_status = postgresql.ENUM("active", "inactive", name="project_status", create_type=False)
invoice_mode = postgresql.ENUM("standard", "manual", name="invoice_mode", create_type=False)
invoice_status = postgresql.ENUM(
    "draft", "sent", "viewed", "paid", "overdue", "cancelled", name="invoice_status", create_type=False
)
invoice_item_type = postgresql.ENUM(
    "stage_fee", "fixed_price", "time_based", "expense", "discount", name="invoice_item_type", create_type=False
)
payslip_status = postgresql.ENUM(
    "draft", "generated", "approved", "paid", "cancelled", name="payslip_status", create_type=False
)

ENUMS = (project_stage, project_status, invoice_mode, invoice_status, invoice_item_type, payslip_status)


def upgrade() -> None:
    for enum_type in ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("monthly_salary", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("typical_hours_per_month", sa.Integer(), nullable=False, server_default=sa.text("160")),
        sa.Column("overhead_multiplier", sa.Numeric(6, 2), nullable=False, server_default=sa.text("2.50")),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("insurance_deduction", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("monthly_salary >= 0", name="ck_users_monthly_salary_non_negative"),
        sa.CheckConstraint("typical_hours_per_month > 0", name="ck_users_typical_hours_positive"),
        sa.CheckConstraint("overhead_multiplier >= 1", name="ck_users_overhead_multiplier_min"),
        sa.CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="ck_users_tax_rate_range"),
        sa.CheckConstraint("insurance_deduction >= 0", name="ck_users_insurance_non_negative"),
    )

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("client_name", sa.String(length=255), nullable=True),
        sa.Column("total_fee", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("target_profit_margin", sa.Numeric(5, 4), nullable=False, server_default=sa.text("0.20")),
        sa.Column("project_stage", project_stage, nullable=False),
        sa.Column("status", project_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_fee >= 0", name="ck_projects_total_fee_non_negative"),
        sa.CheckConstraint(
            "target_profit_margin >= 0 AND target_profit_margin < 1",
            name="ck_projects_target_margin_range",
        ),
    )

    op.create_table(
        "phases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("stage", project_stage, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phase_number", sa.Integer(), nullable=False),
        sa.Column("budget_share_percentage", sa.Numeric(5, 2), nullable=True),
        sa.CheckConstraint(
            "budget_share_percentage IS NULL OR (budget_share_percentage >= 0 AND budget_share_percentage <= 100)",
            name="ck_phases_budget_share_range",
        ),
    )
    op.create_index("ix_phases_project_id", "phases", ["project_id"])
    op.create_unique_constraint("uq_phases_project_phase_number", "phases", ["project_id", "phase_number"])

    op.create_table(
        "resource_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("phase_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("phases.id"), nullable=False),
        sa.Column("planned_hours", sa.Integer(), nullable=False),
        sa.Column("billing_rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("planned_hours > 0", name="ck_resource_assignments_planned_hours_positive"),
        sa.CheckConstraint("billing_rate >= 0", name="ck_resource_assignments_billing_rate_non_negative"),
    )
    op.create_unique_constraint(
        "uq_resource_assignments_user_phase", "resource_assignments", ["user_id", "phase_id"]
    )
    op.create_index("ix_resource_assignments_phase_id", "resource_assignments", ["phase_id"])
    op.create_index(
        "ix_resource_assignments_user_window",
        "resource_assignments",
        ["user_id", "start_date", "end_date"],
    )

    op.create_table(
        "invoices",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("invoice_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("client_name", sa.String(length=255), nullable=True),
        sa.Column("mode", invoice_mode, nullable=False),
        sa.Column("stage", project_stage, nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", invoice_status, nullable=False),
        sa.Column("subtotal", sa.Numeric(15, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_amount", sa.Numeric(15, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(15, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_amount >= 0", name="ck_invoices_total_non_negative"),
    )
    op.create_index("ix_invoices_project_id", "invoices", ["project_id"])

    op.create_table(
        "invoice_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("invoice_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("invoices.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("item_type", invoice_item_type, nullable=False),
        sa.Column("quantity", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
    )
    op.create_index("ix_invoice_items_invoice_id", "invoice_items", ["invoice_id"])

    op.create_table(
        "payslips",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("payslip_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("pay_period_start", sa.Date(), nullable=False),
        sa.Column("pay_period_end", sa.Date(), nullable=False),
        sa.Column("pay_date", sa.Date(), nullable=False),
        sa.Column("monthly_salary", sa.Numeric(12, 2), nullable=False),
        sa.Column("worked_days", sa.Integer(), nullable=False),
        sa.Column("month_working_days", sa.Integer(), nullable=False),
        sa.Column("daily_rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("gross_salary", sa.Numeric(12, 2), nullable=False),
        sa.Column("allowances", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("bonuses", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_deduction", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("insurance_deduction", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("other_deductions", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_deductions", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("net_salary", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", payslip_status, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("pay_period_end >= pay_period_start", name="ck_payslips_period_order"),
    )
    op.create_index("ix_payslips_user_period", "payslips", ["user_id", "pay_period_start"])


def downgrade() -> None:
    op.drop_index("ix_payslips_user_period", table_name="payslips")
    op.drop_table("payslips")

    op.drop_index("ix_invoice_items_invoice_id", table_name="invoice_items")
    op.drop_table("invoice_items")

    op.drop_index("ix_invoices_project_id", table_name="invoices")
    op.drop_table("invoices")

    op.drop_index("ix_resource_assignments_user_window", table_name="resource_assignments")
    op.drop_index("ix_resource_assignments_phase_id", table_name="resource_assignments")
    op.drop_constraint("uq_resource_assignments_user_phase", "resource_assignments", type_="unique")
    op.drop_table("resource_assignments")

    op.drop_constraint("uq_phases_project_phase_number", "phases", type_="unique")
    op.drop_index("ix_phases_project_id", table_name="phases")
    op.drop_table("phases")

    op.drop_table("projects")
    op.drop_table("users")

    for enum_type in reversed(ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)

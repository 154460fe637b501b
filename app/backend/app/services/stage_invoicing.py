"""Stage fee table, invoice line item variants and invoice draft modes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType

from app.models.entities import InvoiceItemType, InvoiceMode, ProjectStage

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
HUNDRED = Decimal("100")

STANDARD_DUE_DAYS = 15
MANUAL_DEFAULT_DUE_DAYS = 30

STAGE_FEE_PERCENTAGES: MappingProxyType[ProjectStage, Decimal] = MappingProxyType(
    {
        ProjectStage.CONCEPT: Decimal("10"),
        ProjectStage.PRELIM: Decimal("15"),
        ProjectStage.STATUTORY: Decimal("10"),
        ProjectStage.TENDER: Decimal("15"),
        ProjectStage.CONTRACT: Decimal("10"),
        ProjectStage.CONSTRUCTION: Decimal("30"),
        ProjectStage.COMPLETION: Decimal("10"),
    }
)

STAGE_LABELS: MappingProxyType[ProjectStage, str] = MappingProxyType(
    {
        ProjectStage.CONCEPT: "Concept Design",
        ProjectStage.PRELIM: "Preliminary Design",
        ProjectStage.STATUTORY: "Statutory Approvals",
        ProjectStage.TENDER: "Tender Documentation",
        ProjectStage.CONTRACT: "Contract Award",
        ProjectStage.CONSTRUCTION: "Construction Stage",
        ProjectStage.COMPLETION: "Completion",
    }
)


def validate_stage_fee_table(table: MappingProxyType[ProjectStage, Decimal] | dict[ProjectStage, Decimal]) -> None:
    """Raise ``ValueError`` unless every stage has a percentage and the total is at most 100."""

    missing = [stage.value for stage in ProjectStage if stage not in table]
    if missing:
        raise ValueError(f"Stage fee table is missing stages: {', '.join(missing)}.")
    for stage, percentage in table.items():
        if percentage < ZERO or percentage > HUNDRED:
            raise ValueError(f"Fee percentage for stage {stage.value} must be within 0-100.")
    total = sum(table.values(), ZERO)
    if total > HUNDRED:
        raise ValueError(f"Stage fee percentages sum to {total}, exceeding 100.")


validate_stage_fee_table(STAGE_FEE_PERCENTAGES)


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class StandardLineItem:
    """Stage-derived line item; amounts are fixed by the fee table."""

    stage: ProjectStage
    fee_percentage: Decimal
    description: str
    unit_price: Decimal
    quantity: Decimal = Decimal("1")
    item_type: InvoiceItemType = InvoiceItemType.STAGE_FEE

    @property
    def amount(self) -> Decimal:
        return self.unit_price


@dataclass(frozen=True, slots=True)
class ManualLineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal
    item_type: InvoiceItemType = InvoiceItemType.FIXED_PRICE

    @property
    def amount(self) -> Decimal:
        return _q2(self.quantity * self.unit_price)


LineItem = StandardLineItem | ManualLineItem


def stage_line_item(project_budget: Decimal, stage: ProjectStage) -> StandardLineItem:
    percentage = STAGE_FEE_PERCENTAGES[stage]
    unit_price = _q2(Decimal(project_budget) * percentage / HUNDRED)
    return StandardLineItem(
        stage=stage,
        fee_percentage=percentage,
        description=f"{STAGE_LABELS[stage]} ({percentage.normalize():f}% of project fee)",
        unit_price=unit_price,
    )


@dataclass(frozen=True, slots=True)
class InvoiceDraft:
    """Invoice under construction before it is persisted.

    Standard drafts carry exactly one stage line item with dates pinned to
    today and today + 15 days. Changing mode discards stage-derived values.
    """

    mode: InvoiceMode
    issue_date: date | None = None
    due_date: date | None = None
    stage: ProjectStage | None = None
    items: tuple[LineItem, ...] = field(default_factory=tuple)

    @classmethod
    def standard(cls, *, project_budget: Decimal, stage: ProjectStage, today: date) -> InvoiceDraft:
        return cls(
            mode=InvoiceMode.STANDARD,
            issue_date=today,
            due_date=today + timedelta(days=STANDARD_DUE_DAYS),
            stage=stage,
            items=(stage_line_item(project_budget, stage),),
        )

    @classmethod
    def manual(
        cls,
        *,
        items: tuple[ManualLineItem, ...],
        today: date,
        issue_date: date | None = None,
        due_date: date | None = None,
    ) -> InvoiceDraft:
        effective_issue = issue_date or today
        return cls(
            mode=InvoiceMode.MANUAL,
            issue_date=effective_issue,
            due_date=due_date or effective_issue + timedelta(days=MANUAL_DEFAULT_DUE_DAYS),
            items=items,
        )

    def switch_mode(self, mode: InvoiceMode) -> InvoiceDraft:
        """Return a blank draft in ``mode`` for callers editing a draft before saving it.

        The API builds drafts directly in their final mode, so this is a
        draft-level operation only.
        """

        if mode is self.mode:
            return self
        return replace(self, mode=mode, issue_date=None, due_date=None, stage=None, items=())

    @property
    def subtotal(self) -> Decimal:
        return _q2(sum((item.amount for item in self.items), ZERO))


def invoice_totals(subtotal: Decimal, tax_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(tax_amount, total_amount)`` for a subtotal and percent tax rate."""

    tax_amount = _q2(subtotal * Decimal(tax_rate) / HUNDRED)
    return tax_amount, _q2(subtotal + tax_amount)

"""ORM model package."""

from app.models.entities import (
    Invoice,
    InvoiceItem,
    Payslip,
    Phase,
    Project,
    ResourceAssignment,
    User,
)

__all__ = [
    "Invoice",
    "InvoiceItem",
    "Payslip",
    "Phase",
    "Project",
    "ResourceAssignment",
    "User",
]

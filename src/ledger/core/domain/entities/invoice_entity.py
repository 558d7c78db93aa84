from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from odonto_core.core.domain.entities._base import EntityMixin

UNPAID = "unpaid"
PARTIALLY_PAID = "partially_paid"
PAID = "paid"
OVERDUE = "overdue"

INVOICE_STATUSES = (UNPAID, PARTIALLY_PAID, PAID, OVERDUE)
ZERO = Decimal("0.00")


@dataclass(slots=True)
class InvoiceLineEntity(EntityMixin):
    procedure_id: uuid.UUID
    quantity: int
    unit_cost: Decimal
    discount_amount: Decimal
    line_total: Decimal
    position: int = 0
    id: uuid.UUID | None = None


@dataclass(slots=True)
class InvoiceEntity(EntityMixin):
    id: uuid.UUID
    patient_id: uuid.UUID
    visit_id: uuid.UUID
    invoice_number: str
    invoice_date: date
    due_date: date | None
    subtotal: Decimal
    discount_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    insurance_discount: Decimal
    total_amount: Decimal
    paid_amount: Decimal = ZERO
    status: str = UNPAID
    notes: str | None = None
    line_items: list[InvoiceLineEntity] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def balance_due(self) -> Decimal:
        return max(self.total_amount - self.paid_amount, ZERO)

    @property
    def credit_balance(self) -> Decimal:
        return max(self.paid_amount - self.total_amount, ZERO)

    @property
    def is_settled(self) -> bool:
        return self.status == PAID

    def totals_consistent(self) -> bool:
        return self.total_amount == (
            self.subtotal - self.discount_amount - self.insurance_discount + self.tax_amount
        )

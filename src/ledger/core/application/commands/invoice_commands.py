from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from odonto_core.core.application.cqrs import CommandDTO


@dataclass(frozen=True, slots=True)
class GenerateInvoiceCommand(CommandDTO):
    """
    Gera a fatura de uma visita. `line_items` aceita dicts ou
    InvoiceLineItemDTO; `tax_rate` ausente usa LEDGER_DEFAULT_TAX_RATE.
    """
    visit_id: UUID
    line_items: tuple
    tax_rate: Decimal | None = None
    discount_amount: Decimal = Decimal("0.00")
    invoice_date: date | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class ApplyPaymentCommand(CommandDTO):
    invoice_id: UUID
    amount: Decimal
    payment_method: str
    reference_number: str | None = None
    notes: str | None = None
    recorded_by_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class MarkOverdueCommand(CommandDTO):
    invoice_id: UUID
    as_of: date


@dataclass(frozen=True, slots=True)
class SweepOverdueCommand(CommandDTO):
    as_of: date

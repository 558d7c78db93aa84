from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal
from uuid import UUID

from odonto_core.core.application.cqrs import PaginatedQueryDTO, QueryDTO


@dataclass(frozen=True, slots=True)
class InvoiceFilter:
    """Filtros reconhecidos para listagem de faturas."""
    patient_id: UUID | None = None
    visit_id: UUID | None = None
    statuses: tuple[str, ...] = ()
    issued_from: date | None = None
    issued_until: date | None = None
    due_before: date | None = None
    order_by: Literal["invoice_date", "-invoice_date", "due_date", "-due_date"] = "-invoice_date"


@dataclass(frozen=True, slots=True)
class GetInvoiceQuery(QueryDTO):
    """Fatura com total pago recalculado a partir dos pagamentos."""
    invoice_id: UUID
    filtros: dict


@dataclass(frozen=True, slots=True)
class ListInvoicesQuery(PaginatedQueryDTO):
    filtros: InvoiceFilter
    page: int = 1
    page_size: int = 50

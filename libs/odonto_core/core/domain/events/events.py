from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal


# ───────────────────────────────────────────────
# Event Base e Domain Events
# ───────────────────────────────────────────────
@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=datetime.utcnow)

# ╭──────────────────────────────────────────────╮
# │ 1. Agenda                                   │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class AppointmentBookedEvent(DomainEvent):
    appointment_id: uuid.UUID
    staff_id: uuid.UUID
    patient_id: uuid.UUID
    start: datetime
    duration_minutes: int

@dataclass(frozen=True)
class AppointmentStatusChangedEvent(DomainEvent):
    appointment_id: uuid.UUID
    previous_status: str
    new_status: str

@dataclass(frozen=True)
class VisitCreatedEvent(DomainEvent):
    visit_id: uuid.UUID
    appointment_id: uuid.UUID | None
    patient_id: uuid.UUID
    staff_id: uuid.UUID

# ╭──────────────────────────────────────────────╮
# │ 2. Odontograma                              │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class ChartUpdatedEvent(DomainEvent):
    visit_id: uuid.UUID
    tooth_numbers: tuple[int, ...]
    procedures_added: int

# ╭──────────────────────────────────────────────╮
# │ 3. Faturamento                              │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class InvoiceGeneratedEvent(DomainEvent):
    invoice_id: uuid.UUID
    visit_id: uuid.UUID
    patient_id: uuid.UUID
    total_amount: Decimal
    due_date: date | None

@dataclass(frozen=True)
class PaymentReceivedEvent(DomainEvent):
    invoice_id: uuid.UUID
    payment_id: uuid.UUID
    amount: Decimal
    status: str
    credit_balance: Decimal

@dataclass(frozen=True)
class InvoiceOverdueEvent(DomainEvent):
    invoice_id: uuid.UUID
    due_date: date
    as_of: date

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from odonto_core.core.domain.entities._base import EntityMixin

PAYMENT_METHODS = ("cash", "card", "check", "insurance")


@dataclass(slots=True)
class PaymentEntity(EntityMixin):
    id: uuid.UUID
    invoice_id: uuid.UUID
    amount: Decimal
    payment_method: str
    payment_date: datetime
    reference_number: str | None = None
    notes: str | None = None
    recorded_by_id: uuid.UUID | None = None
    created_at: datetime | None = None

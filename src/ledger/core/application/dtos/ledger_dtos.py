from __future__ import annotations

from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

PaymentMethod = Literal["cash", "card", "check", "insurance"]


class InvoiceLineItemDTO(BaseModel):
    """Sem `unit_cost`, vale o preço base do procedimento no catálogo."""
    model_config = ConfigDict(frozen=True)

    procedure_id: UUID
    quantity: int = Field(1, gt=0)
    unit_cost: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    discount_amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)


class PaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    reference_number: str | None = Field(None, max_length=50)
    notes: str | None = None
    recorded_by_id: UUID | None = None

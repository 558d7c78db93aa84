from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from odonto_core.core.domain.entities._base import EntityMixin


@dataclass(slots=True)
class InsurancePolicyEntity(EntityMixin):
    id: uuid.UUID
    patient_id: uuid.UUID
    policy_number: str
    insurance_company: str
    coverage_percentage: Decimal
    max_annual_coverage: Decimal | None = None
    deductible_amount: Decimal = Decimal("0.00")
    is_active: bool = True
    expiry_date: date | None = None
    # já consumido no ano-calendário da fatura; preenchido pelo PolicyLookup
    used_this_year: Decimal = Decimal("0.00")

    def is_in_force(self, as_of: date) -> bool:
        return self.is_active and (self.expiry_date is None or self.expiry_date >= as_of)

    @property
    def remaining_cap(self) -> Decimal | None:
        """None = sem teto anual."""
        if self.max_annual_coverage is None:
            return None
        return max(self.max_annual_coverage - self.used_this_year, Decimal("0.00"))


@dataclass(frozen=True, slots=True)
class InsuranceAllocation:
    policy_id: uuid.UUID
    amount: Decimal

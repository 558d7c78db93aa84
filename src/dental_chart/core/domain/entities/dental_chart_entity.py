from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from odonto_core.core.domain.entities._base import EntityMixin

TOOTH_STATUSES = (
    "healthy",
    "caries",
    "filling",
    "crown",
    "missing",
    "implant",
    "root_canal",
    "extraction_planned",
    "bridge",
    "sealant",
)


@dataclass(slots=True)
class ToothProcedureEntity(EntityMixin):
    id: uuid.UUID
    dental_chart_id: uuid.UUID
    sequence: int
    procedure_name: str
    procedure_date: date
    cost: Decimal | None = None
    insurance_covered: Decimal = Decimal("0.00")
    notes: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class DentalChartEntryEntity(EntityMixin):
    id: uuid.UUID
    visit_id: uuid.UUID
    tooth_number: int
    current_status: str
    tooth_name: str | None = None
    notes: str | None = None
    procedures: list[ToothProcedureEntity] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_cost(self) -> Decimal:
        return sum((p.cost or Decimal("0.00") for p in self.procedures), Decimal("0.00"))

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from odonto_core.core.domain.entities._base import EntityMixin


@dataclass(slots=True)
class VisitEntity(EntityMixin):
    id: uuid.UUID
    patient_id: uuid.UUID
    staff_id: uuid.UUID
    appointment_id: uuid.UUID | None
    visit_date: datetime
    chief_complaint: str | None = None
    diagnosis: str | None = None
    treatment_plan: str | None = None
    notes: str | None = None
    created_at: datetime | None = None

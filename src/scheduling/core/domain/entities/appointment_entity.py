from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from odonto_core.core.domain.entities._base import EntityMixin
from odonto_core.core.domain.events.exceptions import InvalidTransition, ValidationError
from odonto_core.core.domain.value_objects.time_range import TimeRange

SCHEDULED = "scheduled"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
COMPLETED = "completed"
NO_SHOW = "no_show"

STATUSES = (SCHEDULED, CONFIRMED, CANCELLED, COMPLETED, NO_SHOW)
TERMINAL_STATUSES = frozenset({CANCELLED, COMPLETED, NO_SHOW})
# não bloqueiam o horário na checagem de sobreposição
NON_BLOCKING_STATUSES = frozenset({CANCELLED, COMPLETED})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    SCHEDULED: frozenset({CONFIRMED, CANCELLED, COMPLETED, NO_SHOW}),
    CONFIRMED: frozenset({CANCELLED, COMPLETED, NO_SHOW}),
    CANCELLED: frozenset(),
    COMPLETED: frozenset(),
    NO_SHOW: frozenset(),
}


@dataclass(slots=True)
class AppointmentEntity(EntityMixin):
    id: uuid.UUID
    patient_id: uuid.UUID
    staff_id: uuid.UUID
    appointment_type_id: uuid.UUID
    start_at: datetime
    duration_minutes: int
    status: str = SCHEDULED
    notes: str | None = None
    reminder_sent: bool = False
    visit_id: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_at, self.duration_minutes)

    @property
    def end_at(self) -> datetime:
        return self.time_range.end

    @property
    def is_blocking(self) -> bool:
        return self.status not in NON_BLOCKING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in ALLOWED_TRANSITIONS.get(self.status, frozenset())

    def transition_to(self, new_status: str) -> str:
        """Aplica a transição e devolve o status anterior."""
        if new_status not in STATUSES:
            raise ValidationError(f"Status desconhecido: {new_status}", field="status")
        if not self.can_transition_to(new_status):
            raise InvalidTransition(self.status, new_status)
        previous, self.status = self.status, new_status
        return previous

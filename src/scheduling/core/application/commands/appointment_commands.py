from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from odonto_core.core.application.cqrs import CommandDTO


@dataclass(frozen=True, slots=True)
class ProposeAppointmentCommand(CommandDTO):
    """
    Propõe um agendamento. Sem `duration_minutes`, usa a duração padrão
    do tipo de consulta.
    """
    staff_id: UUID
    patient_id: UUID
    appointment_type_id: UUID
    start_at: datetime
    duration_minutes: int | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class TransitionAppointmentCommand(CommandDTO):
    appointment_id: UUID
    new_status: str
    user_id: UUID | None = None  # para auditoria opcional

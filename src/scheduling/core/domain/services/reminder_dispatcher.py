from typing import Protocol

from odonto_core.core.domain.events.events import AppointmentBookedEvent


class ReminderDispatcher(Protocol):
    """Disparo de lembrete "fire-and-forget"; o núcleo nunca aguarda o envio."""

    def dispatch(self, event: AppointmentBookedEvent) -> None: ...

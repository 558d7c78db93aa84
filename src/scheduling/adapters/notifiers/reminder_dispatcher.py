import structlog

from odonto_core.core.domain.events.events import AppointmentBookedEvent

from scheduling.core.domain.services.reminder_dispatcher import ReminderDispatcher

logger = structlog.get_logger(__name__)


class CeleryReminderDispatcher(ReminderDispatcher):
    """
    Enfileira o lembrete da consulta no Celery e retorna imediatamente.
    """

    def dispatch(self, event: AppointmentBookedEvent) -> None:
        from clinic_api.tasks import send_appointment_reminder  # noqa: PLC0415

        send_appointment_reminder.delay(str(event.appointment_id))
        logger.info("reminder.enqueued", appointment_id=str(event.appointment_id))

    __call__ = dispatch

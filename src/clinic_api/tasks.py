from __future__ import annotations

from datetime import date
from uuid import UUID

import structlog
from celery import Task, shared_task
from django.utils import timezone

log = structlog.get_logger(__name__)

QUEUE_REMINDERS = "reminders"
QUEUE_LEDGER = "ledger"


# ──────────────────────────────────────────────────────────────────────────
# Base Task com DLQ
# ──────────────────────────────────────────────────────────────────────────
class BaseTaskWithDLQ(Task):
    """
    Envia p/ Dead Letter Queue quando falhar após todas as retentativas.
    Em 'task_always_eager' apenas registra a falha.
    """
    def on_failure(self, exc, task_id, args, kwargs, einfo):
        is_eager = bool(getattr(self.app.conf, "task_always_eager", False))
        if is_eager:
            log.critical("task.failed_eager_mode", task=self.name, task_id=task_id, error=str(exc))
        else:
            log.critical(
                "task.failed_dlq_redirect",
                task=self.name, task_id=task_id, error=str(exc),
                queue="dead_letter",
            )
            self.app.send_task(
                self.name,
                args=args,
                kwargs=kwargs,
                queue="dead_letter",
                routing_key="dead_letter",
            )
        super().on_failure(exc, task_id, args, kwargs, einfo)


# ──────────────────────────────────────────────────────────────────────────
# Lembrete de consulta
# ──────────────────────────────────────────────────────────────────────────
@shared_task(
    bind=True,
    base=BaseTaskWithDLQ,
    queue=QUEUE_REMINDERS,
    max_retries=3,
    default_retry_delay=60,
    ignore_result=True,
)
def send_appointment_reminder(self, appointment_id: str) -> bool:
    """Registra o lembrete de um agendamento recém-criado."""
    from odonto_core.core.domain.events.exceptions import NotFoundError
    from scheduling.adapters.config.composition_root import container

    try:
        return container.scheduler().record_reminder(UUID(appointment_id))
    except NotFoundError:
        log.warning("reminder.appointment_missing", appointment_id=appointment_id)
        return False


# ──────────────────────────────────────────────────────────────────────────
# Varredura de faturas vencidas
# ──────────────────────────────────────────────────────────────────────────
@shared_task(base=BaseTaskWithDLQ, queue=QUEUE_LEDGER, ignore_result=False)
def sweep_overdue_invoices(as_of: str | None = None) -> int:
    from ledger.adapters.config.composition_root import container
    from ledger.core.application.commands.invoice_commands import SweepOverdueCommand

    day = date.fromisoformat(as_of) if as_of else timezone.localdate()
    marked = container.command_bus().dispatch(SweepOverdueCommand(as_of=day))
    log.info("task.sweep_overdue_invoices.done", as_of=str(day), marked=marked)
    return marked

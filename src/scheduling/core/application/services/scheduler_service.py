from __future__ import annotations

import uuid
from uuid import UUID

import structlog
from django.utils import timezone

from odonto_core.adapters.observability.metrics import SCHEDULING_CONFLICTS
from odonto_core.adapters.storage.transaction_runner import TransactionHandle, TransactionRunner
from odonto_core.core.application.cqrs import PagedResult
from odonto_core.core.domain.events.events import (
    AppointmentBookedEvent,
    AppointmentStatusChangedEvent,
    VisitCreatedEvent,
)
from odonto_core.core.domain.events.exceptions import NotFoundError, SchedulingConflict, ValidationError
from odonto_core.core.domain.services.event_dispatcher import EventDispatcher
from odonto_core.core.domain.value_objects.time_range import TimeRange

from scheduling.core.application.queries.appointment_queries import AppointmentFilter
from scheduling.core.domain.entities.appointment_entity import (
    COMPLETED,
    SCHEDULED,
    STATUSES,
    AppointmentEntity,
)
from scheduling.core.domain.repositories.appointment_repository import AppointmentRepository
from scheduling.core.domain.repositories.visit_repository import VisitCreator

logger = structlog.get_logger(__name__)


class Scheduler:
    """
    Admite ou rejeita agendamentos e conduz a máquina de estados.

    A checagem de sobreposição e a inserção acontecem na mesma transação,
    com a linha do profissional travada; quando duas propostas disputam o
    mesmo horário, o isolamento do banco decide a vencedora e a perdedora
    recebe `SchedulingConflict`.
    """

    def __init__(
        self,
        repo: AppointmentRepository,
        visit_creator: VisitCreator,
        runner: TransactionRunner,
        dispatcher: EventDispatcher,
    ) -> None:
        self.repo = repo
        self.visit_creator = visit_creator
        self.runner = runner
        self.dispatcher = dispatcher

    # ------------------------------------------------ agendamento
    def propose(
        self,
        staff_id: UUID,
        time_range: TimeRange,
        patient_id: UUID,
        appointment_type_id: UUID,
        notes: str | None = None,
    ) -> AppointmentEntity:
        self._validate_proposal(staff_id, time_range, patient_id, appointment_type_id)

        def _book(tx: TransactionHandle) -> AppointmentEntity:
            self.repo.lock_staff(tx, staff_id)
            conflicts = [
                a for a in self.repo.find_overlapping(tx, staff_id, time_range)
                if a.is_blocking and a.time_range.overlaps(time_range)
            ]
            if conflicts:
                raise SchedulingConflict(staff_id, [a.id for a in conflicts])

            appointment = self.repo.create(
                tx,
                AppointmentEntity(
                    id=uuid.uuid4(),
                    patient_id=patient_id,
                    staff_id=staff_id,
                    appointment_type_id=appointment_type_id,
                    start_at=time_range.start,
                    duration_minutes=time_range.duration_minutes,
                    status=SCHEDULED,
                    notes=notes,
                ),
            )
            event = AppointmentBookedEvent(
                appointment_id=appointment.id,
                staff_id=staff_id,
                patient_id=patient_id,
                start=appointment.start_at,
                duration_minutes=appointment.duration_minutes,
            )
            tx.on_commit(lambda: self.dispatcher.dispatch(event))
            return appointment

        try:
            appointment = self.runner.run("scheduler.propose", _book)
        except SchedulingConflict as exc:
            SCHEDULING_CONFLICTS.inc()
            logger.info(
                "scheduling.conflict",
                staff_id=str(staff_id),
                range=str(time_range),
                conflicting_ids=[str(i) for i in exc.conflicting_ids],
            )
            raise

        logger.info(
            "appointment.booked",
            appointment_id=str(appointment.id),
            staff_id=str(staff_id),
            range=str(time_range),
        )
        return appointment

    def default_duration(self, appointment_type_id: UUID) -> int:
        return self.repo.default_duration(appointment_type_id)

    # ------------------------------------------------ status
    def transition(self, appointment_id: UUID, new_status: str) -> AppointmentEntity:
        if new_status not in STATUSES:
            raise ValidationError(f"Status desconhecido: {new_status}", field="status")

        def _transition(tx: TransactionHandle) -> AppointmentEntity:
            appointment = self.repo.get_for_update(tx, appointment_id)
            previous = appointment.transition_to(new_status)
            appointment = self.repo.update_status(tx, appointment)
            events = [
                AppointmentStatusChangedEvent(
                    appointment_id=appointment.id,
                    previous_status=previous,
                    new_status=new_status,
                )
            ]
            if new_status == COMPLETED:
                # mesma transação: falha ao criar o atendimento reverte o status
                visit = self.visit_creator.create_from_appointment(tx, appointment)
                appointment.visit_id = visit.id
                events.append(
                    VisitCreatedEvent(
                        visit_id=visit.id,
                        appointment_id=appointment.id,
                        patient_id=visit.patient_id,
                        staff_id=visit.staff_id,
                    )
                )
            for evt in events:
                tx.on_commit(lambda evt=evt: self.dispatcher.dispatch(evt))
            return appointment

        appointment = self.runner.run("scheduler.transition", _transition)
        logger.info(
            "appointment.status_changed",
            appointment_id=str(appointment_id),
            status=new_status,
            visit_id=str(appointment.visit_id) if appointment.visit_id else None,
        )
        return appointment

    # ------------------------------------------------ lembretes
    def record_reminder(self, appointment_id: UUID) -> bool:
        """Marca o lembrete como enviado; ignora agendamentos que já não bloqueiam o horário."""
        appointment = self.get(appointment_id)
        if appointment.reminder_sent or not appointment.is_blocking:
            logger.info(
                "reminder.skipped",
                appointment_id=str(appointment_id),
                status=appointment.status,
                reminder_sent=appointment.reminder_sent,
            )
            return False
        if not self.repo.mark_reminder_sent(appointment.id):
            logger.info("reminder.skipped", appointment_id=str(appointment_id), reminder_sent=True)
            return False
        logger.info(
            "reminder.sent",
            appointment_id=str(appointment_id),
            patient_id=str(appointment.patient_id),
            start_at=appointment.start_at.isoformat(),
        )
        return True

    # ------------------------------------------------ leitura
    def get(self, appointment_id: UUID) -> AppointmentEntity:
        appointment = self.repo.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def list(self, filtros: AppointmentFilter, page: int = 1, page_size: int = 50) -> PagedResult[AppointmentEntity]:
        return self.repo.list(filtros, page=page, page_size=page_size)

    # ------------------------------------------------ helpers
    @staticmethod
    def _validate_proposal(staff_id, time_range, patient_id, appointment_type_id) -> None:
        missing = [
            name for name, value in (
                ("staff_id", staff_id),
                ("patient_id", patient_id),
                ("appointment_type_id", appointment_type_id),
            ) if not value
        ]
        if missing:
            raise ValidationError(f"Campos obrigatórios ausentes: {', '.join(missing)}", fields=missing)
        if not isinstance(time_range, TimeRange):
            raise ValidationError("time_range inválido", field="time_range")
        if timezone.is_naive(time_range.start):
            raise ValidationError("start_at precisa de fuso horário", field="start_at")

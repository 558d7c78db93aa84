from __future__ import annotations

from odonto_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from odonto_core.core.domain.value_objects.time_range import TimeRange

from scheduling.core.application.services.scheduler_service import Scheduler
from scheduling.core.domain.entities.appointment_entity import AppointmentEntity

from ..commands.appointment_commands import ProposeAppointmentCommand, TransitionAppointmentCommand
from ..queries.appointment_queries import ListAppointmentsQuery


class ProposeAppointmentHandler(CommandHandler[ProposeAppointmentCommand]):
    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler

    def handle(self, cmd: ProposeAppointmentCommand) -> AppointmentEntity:
        duration = cmd.duration_minutes
        if duration is None:
            duration = self.scheduler.default_duration(cmd.appointment_type_id)
        return self.scheduler.propose(
            staff_id=cmd.staff_id,
            time_range=TimeRange(cmd.start_at, duration),
            patient_id=cmd.patient_id,
            appointment_type_id=cmd.appointment_type_id,
            notes=cmd.notes,
        )


class TransitionAppointmentHandler(CommandHandler[TransitionAppointmentCommand]):
    def __init__(self, scheduler: Scheduler, logger):
        self.scheduler = scheduler
        self.logger = logger

    def handle(self, cmd: TransitionAppointmentCommand) -> AppointmentEntity:
        appointment = self.scheduler.transition(cmd.appointment_id, cmd.new_status)
        self.logger.info(
            "appointment.transition_audit",
            appointment_id=str(cmd.appointment_id),
            status=cmd.new_status,
            user_id=str(cmd.user_id) if cmd.user_id else None,
        )
        return appointment


class ListAppointmentsHandler(QueryHandler[ListAppointmentsQuery, PagedResult[AppointmentEntity]]):
    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler

    def handle(self, q: ListAppointmentsQuery) -> PagedResult[AppointmentEntity]:
        return self.scheduler.list(q.filtros, page=q.page, page_size=q.page_size)

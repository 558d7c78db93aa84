from __future__ import annotations

from uuid import UUID

import structlog
from django.db.models import Q

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from odonto_core.core.application.cqrs import PagedResult
from odonto_core.core.domain.events.exceptions import NotFoundError
from odonto_core.core.domain.value_objects.time_range import TimeRange
from plugins.django_interface.models import Appointment as AppointmentModel
from plugins.django_interface.models import AppointmentType, Staff, Visit

from scheduling.core.application.queries.appointment_queries import AppointmentFilter
from scheduling.core.domain.entities.appointment_entity import NON_BLOCKING_STATUSES, AppointmentEntity
from scheduling.core.domain.repositories.appointment_repository import AppointmentRepository

log = structlog.get_logger(__name__)


class AppointmentRepoImpl(AppointmentRepository):
    """
    Repositório de agendamentos (Django ORM).
    Agendamentos nunca são apagados: cancelamento é apenas um status.
    """

    # ───────────────────────── MÉTODOS DE PERSISTÊNCIA ──────────────────────────

    def lock_staff(self, tx: TransactionHandle, staff_id: UUID) -> None:
        locked = (
            Staff.objects.using(tx.alias)
            .select_for_update()
            .filter(id=staff_id, is_active=True)
            .values_list("id", flat=True)
        )
        if not list(locked):
            raise NotFoundError("Staff", staff_id)

    def create(self, tx: TransactionHandle, appointment: AppointmentEntity) -> AppointmentEntity:
        model = AppointmentModel(
            id=appointment.id,
            patient_id=appointment.patient_id,
            staff_id=appointment.staff_id,
            appointment_type_id=appointment.appointment_type_id,
            start_at=appointment.start_at,
            duration_minutes=appointment.duration_minutes,
            end_at=appointment.end_at,
            status=appointment.status,
            notes=appointment.notes,
        )
        model.save(using=tx.alias, force_insert=True)
        return AppointmentEntity.from_model(model)

    def update_status(self, tx: TransactionHandle, appointment: AppointmentEntity) -> AppointmentEntity:
        model = AppointmentModel.objects.using(tx.alias).get(id=appointment.id)
        model.status = appointment.status
        model.save(using=tx.alias, update_fields=["status", "updated_at"])
        return AppointmentEntity.from_model(model, visit_id=appointment.visit_id)

    def mark_reminder_sent(self, appointment_id: UUID) -> bool:
        updated = (
            AppointmentModel.objects.filter(id=appointment_id, reminder_sent=False)
            .exclude(status__in=NON_BLOCKING_STATUSES)
            .update(reminder_sent=True)
        )
        return updated == 1

    # ────────────────────────── MÉTODOS DE CONSULTA ───────────────────────────

    def find_overlapping(self, tx: TransactionHandle, staff_id: UUID, time_range: TimeRange) -> list[AppointmentEntity]:
        """Intervalos semiabertos: a.start < b.end AND b.start < a.end."""
        qs = (
            AppointmentModel.objects.using(tx.alias)
            .filter(staff_id=staff_id, start_at__lt=time_range.end, end_at__gt=time_range.start)
            .exclude(status__in=NON_BLOCKING_STATUSES)
            .order_by("start_at")
        )
        return [AppointmentEntity.from_model(m) for m in qs]

    def get_for_update(self, tx: TransactionHandle, appointment_id: UUID) -> AppointmentEntity:
        try:
            model = AppointmentModel.objects.using(tx.alias).select_for_update().get(id=appointment_id)
        except AppointmentModel.DoesNotExist as exc:
            raise NotFoundError("Appointment", appointment_id) from exc
        return AppointmentEntity.from_model(model)

    def default_duration(self, appointment_type_id: UUID) -> int:
        duration = (
            AppointmentType.objects.filter(id=appointment_type_id, is_active=True)
            .values_list("duration_minutes", flat=True)
            .first()
        )
        if duration is None:
            raise NotFoundError("AppointmentType", appointment_type_id)
        return duration

    def find_by_id(self, appointment_id: UUID) -> AppointmentEntity | None:
        model = AppointmentModel.objects.select_related("visit").filter(id=appointment_id).first()
        if model is None:
            return None
        return AppointmentEntity.from_model(model, visit_id=_visit_id(model))

    def list(self, filtros: AppointmentFilter, page: int = 1, page_size: int = 50) -> PagedResult[AppointmentEntity]:
        qs = AppointmentModel.objects.filter(self._compile(filtros)).order_by(filtros.order_by, "id")
        total = qs.count()
        offset = (page - 1) * page_size
        items = [AppointmentEntity.from_model(m) for m in qs[offset: offset + page_size]]
        return PagedResult(items=items, total=total, page=page, page_size=page_size)

    @staticmethod
    def _compile(filtros: AppointmentFilter) -> Q:
        q = Q()
        if filtros.staff_id:
            q &= Q(staff_id=filtros.staff_id)
        if filtros.patient_id:
            q &= Q(patient_id=filtros.patient_id)
        if filtros.statuses:
            q &= Q(status__in=filtros.statuses)
        if filtros.starts_from:
            q &= Q(start_at__gte=filtros.starts_from)
        if filtros.starts_before:
            q &= Q(start_at__lt=filtros.starts_before)
        return q


def _visit_id(model: AppointmentModel) -> UUID | None:
    try:
        return model.visit.id
    except Visit.DoesNotExist:
        return None

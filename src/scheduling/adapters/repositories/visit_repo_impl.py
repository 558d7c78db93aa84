import uuid

from django.utils import timezone

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from plugins.django_interface.models import Visit

from scheduling.core.domain.entities.appointment_entity import AppointmentEntity
from scheduling.core.domain.entities.visit_entity import VisitEntity
from scheduling.core.domain.repositories.visit_repository import VisitCreator


class VisitRepoImpl(VisitCreator):
    """Cria atendimentos (visits) a partir de consultas concluídas."""

    def create_from_appointment(self, tx: TransactionHandle, appointment: AppointmentEntity) -> VisitEntity:
        model = Visit(
            id=uuid.uuid4(),
            patient_id=appointment.patient_id,
            staff_id=appointment.staff_id,
            appointment_id=appointment.id,
            visit_date=timezone.now(),
            notes=appointment.notes,
        )
        model.save(using=tx.alias, force_insert=True)
        return VisitEntity.from_model(model)

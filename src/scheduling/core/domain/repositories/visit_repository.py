from abc import ABC, abstractmethod

from odonto_core.adapters.storage.transaction_runner import TransactionHandle

from scheduling.core.domain.entities.appointment_entity import AppointmentEntity
from scheduling.core.domain.entities.visit_entity import VisitEntity


class VisitCreator(ABC):
    @abstractmethod
    def create_from_appointment(self, tx: TransactionHandle, appointment: AppointmentEntity) -> VisitEntity:
        """
        Cria o atendimento clínico de uma consulta concluída, na MESMA
        transação da mudança de status.
        """
        ...

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from odonto_core.core.application.cqrs import PagedResult
from odonto_core.core.domain.value_objects.time_range import TimeRange

from scheduling.core.application.queries.appointment_queries import AppointmentFilter
from scheduling.core.domain.entities.appointment_entity import AppointmentEntity


class AppointmentRepository(ABC):
    @abstractmethod
    def lock_staff(self, tx: TransactionHandle, staff_id: UUID) -> None:
        """
        Trava a linha do profissional até o fim da transação, serializando
        agendamentos concorrentes para o mesmo profissional.
        Levanta NotFoundError se o profissional não existir ou estiver inativo.
        """
        ...

    @abstractmethod
    def find_overlapping(self, tx: TransactionHandle, staff_id: UUID, time_range: TimeRange) -> list[AppointmentEntity]:
        """Agendamentos ainda bloqueantes do profissional que cruzam o intervalo."""
        ...

    @abstractmethod
    def create(self, tx: TransactionHandle, appointment: AppointmentEntity) -> AppointmentEntity:
        """Persiste um novo agendamento."""
        ...

    @abstractmethod
    def get_for_update(self, tx: TransactionHandle, appointment_id: UUID) -> AppointmentEntity:
        """Carrega e trava um agendamento. NotFoundError se não existir."""
        ...

    @abstractmethod
    def update_status(self, tx: TransactionHandle, appointment: AppointmentEntity) -> AppointmentEntity:
        """Grava o status corrente da entidade."""
        ...

    @abstractmethod
    def mark_reminder_sent(self, appointment_id: UUID) -> bool:
        """Atualização condicional: False se o lembrete já constava como enviado."""
        ...

    @abstractmethod
    def default_duration(self, appointment_type_id: UUID) -> int:
        """Duração padrão do tipo de consulta. NotFoundError se inexistente/inativo."""
        ...

    @abstractmethod
    def find_by_id(self, appointment_id: UUID) -> AppointmentEntity | None:
        ...

    @abstractmethod
    def list(self, filtros: AppointmentFilter, page: int = 1, page_size: int = 50) -> PagedResult[AppointmentEntity]:
        ...

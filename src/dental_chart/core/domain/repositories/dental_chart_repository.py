from abc import ABC, abstractmethod
from uuid import UUID

from odonto_core.adapters.storage.transaction_runner import TransactionHandle

from dental_chart.core.application.dtos.chart_dtos import ToothProcedureDTO
from dental_chart.core.domain.entities.dental_chart_entity import DentalChartEntryEntity, ToothProcedureEntity


class DentalChartRepository(ABC):
    @abstractmethod
    def lock_visit(self, tx: TransactionHandle, visit_id: UUID) -> None:
        """Trava o atendimento durante o lote. NotFoundError se não existir."""
        ...

    @abstractmethod
    def upsert_entry(  # noqa: PLR0913
        self,
        tx: TransactionHandle,
        *,
        visit_id: UUID,
        tooth_number: int,
        tooth_name: str | None,
        status: str,
        notes: str | None,
    ) -> DentalChartEntryEntity:
        """Cria ou atualiza a entrada (visit_id, tooth_number)."""
        ...

    @abstractmethod
    def append_procedure(
        self, tx: TransactionHandle, chart_entry_id: UUID, procedure: ToothProcedureDTO
    ) -> ToothProcedureEntity:
        """Acrescenta um procedimento ao final da sequência da entrada."""
        ...

    @abstractmethod
    def get_chart(self, visit_id: UUID) -> list[DentalChartEntryEntity]:
        """Odontograma completo da visita, com procedimentos em ordem."""
        ...

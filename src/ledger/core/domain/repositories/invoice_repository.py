from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from odonto_core.core.application.cqrs import PagedResult

from ledger.core.application.queries.invoice_queries import InvoiceFilter
from ledger.core.domain.entities.insurance_policy_entity import InsuranceAllocation
from ledger.core.domain.entities.invoice_entity import InvoiceEntity


class InvoiceRepository(ABC):
    """Interface para persistência de faturas."""

    @abstractmethod
    def patient_for_visit(self, tx: TransactionHandle, visit_id: UUID) -> UUID:
        """Bloqueia a visita e retorna o paciente; NotFoundError se não existir."""
        ...

    @abstractmethod
    def exists_for_visit(self, tx: TransactionHandle, visit_id: UUID) -> bool:
        ...

    @abstractmethod
    def create(
        self,
        tx: TransactionHandle,
        invoice: InvoiceEntity,
        allocations: Sequence[InsuranceAllocation],
    ) -> InvoiceEntity:
        """Grava fatura, itens e pedidos de reembolso ao convênio."""
        ...

    @abstractmethod
    def get_for_update(self, tx: TransactionHandle, invoice_id: UUID) -> InvoiceEntity:
        ...

    @abstractmethod
    def save_state(self, tx: TransactionHandle, invoice_id: UUID, *, status: str, paid_amount: Decimal) -> None:
        ...

    @abstractmethod
    def overdue_candidates(self, as_of: date) -> list[UUID]:
        ...

    @abstractmethod
    def find_by_id(self, invoice_id: UUID) -> InvoiceEntity | None:
        """Lê a fatura com `paid_amount` reagregado do livro de pagamentos."""
        ...

    @abstractmethod
    def list(self, filtros: InvoiceFilter, page: int = 1, page_size: int = 50) -> PagedResult[InvoiceEntity]:
        ...

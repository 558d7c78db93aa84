from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from uuid import UUID

from odonto_core.adapters.storage.transaction_runner import TransactionHandle

from ledger.core.domain.entities.payment_entity import PaymentEntity


class PaymentRepository(ABC):
    """Livro de pagamentos: somente inserção."""

    @abstractmethod
    def append(self, tx: TransactionHandle, payment: PaymentEntity) -> PaymentEntity:
        ...

    @abstractmethod
    def total_paid(self, tx: TransactionHandle, invoice_id: UUID) -> Decimal:
        ...

    @abstractmethod
    def list_for_invoice(self, invoice_id: UUID) -> list[PaymentEntity]:
        ...

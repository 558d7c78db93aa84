from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from django.db.models import Sum

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from plugins.django_interface.models import Payment

from ledger.core.domain.entities.payment_entity import PaymentEntity
from ledger.core.domain.repositories.payment_repository import PaymentRepository


class PaymentRepoImpl(PaymentRepository):
    """Pagamentos nunca são alterados nem apagados."""

    def append(self, tx: TransactionHandle, payment: PaymentEntity) -> PaymentEntity:
        model = Payment(
            id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            payment_method=payment.payment_method,
            payment_date=payment.payment_date,
            reference_number=payment.reference_number,
            notes=payment.notes,
            recorded_by_id=payment.recorded_by_id,
        )
        model.save(using=tx.alias, force_insert=True)
        return PaymentEntity.from_model(model)

    def total_paid(self, tx: TransactionHandle, invoice_id: UUID) -> Decimal:
        total = Payment.objects.using(tx.alias).filter(invoice_id=invoice_id).aggregate(s=Sum("amount"))["s"]
        return total if total is not None else Decimal("0.00")

    def list_for_invoice(self, invoice_id: UUID) -> list[PaymentEntity]:
        return [
            PaymentEntity.from_model(m)
            for m in Payment.objects.filter(invoice_id=invoice_id).order_by("payment_date", "created_at")
        ]

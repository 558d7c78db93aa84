from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

import structlog
from django.db.models import DecimalField, Prefetch, Q, Sum, Value
from django.db.models.functions import Coalesce

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from odonto_core.core.application.cqrs import PagedResult
from odonto_core.core.domain.events.exceptions import NotFoundError
from plugins.django_interface.models import Invoice, InvoiceLineItem, InsuranceClaim, Visit

from ledger.core.application.queries.invoice_queries import InvoiceFilter
from ledger.core.domain.entities.insurance_policy_entity import InsuranceAllocation
from ledger.core.domain.entities.invoice_entity import OVERDUE, PAID, InvoiceEntity, InvoiceLineEntity
from ledger.core.domain.repositories.invoice_repository import InvoiceRepository

log = structlog.get_logger(__name__)

_PAID_FROM_LEDGER = Coalesce(
    Sum("payments__amount"),
    Value(Decimal("0.00")),
    output_field=DecimalField(max_digits=12, decimal_places=2),
)


class InvoiceRepoImpl(InvoiceRepository):
    """
    Persistência de faturas (Django ORM).
    `paid_amount` gravado é cache; leituras usam a soma dos pagamentos.
    """

    # ───────────────────────── MÉTODOS DE PERSISTÊNCIA ──────────────────────────

    def patient_for_visit(self, tx: TransactionHandle, visit_id: UUID) -> UUID:
        patient_id = (
            Visit.objects.using(tx.alias)
            .select_for_update()
            .filter(id=visit_id)
            .values_list("patient_id", flat=True)
            .first()
        )
        if patient_id is None:
            raise NotFoundError("Visit", visit_id)
        return patient_id

    def exists_for_visit(self, tx: TransactionHandle, visit_id: UUID) -> bool:
        return Invoice.objects.using(tx.alias).filter(visit_id=visit_id).exists()

    def create(
        self,
        tx: TransactionHandle,
        invoice: InvoiceEntity,
        allocations: Sequence[InsuranceAllocation],
    ) -> InvoiceEntity:
        model = Invoice(
            id=invoice.id,
            patient_id=invoice.patient_id,
            visit_id=invoice.visit_id,
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            due_date=invoice.due_date,
            subtotal=invoice.subtotal,
            discount_amount=invoice.discount_amount,
            tax_rate=invoice.tax_rate,
            tax_amount=invoice.tax_amount,
            insurance_discount=invoice.insurance_discount,
            total_amount=invoice.total_amount,
            paid_amount=Decimal("0.00"),
            status=invoice.status,
            notes=invoice.notes,
        )
        model.save(using=tx.alias, force_insert=True)

        InvoiceLineItem.objects.using(tx.alias).bulk_create(
            InvoiceLineItem(
                invoice=model,
                position=line.position,
                procedure_id=line.procedure_id,
                quantity=line.quantity,
                unit_cost=line.unit_cost,
                discount_amount=line.discount_amount,
                line_total=line.line_total,
            )
            for line in invoice.line_items
        )
        InsuranceClaim.objects.using(tx.alias).bulk_create(
            InsuranceClaim(
                invoice=model,
                insurance_policy_id=alloc.policy_id,
                claim_amount=alloc.amount,
                claim_status=InsuranceClaim.Status.PENDING,
            )
            for alloc in allocations
        )
        return InvoiceEntity.from_model(model, line_items=list(invoice.line_items))

    def get_for_update(self, tx: TransactionHandle, invoice_id: UUID) -> InvoiceEntity:
        try:
            model = Invoice.objects.using(tx.alias).select_for_update().get(id=invoice_id)
        except Invoice.DoesNotExist as exc:
            raise NotFoundError("Invoice", invoice_id) from exc
        return InvoiceEntity.from_model(model, line_items=[])

    def save_state(self, tx: TransactionHandle, invoice_id: UUID, *, status: str, paid_amount: Decimal) -> None:
        Invoice.objects.using(tx.alias).filter(id=invoice_id).update(status=status, paid_amount=paid_amount)

    # ────────────────────────── MÉTODOS DE CONSULTA ───────────────────────────

    def overdue_candidates(self, as_of: date) -> list[UUID]:
        return list(
            Invoice.objects.filter(due_date__lt=as_of)
            .exclude(status__in=(PAID, OVERDUE))
            .order_by("due_date", "id")
            .values_list("id", flat=True)
        )

    def find_by_id(self, invoice_id: UUID) -> InvoiceEntity | None:
        model = self._queryset().filter(id=invoice_id).first()
        if model is None:
            return None
        return self._to_entity(model)

    def list(self, filtros: InvoiceFilter, page: int = 1, page_size: int = 50) -> PagedResult[InvoiceEntity]:
        qs = self._queryset().filter(self._compile(filtros)).order_by(filtros.order_by, "id")
        total = qs.count()
        offset = (page - 1) * page_size
        items = [self._to_entity(m) for m in qs[offset: offset + page_size]]
        return PagedResult(items=items, total=total, page=page, page_size=page_size)

    @staticmethod
    def _queryset():
        return Invoice.objects.annotate(ledger_paid=_PAID_FROM_LEDGER).prefetch_related(
            Prefetch("line_items", queryset=InvoiceLineItem.objects.order_by("position"))
        )

    @staticmethod
    def _to_entity(model: Invoice) -> InvoiceEntity:
        if model.ledger_paid != model.paid_amount:
            log.warning(
                "invoice.paid_cache_drift",
                invoice_id=str(model.id),
                cached=str(model.paid_amount),
                ledger=str(model.ledger_paid),
            )
        return InvoiceEntity.from_model(
            model,
            paid_amount=model.ledger_paid,
            line_items=[InvoiceLineEntity.from_model(li) for li in model.line_items.all()],
        )

    @staticmethod
    def _compile(filtros: InvoiceFilter) -> Q:
        q = Q()
        if filtros.patient_id:
            q &= Q(patient_id=filtros.patient_id)
        if filtros.visit_id:
            q &= Q(visit_id=filtros.visit_id)
        if filtros.statuses:
            q &= Q(status__in=filtros.statuses)
        if filtros.issued_from:
            q &= Q(invoice_date__gte=filtros.issued_from)
        if filtros.issued_until:
            q &= Q(invoice_date__lte=filtros.issued_until)
        if filtros.due_before:
            q &= Q(due_date__lt=filtros.due_before)
        return q

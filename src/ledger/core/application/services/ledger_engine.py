from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

import structlog
from django.utils import timezone
from pydantic import ValidationError as PydanticValidationError

from odonto_core.adapters.observability.metrics import INVOICES_OVERDUE, PAYMENTS_APPLIED
from odonto_core.adapters.storage.transaction_runner import TransactionHandle, TransactionRunner
from odonto_core.core.application.cqrs import PagedResult
from odonto_core.core.domain.events.events import (
    InvoiceGeneratedEvent,
    InvoiceOverdueEvent,
    PaymentReceivedEvent,
)
from odonto_core.core.domain.events.exceptions import NotFoundError, OverpaymentError, ValidationError
from odonto_core.core.domain.services.event_dispatcher import EventDispatcher

from ledger.core.application.dtos.ledger_dtos import InvoiceLineItemDTO, PaymentDTO
from ledger.core.application.queries.invoice_queries import InvoiceFilter
from ledger.core.domain.entities.invoice_entity import OVERDUE, UNPAID, InvoiceEntity, InvoiceLineEntity
from ledger.core.domain.entities.payment_entity import PaymentEntity
from ledger.core.domain.repositories.insurance_policy_repository import InsurancePolicyLookup
from ledger.core.domain.repositories.invoice_repository import InvoiceRepository
from ledger.core.domain.repositories.payment_repository import PaymentRepository
from ledger.core.domain.repositories.procedure_catalog import ProcedureCatalog
from ledger.core.domain.services.invoice_calculator import (
    LineAmounts,
    compute_totals,
    is_overdue,
    line_total,
    money,
    status_after_payment,
)

logger = structlog.get_logger(__name__)


class LedgerEngine:
    """
    Geração de faturas e registro de pagamentos.

    O valor pago de uma fatura é sempre a soma das linhas de pagamento;
    a coluna `paid_amount` é apenas um cache reescrito na mesma transação
    que insere o pagamento.
    """

    def __init__(
        self,
        invoices: InvoiceRepository,
        payments: PaymentRepository,
        policies: InsurancePolicyLookup,
        catalog: ProcedureCatalog,
        runner: TransactionRunner,
        dispatcher: EventDispatcher,
        default_tax_rate: Decimal | str = Decimal("0.08"),
        due_days: int = 30,
        strict_overpayment: bool = False,
    ) -> None:
        self.invoices = invoices
        self.payments = payments
        self.policies = policies
        self.catalog = catalog
        self.runner = runner
        self.dispatcher = dispatcher
        self.default_tax_rate = Decimal(str(default_tax_rate))
        self.due_days = int(due_days)
        self.strict_overpayment = bool(strict_overpayment)

    # ------------------------------------------------ faturamento
    def generate_invoice(
        self,
        visit_id: UUID,
        line_items: Sequence[InvoiceLineItemDTO | Mapping[str, Any]],
        tax_rate: Decimal | None = None,
        *,
        discount_amount: Decimal = Decimal("0.00"),
        invoice_date: date | None = None,
        notes: str | None = None,
    ) -> InvoiceEntity:
        if not visit_id:
            raise ValidationError("visit_id é obrigatório", field="visit_id")
        items = self._parse_lines(line_items)
        rate = self._parse_rate(tax_rate)
        discount = self._parse_amount(discount_amount, "discount_amount")
        issued = invoice_date or timezone.localdate()

        costs = self.catalog.base_costs(
            {i.procedure_id for i in items if i.unit_cost is None}
        )
        amounts = [
            LineAmounts(
                quantity=i.quantity,
                unit_cost=i.unit_cost if i.unit_cost is not None else costs[i.procedure_id],
                discount_amount=i.discount_amount,
            )
            for i in items
        ]
        # valida linhas e descontos antes de abrir a transação
        compute_totals(amounts, tax_rate=rate, discount_amount=discount)

        def _generate(tx: TransactionHandle) -> InvoiceEntity:
            patient_id = self.invoices.patient_for_visit(tx, visit_id)
            if self.invoices.exists_for_visit(tx, visit_id):
                raise ValidationError("Visita já faturada", visit_id=str(visit_id))

            policies = self.policies.active_for_patient(tx, patient_id, issued)
            totals = compute_totals(amounts, tax_rate=rate, discount_amount=discount, policies=policies)

            invoice_id = uuid.uuid4()
            invoice = self.invoices.create(
                tx,
                InvoiceEntity(
                    id=invoice_id,
                    patient_id=patient_id,
                    visit_id=visit_id,
                    invoice_number=_invoice_number(issued, invoice_id),
                    invoice_date=issued,
                    due_date=issued + timedelta(days=self.due_days),
                    subtotal=totals.subtotal,
                    discount_amount=totals.discount_amount,
                    tax_rate=totals.tax_rate,
                    tax_amount=totals.tax_amount,
                    insurance_discount=totals.insurance_discount,
                    total_amount=totals.total_amount,
                    status=UNPAID,
                    notes=notes,
                    line_items=[
                        InvoiceLineEntity(
                            procedure_id=item.procedure_id,
                            quantity=amt.quantity,
                            unit_cost=money(amt.unit_cost),
                            discount_amount=money(amt.discount_amount),
                            line_total=line_total(amt),
                            position=pos,
                        )
                        for pos, (item, amt) in enumerate(zip(items, amounts, strict=True), start=1)
                    ],
                ),
                totals.allocations,
            )

            event = InvoiceGeneratedEvent(
                invoice_id=invoice.id,
                visit_id=visit_id,
                patient_id=patient_id,
                total_amount=invoice.total_amount,
                due_date=invoice.due_date,
            )
            tx.on_commit(lambda: self.dispatcher.dispatch(event))
            return invoice

        invoice = self.runner.run("ledger.generate_invoice", _generate)
        logger.info(
            "invoice.generated",
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
            subtotal=str(invoice.subtotal),
            insurance_discount=str(invoice.insurance_discount),
            total=str(invoice.total_amount),
        )
        return invoice

    # ------------------------------------------------ pagamentos
    def apply_payment(self, invoice_id: UUID, payment: PaymentDTO | Mapping[str, Any]) -> InvoiceEntity:
        if not invoice_id:
            raise ValidationError("invoice_id é obrigatório", field="invoice_id")
        dto = self._parse_payment(payment)

        def _apply(tx: TransactionHandle) -> InvoiceEntity:
            invoice = self.invoices.get_for_update(tx, invoice_id)
            already_paid = self.payments.total_paid(tx, invoice_id)
            if self.strict_overpayment and already_paid + dto.amount > invoice.total_amount:
                raise OverpaymentError(
                    invoice_id,
                    outstanding=max(invoice.total_amount - already_paid, Decimal("0.00")),
                    attempted=dto.amount,
                )

            recorded = self.payments.append(
                tx,
                PaymentEntity(
                    id=uuid.uuid4(),
                    invoice_id=invoice_id,
                    amount=dto.amount,
                    payment_method=dto.payment_method,
                    payment_date=timezone.now(),
                    reference_number=dto.reference_number,
                    notes=dto.notes,
                    recorded_by_id=dto.recorded_by_id,
                ),
            )
            paid = self.payments.total_paid(tx, invoice_id)
            invoice.paid_amount = paid
            invoice.status = status_after_payment(invoice.status, paid, invoice.total_amount)
            self.invoices.save_state(tx, invoice_id, status=invoice.status, paid_amount=paid)

            event = PaymentReceivedEvent(
                invoice_id=invoice_id,
                payment_id=recorded.id,
                amount=recorded.amount,
                status=invoice.status,
                credit_balance=invoice.credit_balance,
            )
            tx.on_commit(lambda: self.dispatcher.dispatch(event))
            return invoice

        invoice = self.runner.run("ledger.apply_payment", _apply)
        PAYMENTS_APPLIED.labels(dto.payment_method).inc()
        logger.info(
            "payment.applied",
            invoice_id=str(invoice_id),
            amount=str(dto.amount),
            method=dto.payment_method,
            paid=str(invoice.paid_amount),
            status=invoice.status,
        )
        if invoice.credit_balance > 0:
            logger.warning(
                "payment.credit_balance",
                invoice_id=str(invoice_id),
                credit_balance=str(invoice.credit_balance),
            )
        return invoice

    # ------------------------------------------------ vencimento
    def mark_overdue(self, invoice_id: UUID, as_of: date | datetime) -> InvoiceEntity:
        """Idempotente: faturas pagas ou já vencidas ficam como estão."""
        invoice, _changed = self._mark_overdue(invoice_id, as_of)
        return invoice

    def _mark_overdue(self, invoice_id: UUID, as_of: date | datetime) -> tuple[InvoiceEntity, bool]:
        as_of = _as_date(as_of)

        def _mark(tx: TransactionHandle) -> tuple[InvoiceEntity, bool]:
            invoice = self.invoices.get_for_update(tx, invoice_id)
            if not is_overdue(invoice.status, invoice.due_date, as_of):
                return invoice, False
            invoice.status = OVERDUE
            self.invoices.save_state(tx, invoice_id, status=OVERDUE, paid_amount=invoice.paid_amount)
            event = InvoiceOverdueEvent(invoice_id=invoice_id, due_date=invoice.due_date, as_of=as_of)
            tx.on_commit(lambda: self.dispatcher.dispatch(event))
            return invoice, True

        invoice, changed = self.runner.run("ledger.mark_overdue", _mark)
        if changed:
            INVOICES_OVERDUE.inc()
            logger.info("invoice.overdue", invoice_id=str(invoice_id), due_date=str(invoice.due_date), as_of=str(as_of))
        return invoice, changed

    def sweep_overdue(self, as_of: date | datetime) -> int:
        """Aplica `mark_overdue` a cada candidata, uma transação por fatura."""
        as_of = _as_date(as_of)
        marked = 0
        for invoice_id in self.invoices.overdue_candidates(as_of):
            _invoice, changed = self._mark_overdue(invoice_id, as_of)
            marked += int(changed)
        logger.info("invoice.overdue_sweep", as_of=str(as_of), marked=marked)
        return marked

    # ------------------------------------------------ consultas
    def get_invoice(self, invoice_id: UUID) -> InvoiceEntity:
        invoice = self.invoices.find_by_id(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def list_invoices(self, filtros: InvoiceFilter, page: int = 1, page_size: int = 50) -> PagedResult[InvoiceEntity]:
        if page < 1 or page_size < 1:
            raise ValidationError("Paginação inválida", page=page, page_size=page_size)
        return self.invoices.list(filtros, page=page, page_size=page_size)

    def list_payments(self, invoice_id: UUID) -> list[PaymentEntity]:
        return self.payments.list_for_invoice(invoice_id)

    # ------------------------------------------------ helpers
    @staticmethod
    def _parse_lines(line_items) -> list[InvoiceLineItemDTO]:
        if not line_items:
            raise ValidationError("Fatura sem itens", field="line_items")
        parsed: list[InvoiceLineItemDTO] = []
        for idx, raw in enumerate(line_items):
            try:
                parsed.append(raw if isinstance(raw, InvoiceLineItemDTO) else InvoiceLineItemDTO.model_validate(raw))
            except PydanticValidationError as exc:
                raise ValidationError(f"Item {idx} inválido: {exc.errors()}", index=idx) from exc
        return parsed

    @staticmethod
    def _parse_payment(payment) -> PaymentDTO:
        if isinstance(payment, PaymentDTO):
            return payment
        try:
            return PaymentDTO.model_validate(payment)
        except PydanticValidationError as exc:
            raise ValidationError(f"Pagamento inválido: {exc.errors()}") from exc

    def _parse_rate(self, tax_rate) -> Decimal:
        if tax_rate is None:
            return self.default_tax_rate
        try:
            rate = Decimal(str(tax_rate))
        except InvalidOperation as exc:
            raise ValidationError("Alíquota inválida", tax_rate=str(tax_rate)) from exc
        if not rate.is_finite() or rate < 0 or rate > 1:
            raise ValidationError("Alíquota fora de [0, 1]", tax_rate=str(tax_rate))
        return rate

    @staticmethod
    def _parse_amount(value, field: str) -> Decimal:
        try:
            amount = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError(f"{field} inválido", field=field) from exc
        if not amount.is_finite() or amount < 0:
            raise ValidationError(f"{field} não pode ser negativo", field=field)
        return money(amount)


def _invoice_number(issued: date, invoice_id: UUID) -> str:
    return f"INV-{issued:%Y%m%d}-{invoice_id.hex[:6].upper()}"


def _as_date(value) -> date:
    """Timestamps viram a data local do fuso configurado."""
    if isinstance(value, datetime):
        return timezone.localdate(value) if timezone.is_aware(value) else value.date()
    if isinstance(value, date):
        return value
    raise ValidationError("as_of deve ser uma data", field="as_of")

from __future__ import annotations

from odonto_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler

from ledger.core.application.services.ledger_engine import LedgerEngine
from ledger.core.domain.entities.invoice_entity import InvoiceEntity

from ..commands.invoice_commands import (
    ApplyPaymentCommand,
    GenerateInvoiceCommand,
    MarkOverdueCommand,
    SweepOverdueCommand,
)
from ..queries.invoice_queries import GetInvoiceQuery, ListInvoicesQuery


class GenerateInvoiceHandler(CommandHandler[GenerateInvoiceCommand]):
    def __init__(self, engine: LedgerEngine):
        self.engine = engine

    def handle(self, cmd: GenerateInvoiceCommand) -> InvoiceEntity:
        return self.engine.generate_invoice(
            cmd.visit_id,
            list(cmd.line_items),
            cmd.tax_rate,
            discount_amount=cmd.discount_amount,
            invoice_date=cmd.invoice_date,
            notes=cmd.notes,
        )


class ApplyPaymentHandler(CommandHandler[ApplyPaymentCommand]):
    def __init__(self, engine: LedgerEngine, logger):
        self.engine = engine
        self.logger = logger

    def handle(self, cmd: ApplyPaymentCommand) -> InvoiceEntity:
        invoice = self.engine.apply_payment(
            cmd.invoice_id,
            {
                "amount": cmd.amount,
                "payment_method": cmd.payment_method,
                "reference_number": cmd.reference_number,
                "notes": cmd.notes,
                "recorded_by_id": cmd.recorded_by_id,
            },
        )
        self.logger.info(
            "payment.audit",
            invoice_id=str(cmd.invoice_id),
            recorded_by=str(cmd.recorded_by_id) if cmd.recorded_by_id else None,
            status=invoice.status,
        )
        return invoice


class MarkOverdueHandler(CommandHandler[MarkOverdueCommand]):
    def __init__(self, engine: LedgerEngine):
        self.engine = engine

    def handle(self, cmd: MarkOverdueCommand) -> InvoiceEntity:
        return self.engine.mark_overdue(cmd.invoice_id, cmd.as_of)


class SweepOverdueHandler(CommandHandler[SweepOverdueCommand]):
    def __init__(self, engine: LedgerEngine):
        self.engine = engine

    def handle(self, cmd: SweepOverdueCommand) -> int:
        return self.engine.sweep_overdue(cmd.as_of)


class GetInvoiceHandler(QueryHandler[GetInvoiceQuery, InvoiceEntity]):
    def __init__(self, engine: LedgerEngine):
        self.engine = engine

    def handle(self, q: GetInvoiceQuery) -> InvoiceEntity:
        return self.engine.get_invoice(q.invoice_id)


class ListInvoicesHandler(QueryHandler[ListInvoicesQuery, PagedResult[InvoiceEntity]]):
    def __init__(self, engine: LedgerEngine):
        self.engine = engine

    def handle(self, q: ListInvoicesQuery) -> PagedResult[InvoiceEntity]:
        return self.engine.list_invoices(q.filtros, page=q.page, page_size=q.page_size)

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal as D
from unittest import mock

from django.db.models import QuerySet
from django.test import TestCase
from django.utils import timezone

from odonto_core.core.domain.events.events import InvoiceOverdueEvent, PaymentReceivedEvent
from odonto_core.core.domain.events.exceptions import NotFoundError, OverpaymentError, ValidationError
from plugins.django_interface.models import InsuranceClaim, InsurancePolicy, Invoice, Payment

from ledger.core.application.queries.invoice_queries import InvoiceFilter
from tests.helpers.clinic_fixtures import (
    RecordingDispatcher,
    build_ledger,
    make_patient,
    make_policy,
    make_procedure,
    make_visit,
)

ISSUED = date(2026, 3, 2)


class GenerateInvoiceTests(TestCase):
    def setUp(self):
        self.dispatcher = RecordingDispatcher()
        self.ledger = build_ledger(self.dispatcher)
        self.patient = make_patient()
        self.visit = make_visit(self.patient)
        self.crown = make_procedure("1000.00")

    def _generate(self, visit=None, items=None, **kw):
        kw.setdefault("invoice_date", ISSUED)
        return self.ledger.generate_invoice(
            (visit or self.visit).id,
            items or [{"procedure_id": self.crown.id}],
            **kw,
        )

    def test_totals_with_default_tax(self):
        inv = self._generate()
        self.assertEqual(inv.subtotal, D("1000.00"))
        self.assertEqual(inv.tax_rate, D("0.08"))
        self.assertEqual(inv.tax_amount, D("80.00"))
        self.assertEqual(inv.total_amount, D("1080.00"))
        self.assertEqual(inv.status, "unpaid")
        self.assertEqual(inv.paid_amount, D("0.00"))
        self.assertEqual(inv.due_date, ISSUED + timedelta(days=30))
        self.assertRegex(inv.invoice_number, re.compile(r"^INV-20260302-[0-9A-F]{6}$"))
        self.assertTrue(inv.totals_consistent())

        row = Invoice.objects.get(id=inv.id)
        self.assertEqual(row.total_amount, D("1080.00"))
        self.assertEqual(row.line_items.get().unit_cost, D("1000.00"))

    def test_two_policies_cover_at_most_subtotal(self):
        make_policy(self.patient, "80")
        make_policy(self.patient, "50")
        inv = self._generate(tax_rate=D("0.08"))
        self.assertEqual(inv.insurance_discount, D("1000.00"))
        self.assertEqual(inv.tax_amount, D("0.00"))
        self.assertEqual(inv.total_amount, D("0.00"))
        claims = InsuranceClaim.objects.filter(invoice_id=inv.id).order_by("claim_amount")
        self.assertEqual([c.claim_amount for c in claims], [D("200.00"), D("800.00")])
        self.assertTrue(all(c.claim_status == "pending" for c in claims))

    def test_explicit_unit_cost_quantity_and_discount(self):
        cleaning = make_procedure("110.00")
        inv = self._generate(
            items=[
                {"procedure_id": cleaning.id, "quantity": 2, "unit_cost": D("100.00"), "discount_amount": D("20.00")},
                {"procedure_id": self.crown.id},
            ],
            tax_rate=D("0"),
            discount_amount=D("30.00"),
        )
        self.assertEqual(inv.subtotal, D("1180.00"))
        self.assertEqual(inv.discount_amount, D("30.00"))
        self.assertEqual(inv.total_amount, D("1150.00"))
        self.assertEqual([li.position for li in inv.line_items], [1, 2])

    def test_annual_cap_spans_invoices(self):
        make_policy(self.patient, "50", max_annual="600.00")
        first = self._generate(tax_rate=D("0"))
        second = self._generate(visit=make_visit(self.patient), tax_rate=D("0"))
        self.assertEqual(first.insurance_discount, D("500.00"))
        self.assertEqual(second.insurance_discount, D("100.00"))

    def test_denied_claims_do_not_consume_cap(self):
        policy = make_policy(self.patient, "50", max_annual="600.00")
        first = self._generate(tax_rate=D("0"))
        InsuranceClaim.objects.filter(invoice_id=first.id, insurance_policy=policy).update(claim_status="denied")
        second = self._generate(visit=make_visit(self.patient), tax_rate=D("0"))
        self.assertEqual(second.insurance_discount, D("500.00"))

    def test_policies_are_locked_before_cap_is_read(self):
        make_policy(self.patient, "50", max_annual="600.00")
        original = QuerySet.select_for_update
        with mock.patch.object(QuerySet, "select_for_update", autospec=True, side_effect=original) as lock:
            inv = self._generate(tax_rate=D("0"))
        locked_models = {call.args[0].model for call in lock.call_args_list}
        self.assertIn(InsurancePolicy, locked_models)
        self.assertEqual(inv.insurance_discount, D("500.00"))

    def test_expired_and_inactive_policies_are_ignored(self):
        make_policy(self.patient, "50", expiry_date=ISSUED - timedelta(days=1))
        make_policy(self.patient, "30", is_active=False)
        inv = self._generate(tax_rate=D("0"))
        self.assertEqual(inv.insurance_discount, D("0.00"))

    def test_second_invoice_for_visit_is_rejected(self):
        self._generate()
        with self.assertRaises(ValidationError):
            self._generate()
        self.assertEqual(Invoice.objects.count(), 1)

    def test_unknown_visit_or_procedure(self):
        with self.assertRaises(NotFoundError):
            self.ledger.generate_invoice(uuid.uuid4(), [{"procedure_id": self.crown.id}], invoice_date=ISSUED)
        with self.assertRaises(NotFoundError):
            self._generate(items=[{"procedure_id": uuid.uuid4()}])
        self.assertFalse(Invoice.objects.exists())

    def test_invalid_input_rejected_before_storage(self):
        cases = [
            dict(items=[{"procedure_id": self.crown.id, "quantity": 0}]),
            dict(items=[{"procedure_id": self.crown.id, "unit_cost": D("-1")}]),
            dict(items=[{"procedure_id": self.crown.id, "discount_amount": D("1000.01")}]),
            dict(tax_rate=D("1.2")),
            dict(discount_amount=D("-5")),
        ]
        for kw in cases:
            with self.subTest(kw=kw), self.assertRaises(ValidationError):
                self._generate(**kw)
        with self.assertRaises(ValidationError):
            self.ledger.generate_invoice(self.visit.id, [], invoice_date=ISSUED)
        self.assertFalse(Invoice.objects.exists())


class ApplyPaymentTests(TestCase):
    def setUp(self):
        self.dispatcher = RecordingDispatcher()
        self.ledger = build_ledger(self.dispatcher)
        self.patient = make_patient()
        proc = make_procedure("100.00")
        self.invoice = self.ledger.generate_invoice(
            make_visit(self.patient).id, [{"procedure_id": proc.id}], D("0"), invoice_date=ISSUED
        )

    def _pay(self, amount, method="cash", ledger=None):
        return (ledger or self.ledger).apply_payment(
            self.invoice.id, {"amount": D(amount), "payment_method": method}
        )

    def test_partial_then_full_payment(self):
        after_first = self._pay("40.00")
        self.assertEqual(after_first.status, "partially_paid")
        self.assertEqual(after_first.paid_amount, D("40.00"))

        after_second = self._pay("60.00", method="card")
        self.assertEqual(after_second.status, "paid")
        self.assertEqual(after_second.paid_amount, D("100.00"))

        stored = self.ledger.get_invoice(self.invoice.id)
        self.assertEqual(stored.paid_amount, sum(p.amount for p in Payment.objects.filter(invoice_id=self.invoice.id)))
        self.assertEqual(len(self.ledger.list_payments(self.invoice.id)), 2)

    def test_payment_event_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            self._pay("40.00")
        (event,) = self.dispatcher.events
        self.assertIsInstance(event, PaymentReceivedEvent)
        self.assertEqual(event.status, "partially_paid")

    def test_overpayment_becomes_credit_balance(self):
        inv = self._pay("150.00")
        self.assertEqual(inv.status, "paid")
        self.assertEqual(inv.credit_balance, D("50.00"))
        self.assertEqual(inv.balance_due, D("0.00"))

    def test_strict_mode_rejects_overpayment_without_writing(self):
        strict = build_ledger(strict_overpayment=True)
        self._pay("80.00", ledger=strict)
        with self.assertRaises(OverpaymentError) as ctx:
            self._pay("30.00", ledger=strict)
        self.assertEqual(ctx.exception.outstanding, D("20.00"))
        self.assertEqual(Payment.objects.filter(invoice_id=self.invoice.id).count(), 1)
        self.assertEqual(Invoice.objects.get(id=self.invoice.id).status, "partially_paid")
        self.assertEqual(self._pay("20.00", ledger=strict).status, "paid")

    def test_invalid_payment_rejected_before_storage(self):
        for payload in (
            {"amount": D("0"), "payment_method": "cash"},
            {"amount": D("-10"), "payment_method": "cash"},
            {"amount": D("10.001"), "payment_method": "cash"},
            {"amount": D("10"), "payment_method": "bitcoin"},
        ):
            with self.subTest(payload=payload), self.assertRaises(ValidationError):
                self.ledger.apply_payment(self.invoice.id, payload)
        self.assertFalse(Payment.objects.exists())

    def test_unknown_invoice(self):
        with self.assertRaises(NotFoundError):
            self.ledger.apply_payment(uuid.uuid4(), {"amount": D("1"), "payment_method": "cash"})

    def test_reads_recompute_paid_from_payments(self):
        self._pay("40.00")
        Invoice.objects.filter(id=self.invoice.id).update(paid_amount=D("999.00"))
        self.assertEqual(self.ledger.get_invoice(self.invoice.id).paid_amount, D("40.00"))


class OverdueTests(TestCase):
    def setUp(self):
        self.dispatcher = RecordingDispatcher()
        self.ledger = build_ledger(self.dispatcher, tax_rate="0")
        self.patient = make_patient()
        self.proc = make_procedure("100.00")
        self.invoice = self._invoice()
        self.after_due = self.invoice.due_date + timedelta(days=1)

    def _invoice(self):
        return self.ledger.generate_invoice(
            make_visit(self.patient).id, [{"procedure_id": self.proc.id}], invoice_date=ISSUED
        )

    def test_mark_overdue_is_idempotent(self):
        with self.captureOnCommitCallbacks(execute=True):
            first = self.ledger.mark_overdue(self.invoice.id, self.after_due)
        with self.captureOnCommitCallbacks(execute=True):
            second = self.ledger.mark_overdue(self.invoice.id, self.after_due)
        self.assertEqual(first.status, "overdue")
        self.assertEqual(second.status, "overdue")
        overdue_events = [e for e in self.dispatcher.events if isinstance(e, InvoiceOverdueEvent)]
        self.assertEqual(len(overdue_events), 1)

    def test_not_overdue_on_due_date(self):
        self.assertEqual(self.ledger.mark_overdue(self.invoice.id, self.invoice.due_date).status, "unpaid")

    def test_paid_invoice_never_becomes_overdue(self):
        self.ledger.apply_payment(self.invoice.id, {"amount": D("100.00"), "payment_method": "cash"})
        self.assertEqual(self.ledger.mark_overdue(self.invoice.id, self.after_due).status, "paid")

    def test_overdue_clears_only_when_paid(self):
        self.ledger.mark_overdue(self.invoice.id, self.after_due)
        partial = self.ledger.apply_payment(self.invoice.id, {"amount": D("40.00"), "payment_method": "check"})
        self.assertEqual(partial.status, "overdue")
        full = self.ledger.apply_payment(self.invoice.id, {"amount": D("60.00"), "payment_method": "insurance"})
        self.assertEqual(full.status, "paid")

    def test_mark_overdue_accepts_timestamps(self):
        self.assertEqual(self.ledger.mark_overdue(self.invoice.id, timezone.now()).status, "overdue")

    def test_sweep_accepts_timestamps(self):
        self.assertEqual(self.ledger.sweep_overdue(timezone.now()), 1)
        self.assertEqual(Invoice.objects.get(id=self.invoice.id).status, "overdue")

    def test_timestamp_uses_local_calendar_day(self):
        # 02:00 UTC do dia seguinte ainda é o dia do vencimento em America/Sao_Paulo
        early_utc = datetime.combine(self.after_due, time(2), tzinfo=dt_timezone.utc)
        self.assertEqual(self.ledger.mark_overdue(self.invoice.id, early_utc).status, "unpaid")
        local_noon = timezone.make_aware(datetime.combine(self.after_due, time(12)))
        self.assertEqual(self.ledger.mark_overdue(self.invoice.id, local_noon).status, "overdue")

    def test_rejects_non_date_as_of(self):
        with self.assertRaises(ValidationError):
            self.ledger.mark_overdue(self.invoice.id, "2026-05-01")

    def test_sweep_marks_only_eligible_invoices(self):
        paid = self._invoice()
        self.ledger.apply_payment(paid.id, {"amount": D("100.00"), "payment_method": "cash"})
        self.assertEqual(self.ledger.sweep_overdue(self.after_due), 1)
        self.assertEqual(self.ledger.sweep_overdue(self.after_due), 0)
        self.assertEqual(Invoice.objects.get(id=self.invoice.id).status, "overdue")
        self.assertEqual(Invoice.objects.get(id=paid.id).status, "paid")

    def test_list_invoices_filters(self):
        other = self._invoice()
        self.ledger.mark_overdue(other.id, self.after_due)
        page = self.ledger.list_invoices(InvoiceFilter(patient_id=self.patient.id, statuses=("overdue",)))
        self.assertEqual([i.id for i in page.items], [other.id])
        everything = self.ledger.list_invoices(InvoiceFilter(patient_id=self.patient.id))
        self.assertEqual(everything.total, 2)
        with self.assertRaises(ValidationError):
            self.ledger.list_invoices(InvoiceFilter(), page=0)

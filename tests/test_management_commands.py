from datetime import timedelta
from decimal import Decimal as D
from io import StringIO

from django.core.management import CommandError, call_command
from django.test import TestCase

from plugins.django_interface.models import AppointmentType, Invoice, Procedure

from tests.helpers.clinic_fixtures import build_ledger, make_patient, make_procedure, make_visit


class SeedAppointmentTypesTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_appointment_types", stdout=StringIO())
        call_command("seed_appointment_types", stdout=StringIO())
        self.assertEqual(AppointmentType.objects.count(), 7)
        self.assertEqual(AppointmentType.objects.get(type_name="Root Canal").duration_minutes, 120)
        self.assertFalse(Procedure.objects.exists())

    def test_with_procedures(self):
        call_command("seed_appointment_types", "--with-procedures", stdout=StringIO())
        self.assertEqual(Procedure.objects.get(procedure_code="D2740").base_cost, D("1200.00"))


class MarkOverdueInvoicesCommandTests(TestCase):
    def setUp(self):
        ledger = build_ledger(tax_rate="0")
        self.invoice = ledger.generate_invoice(
            make_visit(make_patient()).id, [{"procedure_id": make_procedure("50.00").id}]
        )

    def test_marks_overdue_as_of_date(self):
        as_of = self.invoice.due_date + timedelta(days=1)
        out = StringIO()
        call_command("mark_overdue_invoices", "--as-of", as_of.isoformat(), stdout=out)
        self.assertIn("1 fatura(s)", out.getvalue())
        self.assertEqual(Invoice.objects.get(id=self.invoice.id).status, "overdue")

    def test_before_due_date_changes_nothing(self):
        call_command("mark_overdue_invoices", "--as-of", self.invoice.due_date.isoformat(), stdout=StringIO())
        self.assertEqual(Invoice.objects.get(id=self.invoice.id).status, "unpaid")

    def test_rejects_bad_date(self):
        with self.assertRaises(CommandError):
            call_command("mark_overdue_invoices", "--as-of", "ontem", stdout=StringIO())

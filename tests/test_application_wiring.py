"""
Comandos e consultas passando pelos buses dos containers montados no
`ready()` da aplicação, além das tasks Celery executadas localmente.
"""
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal as D
from unittest import mock

from django.test import TestCase

from odonto_core.core.domain.events.events import AppointmentBookedEvent
from plugins.django_interface.models import Appointment

from clinic_api.tasks import send_appointment_reminder, sweep_overdue_invoices
from dental_chart.adapters.config.composition_root import container as chart_container
from dental_chart.core.application.commands.chart_commands import ApplyChartUpdateCommand
from dental_chart.core.application.queries.chart_queries import GetChartQuery
from ledger.adapters.config.composition_root import container as ledger_container
from ledger.core.application.commands.invoice_commands import ApplyPaymentCommand, GenerateInvoiceCommand
from ledger.core.application.queries.invoice_queries import GetInvoiceQuery, InvoiceFilter, ListInvoicesQuery
from scheduling.adapters.config.composition_root import container as scheduling_container
from scheduling.adapters.notifiers.reminder_dispatcher import CeleryReminderDispatcher
from scheduling.core.application.commands.appointment_commands import (
    ProposeAppointmentCommand,
    TransitionAppointmentCommand,
)
from scheduling.core.application.queries.appointment_queries import AppointmentFilter, ListAppointmentsQuery
from tests.helpers.clinic_fixtures import at, make_patient, make_procedure, make_staff, make_type


class ContainerWiringTests(TestCase):
    def test_contexts_share_one_event_dispatcher(self):
        dispatcher = scheduling_container.event_dispatcher()
        self.assertIs(chart_container.event_dispatcher(), dispatcher)
        self.assertIs(ledger_container.event_dispatcher(), dispatcher)

    def test_visit_lifecycle_through_buses(self):
        staff, patient = make_staff(), make_patient()
        appt_type = make_type(45)

        appt = scheduling_container.command_bus().dispatch(
            ProposeAppointmentCommand(
                staff_id=staff.id,
                patient_id=patient.id,
                appointment_type_id=appt_type.id,
                start_at=at(14),
            )
        )
        self.assertEqual(appt.duration_minutes, 45)

        done = scheduling_container.command_bus().dispatch(
            TransitionAppointmentCommand(appointment_id=appt.id, new_status="completed")
        )
        page = scheduling_container.query_bus().dispatch(
            ListAppointmentsQuery(filtros=AppointmentFilter(patient_id=patient.id))
        )
        self.assertEqual([a.status for a in page.items], ["completed"])

        chart_container.command_bus().dispatch(
            ApplyChartUpdateCommand(
                visit_id=done.visit_id,
                entries=({"tooth_number": 30, "status": "crown"},),
            )
        )
        chart = chart_container.query_bus().dispatch(GetChartQuery(visit_id=done.visit_id, filtros={}))
        self.assertEqual([e.tooth_number for e in chart], [30])

        invoice = ledger_container.command_bus().dispatch(
            GenerateInvoiceCommand(
                visit_id=done.visit_id,
                line_items=({"procedure_id": make_procedure("200.00").id},),
                tax_rate=D("0"),
                invoice_date=date(2026, 3, 2),
            )
        )
        ledger_container.command_bus().dispatch(
            ApplyPaymentCommand(invoice_id=invoice.id, amount=D("200.00"), payment_method="card")
        )
        fetched = ledger_container.query_bus().dispatch(GetInvoiceQuery(invoice_id=invoice.id, filtros={}))
        self.assertEqual(fetched.status, "paid")
        listed = ledger_container.query_bus().dispatch(
            ListInvoicesQuery(filtros=InvoiceFilter(patient_id=patient.id))
        )
        self.assertEqual(listed.total, 1)


class ReminderTaskTests(TestCase):
    def setUp(self):
        scheduler = scheduling_container.scheduler()
        self.appt = scheduling_container.command_bus().dispatch(
            ProposeAppointmentCommand(
                staff_id=make_staff().id,
                patient_id=make_patient().id,
                appointment_type_id=make_type(30).id,
                start_at=at(9),
            )
        )
        self.scheduler = scheduler

    def test_marks_reminder_once(self):
        self.assertTrue(send_appointment_reminder.apply(args=[str(self.appt.id)]).get())
        self.assertTrue(Appointment.objects.get(id=self.appt.id).reminder_sent)
        self.assertFalse(send_appointment_reminder.apply(args=[str(self.appt.id)]).get())

    def test_skips_cancelled_and_missing(self):
        self.scheduler.transition(self.appt.id, "cancelled")
        self.assertFalse(send_appointment_reminder.apply(args=[str(self.appt.id)]).get())
        self.assertFalse(send_appointment_reminder.apply(args=[str(uuid.uuid4())]).get())
        self.assertFalse(Appointment.objects.get(id=self.appt.id).reminder_sent)

    def test_dispatcher_enqueues_without_waiting(self):
        event = AppointmentBookedEvent(
            appointment_id=self.appt.id,
            staff_id=self.appt.staff_id,
            patient_id=self.appt.patient_id,
            start=self.appt.start_at,
            duration_minutes=self.appt.duration_minutes,
        )
        with mock.patch.object(send_appointment_reminder, "delay") as delay:
            CeleryReminderDispatcher()(event)
        delay.assert_called_once_with(str(self.appt.id))

    def test_sweep_task_accepts_iso_date(self):
        self.assertEqual(sweep_overdue_invoices.apply(args=["2026-03-02"]).get(), 0)

"""
Duas propostas simultâneas para o mesmo horário: exatamente uma vence.

Usa TransactionTestCase porque cada thread abre sua própria conexão e
precisa enxergar dados efetivamente gravados.
"""
from __future__ import annotations

import threading

from django.db import connections
from django.test import TransactionTestCase

from odonto_core.core.domain.events.exceptions import Busy, SchedulingConflict
from odonto_core.core.domain.value_objects.time_range import TimeRange
from plugins.django_interface.models import Appointment

from tests.helpers.clinic_fixtures import at, build_scheduler, make_patient, make_staff, make_type


class ConcurrentProposalTests(TransactionTestCase):
    def setUp(self):
        self.staff = make_staff()
        self.type = make_type(30)
        self.patients = [make_patient(), make_patient()]

    def test_only_one_of_two_racing_proposals_wins(self):
        barrier = threading.Barrier(2)
        outcomes: list[str] = []
        lock = threading.Lock()

        def propose(patient, start):
            scheduler = build_scheduler()
            try:
                barrier.wait(timeout=5)
                scheduler.propose(
                    staff_id=self.staff.id,
                    time_range=TimeRange(start, 30),
                    patient_id=patient.id,
                    appointment_type_id=self.type.id,
                )
                result = "booked"
            except SchedulingConflict:
                result = "conflict"
            except Busy:
                result = "busy"
            finally:
                connections.close_all()
            with lock:
                outcomes.append(result)

        threads = [
            threading.Thread(target=propose, args=(self.patients[0], at(9))),
            threading.Thread(target=propose, args=(self.patients[1], at(9, 15))),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        self.assertEqual(sorted(outcomes), ["booked", "conflict"])
        self.assertEqual(Appointment.objects.filter(staff=self.staff).count(), 1)

"""
Construtores de linhas e serviços para os testes.

Os serviços são montados à mão (sem os containers globais) com um
EventDispatcher próprio, para que nenhum assinante de produção, como o
lembrete via Celery, seja acionado.
"""
from __future__ import annotations

import itertools
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.utils import timezone

from odonto_core.adapters.storage.transaction_runner import TransactionRunner
from odonto_core.core.domain.services.event_dispatcher import EventDispatcher
from plugins.django_interface.models import (
    AppointmentType,
    InsurancePolicy,
    Patient,
    Procedure,
    Staff,
    Visit,
)

from dental_chart.adapters.repositories.dental_chart_repo_impl import DentalChartRepoImpl
from dental_chart.core.application.services.chart_transaction_manager import ChartTransactionManager
from dental_chart.core.domain.services.tooth_numbering import ToothNumbering
from ledger.adapters.repositories.insurance_policy_repo_impl import InsurancePolicyRepoImpl
from ledger.adapters.repositories.invoice_repo_impl import InvoiceRepoImpl
from ledger.adapters.repositories.payment_repo_impl import PaymentRepoImpl
from ledger.adapters.repositories.procedure_catalog_impl import ProcedureCatalogImpl
from ledger.core.application.services.ledger_engine import LedgerEngine
from scheduling.adapters.repositories.appointment_repo_impl import AppointmentRepoImpl
from scheduling.adapters.repositories.visit_repo_impl import VisitRepoImpl
from scheduling.core.application.services.scheduler_service import Scheduler

UTC = ZoneInfo("UTC")
_seq = itertools.count(1)


def at(hour: int, minute: int = 0, day: int = 2) -> datetime:
    """Horário com fuso em 2026-03-<day>."""
    return datetime(2026, 3, day, hour, minute, tzinfo=UTC)


# ───────────────────────── linhas ──────────────────────────
def make_staff(**kw) -> Staff:
    n = next(_seq)
    return Staff.objects.create(first_name=kw.pop("first_name", f"Dr{n}"), last_name="Silva", **kw)


def make_patient(**kw) -> Patient:
    n = next(_seq)
    return Patient.objects.create(
        patient_number=kw.pop("patient_number", f"P{n:05d}"),
        first_name=kw.pop("first_name", "Ana"),
        last_name=kw.pop("last_name", "Souza"),
        **kw,
    )


def make_type(duration: int = 30, **kw) -> AppointmentType:
    n = next(_seq)
    return AppointmentType.objects.create(
        type_name=kw.pop("type_name", f"Tipo {n}"), duration_minutes=duration, **kw
    )


def make_visit(patient: Patient | None = None, staff: Staff | None = None) -> Visit:
    return Visit.objects.create(
        patient=patient or make_patient(),
        staff=staff or make_staff(),
        visit_date=timezone.now(),
    )


def make_procedure(base_cost: str = "100.00", **kw) -> Procedure:
    n = next(_seq)
    return Procedure.objects.create(
        procedure_code=kw.pop("procedure_code", f"X{n:04d}"),
        procedure_name=kw.pop("procedure_name", f"Procedimento {n}"),
        base_cost=Decimal(base_cost),
        **kw,
    )


def make_policy(patient: Patient, coverage: str, max_annual: str | None = None, **kw) -> InsurancePolicy:
    n = next(_seq)
    return InsurancePolicy.objects.create(
        patient=patient,
        policy_number=kw.pop("policy_number", f"POL-{n}"),
        insurance_company=kw.pop("insurance_company", "Acme Dental"),
        coverage_percentage=Decimal(coverage),
        max_annual_coverage=Decimal(max_annual) if max_annual is not None else None,
        **kw,
    )


# ───────────────────────── serviços ──────────────────────────
def build_runner(**kw) -> TransactionRunner:
    kw.setdefault("backoff_base", 0)
    return TransactionRunner(**kw)


def build_scheduler(dispatcher: EventDispatcher | None = None, visit_creator=None) -> Scheduler:
    return Scheduler(
        repo=AppointmentRepoImpl(),
        visit_creator=visit_creator or VisitRepoImpl(),
        runner=build_runner(),
        dispatcher=dispatcher or EventDispatcher(),
    )


def build_chart_manager(scheme: str = "universal", dispatcher: EventDispatcher | None = None, repo=None):
    return ChartTransactionManager(
        repo=repo or DentalChartRepoImpl(),
        runner=build_runner(),
        dispatcher=dispatcher or EventDispatcher(),
        numbering=ToothNumbering(scheme),
    )


def build_ledger(
    dispatcher: EventDispatcher | None = None,
    strict_overpayment: bool = False,
    tax_rate: str = "0.08",
    due_days: int = 30,
) -> LedgerEngine:
    return LedgerEngine(
        invoices=InvoiceRepoImpl(),
        payments=PaymentRepoImpl(),
        policies=InsurancePolicyRepoImpl(),
        catalog=ProcedureCatalogImpl(),
        runner=build_runner(),
        dispatcher=dispatcher or EventDispatcher(),
        default_tax_rate=tax_rate,
        due_days=due_days,
        strict_overpayment=strict_overpayment,
    )


class RecordingDispatcher(EventDispatcher):
    """Guarda os eventos publicados, além de repassá-los aos assinantes."""

    def __init__(self) -> None:
        super().__init__()
        self.events = []

    def dispatch(self, event) -> None:
        self.events.append(event)
        super().dispatch(event)
